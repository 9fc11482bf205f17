# app/startup.py
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.database import Base

# registra as tabelas no metadata
from app.models import anotacao, auditoria, demanda, notificacao  # noqa: F401

logger = logging.getLogger("demandas.startup")


async def ensure_schema(engine: AsyncEngine) -> None:
    """
    Cria (ou verifica) tabelas e índices.
    Executa no startup via lifespan em main.py.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Tabelas e índices verificados/criados com sucesso")
