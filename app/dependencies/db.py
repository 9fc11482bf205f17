# app/dependencies/db.py
from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.sistema import SistemaDemandas


def get_sistema(request: Request) -> SistemaDemandas:
    """
    Instância criada no lifespan (main.py).
    Uso: `sistema = Depends(get_sistema)`
    """
    return request.app.state.sistema


async def get_db(sistema: SistemaDemandas = Depends(get_sistema)) -> AsyncIterator[AsyncSession]:
    """
    Dependência do FastAPI para injetar uma sessão do banco.
    Uso: `db = Depends(get_db)`
    """
    async with sistema.sessionmaker() as session:
        yield session


def get_config(request: Request) -> Settings:
    """Settings com que o app foi criado (create_app(config))."""
    return request.app.state.config
