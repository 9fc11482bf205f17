# app/services/auditoria.py
import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.auditoria import Auditoria
from app.utils.datas import agora_iso

logger = logging.getLogger("demandas.auditoria")


def _serializar(dados: Optional[Dict[str, Any]]) -> str:
    return json.dumps(dados or {}, ensure_ascii=False, default=str)


class RegistradorAuditoria:
    """Trilha de auditoria append-only; cada registro em sessão própria."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    async def registrar(
        self,
        acao: str,
        tabela: str,
        registro_id: int,
        antes: Optional[Dict[str, Any]],
        depois: Optional[Dict[str, Any]],
        usuario_id: Optional[int],
        ip: Optional[str],
    ) -> Optional[int]:
        """
        Grava o registro e devolve o id. Qualquer falha é logada e devolve
        None: auditoria não bloqueia a operação principal.
        """
        try:
            async with self._sessionmaker() as session:
                reg = Auditoria(
                    acao=acao,
                    tabela=tabela,
                    registro_id=int(registro_id),
                    dados_antigos=_serializar(antes),
                    dados_novos=_serializar(depois),
                    usuario_id=usuario_id,
                    data_hora=agora_iso(),
                    ip=ip,
                )
                session.add(reg)
                await session.commit()
                return reg.id
        except Exception:
            logger.exception("Erro ao registrar auditoria (%s %s #%s)", acao, tabela, registro_id)
            return None

    async def listar(self, tabela: str, registro_id: Optional[int] = None, limit: int = 200) -> List[Dict[str, Any]]:
        async with self._sessionmaker() as session:
            q = select(Auditoria).where(Auditoria.tabela == tabela)
            if registro_id is not None:
                q = q.where(Auditoria.registro_id == registro_id)
            q = q.order_by(Auditoria.id).limit(limit)
            rows = (await session.execute(q)).scalars().all()

        return [
            {
                "id": r.id,
                "acao": r.acao,
                "tabela": r.tabela,
                "registroId": r.registro_id,
                "dadosAntigos": json.loads(r.dados_antigos or "{}"),
                "dadosNovos": json.loads(r.dados_novos or "{}"),
                "usuarioId": r.usuario_id,
                "dataHora": r.data_hora,
                "ip": r.ip,
            }
            for r in rows
        ]
