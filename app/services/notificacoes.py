# app/services/notificacoes.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ErroNaoEncontrado
from app.core.security import Ator
from app.models.notificacao import Notificacao
from app.schemas.notificacao import NotificacaoCreate, NotificacaoRead
from app.services.tarefas import SupervisorTarefas
from app.services.tempo_real import GerenciadorConexoes
from app.utils.datas import agora_iso

logger = logging.getLogger("demandas.notificacoes")

EVENTO_NOTIFICACAO = "notificacao"


class DespachanteNotificacoes:
    """
    Persiste a notificação (fonte da verdade) e depois empurra o mesmo payload
    para a sala do destinatário. O push não tem retry nem pode falhar a escrita.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        canal: GerenciadorConexoes,
        tarefas: SupervisorTarefas,
    ):
        self._sessionmaker = sessionmaker
        self._canal = canal
        self._tarefas = tarefas

    async def notificar(
        self,
        usuario_id: int,
        tipo: str,
        titulo: str,
        mensagem: str,
        tag: Optional[str] = None,
        prioridade: bool = False,
    ) -> int:
        async with self._sessionmaker() as session:
            obj = Notificacao(
                usuario_id=usuario_id,
                tipo=tipo,
                titulo=titulo,
                mensagem=mensagem,
                tag=tag,
                prioridade=bool(prioridade),
                lida=False,
                data_criacao=agora_iso(),
            )
            session.add(obj)
            await session.commit()

        payload = NotificacaoRead.model_validate(obj).dump()
        self._tarefas.disparar(
            self._empurrar(usuario_id, payload),
            f"push notificacao #{obj.id}",
        )
        return obj.id

    def agendar(self, usuario_id: int, tipo: str, titulo: str, mensagem: str,
                tag: Optional[str] = None, prioridade: bool = False) -> None:
        """Dispara notificar() como efeito colateral supervisionado."""
        self._tarefas.disparar(
            self.notificar(usuario_id, tipo, titulo, mensagem, tag, prioridade),
            f"notificacao {tipo} -> {usuario_id}",
        )

    async def _empurrar(self, usuario_id: int, payload: Dict[str, Any]) -> None:
        try:
            await self._canal.emitir(usuario_id, EVENTO_NOTIFICACAO, payload)
        except Exception as e:
            logger.warning("Push de notificação para %s falhou: %s", usuario_id, e)


# ======================================================
# CRUD do destinatário
# ======================================================
def _destinatario(ator: Ator, usuario_id: Optional[int]) -> int:
    # Gestor pode consultar/limpar a caixa de outro usuário; os demais só a própria.
    if usuario_id is not None and ator.is_gestor:
        return usuario_id
    return ator.id


async def listar_notificacoes(db: AsyncSession, ator: Ator, usuario_id: Optional[int] = None) -> List[Dict[str, Any]]:
    alvo = _destinatario(ator, usuario_id)
    result = await db.execute(
        select(Notificacao)
        .where(Notificacao.usuario_id == alvo)
        .order_by(Notificacao.data_criacao.desc(), Notificacao.id.desc())
    )
    return [NotificacaoRead.model_validate(n).dump() for n in result.scalars().all()]


async def _get_notificacao(db: AsyncSession, notificacao_id: int, ator: Ator) -> Notificacao:
    obj = await db.get(Notificacao, notificacao_id)
    if not obj or (obj.usuario_id != ator.id and not ator.is_gestor):
        raise ErroNaoEncontrado("Notificação não encontrada")
    return obj


async def marcar_lida(db: AsyncSession, notificacao_id: int, ator: Ator) -> None:
    obj = await _get_notificacao(db, notificacao_id, ator)
    obj.lida = True
    await db.commit()


async def excluir_notificacao(db: AsyncSession, notificacao_id: int, ator: Ator) -> None:
    obj = await _get_notificacao(db, notificacao_id, ator)
    await db.delete(obj)
    await db.commit()


async def limpar_notificacoes(db: AsyncSession, ator: Ator, usuario_id: Optional[int] = None) -> int:
    alvo = _destinatario(ator, usuario_id)
    res = await db.execute(delete(Notificacao).where(Notificacao.usuario_id == alvo))
    await db.commit()
    return res.rowcount or 0


async def criar_notificacao(despachante: DespachanteNotificacoes, data: NotificacaoCreate) -> int:
    return await despachante.notificar(
        data.usuario_id, data.tipo, data.titulo, data.mensagem, data.tag, data.prioridade
    )
