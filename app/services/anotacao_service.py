# app/services/anotacao_service.py
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ErroNaoEncontrado
from app.core.security import Ator
from app.models.anotacao import Anotacao, Feedback
from app.schemas.anotacao import AnotacaoCreate, AnotacaoRead, AnotacaoUpdate, FeedbackCreate, FeedbackRead
from app.services.notificacoes import DespachanteNotificacoes
from app.utils.datas import agora_iso

COR_PADRAO = "#3498db"


# ======================================================
# Anotações
# ======================================================
async def list_anotacoes(
    db: AsyncSession,
    ator: Ator,
    criado_por: Optional[int] = None,
    atribuido_a: Optional[int] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
) -> List[Dict[str, Any]]:
    q = select(Anotacao)
    if criado_por is not None:
        q = q.where(Anotacao.criado_por == criado_por)
    if atribuido_a is not None:
        q = q.where(Anotacao.atribuido_a == atribuido_a)
    if criado_por is None and atribuido_a is None and not ator.is_gestor:
        # sem filtro, o funcionário vê as suas e as atribuídas a ele
        q = q.where(or_(Anotacao.criado_por == ator.id, Anotacao.atribuido_a == ator.id))
    if month:
        q = q.where(func.substr(Anotacao.data_criacao, 6, 2) == str(month).zfill(2))
    if year:
        q = q.where(func.substr(Anotacao.data_criacao, 1, 4) == str(year))

    result = await db.execute(q.order_by(Anotacao.data_criacao.desc(), Anotacao.id.desc()))
    return [AnotacaoRead.model_validate(a).dump() for a in result.scalars().all()]


async def get_anotacao(db: AsyncSession, anotacao_id: int) -> Anotacao:
    obj = await db.get(Anotacao, anotacao_id)
    if not obj:
        raise ErroNaoEncontrado("Anotação não encontrada")
    return obj


def _notificar_atribuicao(despachante: DespachanteNotificacoes, obj: Anotacao, ator: Ator) -> None:
    if obj.atribuido_a is None or obj.atribuido_a == ator.id:
        return
    despachante.agendar(
        obj.atribuido_a,
        "anotacao_atribuida",
        "Anotação Atribuída",
        f'Uma anotação foi atribuída a você: "{obj.titulo}"',
    )


async def create_anotacao(
    db: AsyncSession,
    data: AnotacaoCreate,
    ator: Ator,
    despachante: DespachanteNotificacoes,
) -> Dict[str, Any]:
    obj = Anotacao(
        titulo=data.titulo.strip(),
        conteudo=data.conteudo,
        cor=data.cor or COR_PADRAO,
        data_criacao=agora_iso(),
        criado_por=ator.id,
        atribuido_a=data.atribuido_a,
        audio_data=data.audio_data,
    )
    db.add(obj)
    await db.commit()
    _notificar_atribuicao(despachante, obj, ator)
    return AnotacaoRead.model_validate(obj).dump()


async def update_anotacao(
    db: AsyncSession,
    anotacao_id: int,
    data: AnotacaoUpdate,
    ator: Ator,
    despachante: DespachanteNotificacoes,
) -> Dict[str, Any]:
    obj = await get_anotacao(db, anotacao_id)
    atribuido_antes = obj.atribuido_a

    if data.titulo is not None: obj.titulo = data.titulo.strip()
    if data.conteudo is not None: obj.conteudo = data.conteudo
    if data.cor is not None: obj.cor = data.cor
    if data.audio_data is not None: obj.audio_data = data.audio_data
    if "atribuido_a" in data.model_fields_set: obj.atribuido_a = data.atribuido_a
    obj.atualizado_em = agora_iso()

    await db.commit()
    if obj.atribuido_a != atribuido_antes:
        _notificar_atribuicao(despachante, obj, ator)
    return AnotacaoRead.model_validate(obj).dump()


async def delete_anotacao(db: AsyncSession, anotacao_id: int) -> None:
    obj = await get_anotacao(db, anotacao_id)
    await db.delete(obj)
    await db.commit()


# ======================================================
# Feedbacks (gestor -> funcionário)
# ======================================================
async def list_feedbacks(db: AsyncSession, ator: Ator, funcionario_id: Optional[int] = None) -> List[Dict[str, Any]]:
    q = select(Feedback)
    if not ator.is_gestor:
        q = q.where(Feedback.funcionario_id == ator.id)
    elif funcionario_id is not None:
        q = q.where(Feedback.funcionario_id == funcionario_id)

    result = await db.execute(q.order_by(Feedback.data_criacao.desc(), Feedback.id.desc()))
    return [FeedbackRead.model_validate(f).dump() for f in result.scalars().all()]


async def create_feedback(
    db: AsyncSession,
    data: FeedbackCreate,
    ator: Ator,
    despachante: DespachanteNotificacoes,
) -> Dict[str, Any]:
    obj = Feedback(
        funcionario_id=data.funcionario_id,
        gestor_id=ator.id,
        tipo=data.tipo.strip(),
        mensagem=data.mensagem,
        data_criacao=agora_iso(),
    )
    db.add(obj)
    await db.commit()

    despachante.agendar(
        obj.funcionario_id,
        "feedback",
        "Novo Feedback",
        f"Você recebeu um novo feedback ({obj.tipo})",
    )
    return FeedbackRead.model_validate(obj).dump()
