# app/routers/anotacoes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import Ator, get_usuario_atual
from app.dependencies.db import get_db, get_sistema
from app.schemas.anotacao import AnotacaoCreate, AnotacaoRead, AnotacaoUpdate, FeedbackCreate
from app.services import anotacao_service as svc
from app.sistema import SistemaDemandas

router = APIRouter(prefix="/anotacoes", tags=["anotacoes"])
feedbacks_router = APIRouter(prefix="/feedbacks", tags=["feedbacks"])


# ======================================================
# Anotações
# ======================================================
@router.get("")
async def listar(
    criado_por: Optional[int] = Query(None, alias="criadoPor"),
    atribuido_a: Optional[int] = Query(None, alias="atribuidoA"),
    month: Optional[str] = None,
    year: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    itens = await svc.list_anotacoes(db, ator, criado_por, atribuido_a, month, year)
    return {"success": True, "data": itens}


@router.get("/{anotacao_id}")
async def obter(
    anotacao_id: int,
    db: AsyncSession = Depends(get_db),
    _: Ator = Depends(get_usuario_atual),
):
    obj = await svc.get_anotacao(db, anotacao_id)
    return {"success": True, "data": AnotacaoRead.model_validate(obj).dump()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def criar(
    payload: AnotacaoCreate,
    db: AsyncSession = Depends(get_db),
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    anotacao = await svc.create_anotacao(db, payload, ator, sistema.notificacoes)
    return {"success": True, "data": anotacao}


@router.put("/{anotacao_id}")
async def atualizar(
    anotacao_id: int,
    payload: AnotacaoUpdate,
    db: AsyncSession = Depends(get_db),
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    anotacao = await svc.update_anotacao(db, anotacao_id, payload, ator, sistema.notificacoes)
    return {"success": True, "data": anotacao}


@router.delete("/{anotacao_id}")
async def excluir(
    anotacao_id: int,
    db: AsyncSession = Depends(get_db),
    _: Ator = Depends(get_usuario_atual),
):
    await svc.delete_anotacao(db, anotacao_id)
    return {"success": True, "message": "Anotação excluída"}


# ======================================================
# Feedbacks
# ======================================================
@feedbacks_router.get("")
async def listar_feedbacks(
    funcionario_id: Optional[int] = Query(None, alias="funcionarioId"),
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    return {"success": True, "data": await svc.list_feedbacks(db, ator, funcionario_id)}


@feedbacks_router.post("", status_code=status.HTTP_201_CREATED)
async def criar_feedback(
    payload: FeedbackCreate,
    db: AsyncSession = Depends(get_db),
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    feedback = await svc.create_feedback(db, payload, ator, sistema.notificacoes)
    return {"success": True, "data": feedback}
