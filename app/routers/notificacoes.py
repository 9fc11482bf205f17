# app/routers/notificacoes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import Ator, get_usuario_atual
from app.dependencies.db import get_db, get_sistema
from app.schemas.notificacao import NotificacaoCreate
from app.services import notificacoes as svc
from app.sistema import SistemaDemandas

router = APIRouter(prefix="/notificacoes", tags=["notificacoes"])


@router.get("")
async def listar(
    usuario_id: Optional[int] = Query(None, alias="usuarioId"),
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    itens = await svc.listar_notificacoes(db, ator, usuario_id)
    nao_lidas = sum(1 for n in itens if not n["lida"])
    return {"success": True, "data": itens, "naoLidas": nao_lidas}


@router.post("", status_code=status.HTTP_201_CREATED)
async def criar(
    payload: NotificacaoCreate,
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    notificacao_id = await svc.criar_notificacao(sistema.notificacoes, payload)
    return {"success": True, "id": notificacao_id}


@router.put("/{notificacao_id}/lida")
async def marcar_lida(
    notificacao_id: int,
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    await svc.marcar_lida(db, notificacao_id, ator)
    return {"success": True, "message": "Notificação marcada como lida"}


@router.delete("/{notificacao_id}")
async def excluir(
    notificacao_id: int,
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    await svc.excluir_notificacao(db, notificacao_id, ator)
    return {"success": True, "message": "Notificação excluída"}


@router.delete("")
async def limpar(
    usuario_id: Optional[int] = Query(None, alias="usuarioId"),
    db: AsyncSession = Depends(get_db),
    ator: Ator = Depends(get_usuario_atual),
):
    removidas = await svc.limpar_notificacoes(db, ator, usuario_id)
    return {"success": True, "removidas": removidas}
