# app/routers/demandas.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.config import Settings
from app.core.security import Ator, get_usuario_atual
from app.dependencies.db import get_config, get_sistema
from app.schemas.demanda import ComentarioCreate, LoteIn, ProrrogacaoIn, ReatribuicaoIn
from app.sistema import SistemaDemandas

# >>> declare o router ANTES de usar os decorators <<<
router = APIRouter(prefix="/demandas", tags=["demandas"])


# ----------------- listagem e busca -----------------
@router.get("")
async def listar(
    status_: Optional[str] = Query(None, alias="status"),
    funcionario_id: Optional[int] = Query(None, alias="funcionarioId"),
    categoria: Optional[str] = None,
    prioridade: Optional[str] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    demandas = await sistema.demandas.listar(
        status=status_,
        funcionario_id=funcionario_id,
        categoria=categoria,
        prioridade=prioridade,
        month=month,
        year=year,
    )
    return {"success": True, "data": demandas, "total": len(demandas)}


@router.get("/search")
async def buscar(
    q: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    config: Settings = Depends(get_config),
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    limit = min(limit or config.SEARCH_DEFAULT_LIMIT, config.SEARCH_MAX_LIMIT)
    demandas = await sistema.demandas.buscar(q, limit)
    return {"success": True, "data": demandas, "total": len(demandas)}


@router.get("/estatisticas")
async def estatisticas(
    periodo: int = Query(30, ge=1, le=3650),
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    return {"success": True, "data": await sistema.demandas.estatisticas(periodo), "periodo": periodo}


# ----------------- importação em lote -----------------
# declarada antes de /{demanda_id} para não cair no path param
@router.post("/importar")
async def importar(
    payload: LoteIn,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    resultado = await sistema.importador.importar(payload.demandas, ator)
    return {"success": True, **resultado.dump()}


# ----------------- leitura -----------------
@router.get("/{demanda_id}")
async def obter(
    demanda_id: int,
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    return {"success": True, "data": await sistema.demandas.obter(demanda_id)}


# ----------------- escrita -----------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def criar(
    payload: Dict[str, Any] = Body(...),
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    demanda = await sistema.demandas.criar(payload, ator)
    return {"success": True, "message": "Demanda criada com sucesso", "data": demanda}


@router.put("/{demanda_id}")
async def atualizar(
    demanda_id: int,
    payload: Dict[str, Any] = Body(...),
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    demanda = await sistema.demandas.atualizar(demanda_id, payload, ator)
    return {"success": True, "message": "Demanda atualizada com sucesso", "data": demanda}


@router.delete("/{demanda_id}")
async def excluir(
    demanda_id: int,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    await sistema.demandas.excluir(demanda_id, ator)
    return {"success": True, "message": "Demanda excluída com sucesso"}


# ----------------- operações de gestão -----------------
@router.post("/{demanda_id}/reatribuir")
async def reatribuir(
    demanda_id: int,
    payload: ReatribuicaoIn,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    demanda = await sistema.demandas.reatribuir(demanda_id, payload, ator)
    return {"success": True, "message": "Demanda reatribuída com sucesso", "data": demanda}


@router.post("/{demanda_id}/prorrogar")
async def prorrogar(
    demanda_id: int,
    payload: ProrrogacaoIn,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    demanda = await sistema.demandas.prorrogar(demanda_id, payload, ator)
    return {"success": True, "message": "Prazo prorrogado com sucesso", "data": demanda}


@router.post("/{demanda_id}/comentarios", status_code=status.HTTP_201_CREATED)
async def comentar(
    demanda_id: int,
    payload: ComentarioCreate,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    comentario = await sistema.demandas.comentar(demanda_id, payload, ator)
    return {"success": True, "data": comentario}
