# app/routers/backup.py
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.core.security import Ator, get_usuario_atual
from app.dependencies.db import get_sistema
from app.schemas.backup import BackupIn
from app.schemas.demanda import LoteIn
from app.sistema import SistemaDemandas
from app.utils.datas import carimbo_arquivo

router = APIRouter(tags=["backup"])


@router.post("/backup")
async def criar_backup(
    payload: Optional[BackupIn] = None,
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    tipo = payload.tipo if payload else "manual"
    arquivo = await sistema.backups.criar_backup(tipo)
    return {"success": True, "message": "Backup criado com sucesso", "arquivo": arquivo}


@router.get("/backup")
async def baixar_backup(
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    """Exporta o estado atual como anexo, sem gravar em disco."""
    envelope = await sistema.backups.exportar("manual")
    nome = f"backup_manual_{carimbo_arquivo()}.json"
    return JSONResponse(
        content=envelope,
        headers={"Content-Disposition": f'attachment; filename="{nome}"'},
    )


@router.get("/backups")
async def listar_backups(
    sistema: SistemaDemandas = Depends(get_sistema),
    _: Ator = Depends(get_usuario_atual),
):
    return {"success": True, "data": sistema.backups.listar()}


@router.post("/restore")
async def restaurar(
    payload: LoteIn,
    sistema: SistemaDemandas = Depends(get_sistema),
    ator: Ator = Depends(get_usuario_atual),
):
    contagem = await sistema.importador.restaurar(payload.demandas, ator)
    return {"success": True, "message": "Restauração concluída", **contagem}
