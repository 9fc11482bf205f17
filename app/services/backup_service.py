# app/services/backup_service.py
"""
Snapshots JSON da tabela de demandas.

Um arquivo por snapshot em BACKUP_DIR, nomeado
``backup_<tipo>_<timestamp>.json``. Só os ``backup_auto_*`` entram na
retenção; manuais e os disparados por evento nunca são podados.
"""
import asyncio
import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import ErroInterno, ErroValidacao
from app.models.demanda import Demanda
from app.services.serializacao import demanda_para_wire
from app.utils.datas import agora_iso, carimbo_arquivo

logger = logging.getLogger("demandas.backup")

VERSAO = "1.0.0"
TIPOS_BACKUP = ("auto", "manual", "shutdown", "status_change", "delete", "batch_import")
PREFIXO_AUTO = "backup_auto_"

_NOME_BACKUP = re.compile(
    r"^backup_(?P<tipo>[a-z_]+?)_(?P<carimbo>\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d+Z)(?:-(?P<sufixo>\d+))?\.json$"
)


def ordem_cronologica(nome: str) -> Tuple[str, int]:
    """
    Chave de ordenação por (carimbo, sufixo de colisão). Ordenar pelo nome cru
    põe ``...Z-1.json`` antes de ``...Z.json`` ('-' < '.').
    """
    m = _NOME_BACKUP.match(nome)
    if not m:
        return nome, 0
    return m.group("carimbo"), int(m.group("sufixo") or 0)


class MotorBackup:
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession], diretorio: str, retencao: int = 10):
        self._sessionmaker = sessionmaker
        self.diretorio = diretorio
        self.retencao = retencao

    # ---------------------------
    # Exportação
    # ---------------------------
    async def _ler_demandas(self) -> List[Dict[str, Any]]:
        async with self._sessionmaker() as session:
            rows = (await session.execute(select(Demanda).order_by(Demanda.id))).scalars().all()
        return [demanda_para_wire(r) for r in rows]

    async def exportar(self, tipo: str = "manual") -> Dict[str, Any]:
        demandas = await self._ler_demandas()
        return {
            "versao": VERSAO,
            "data": agora_iso(),
            "tipo": tipo,
            "totalDemandas": len(demandas),
            "demandas": demandas,
        }

    async def criar_backup(self, tipo: str = "auto") -> str:
        """Grava um snapshot e devolve o nome do arquivo."""
        if tipo not in TIPOS_BACKUP:
            raise ErroValidacao(f"Tipo de backup inválido. Use um de: {', '.join(TIPOS_BACKUP)}")

        envelope = await self.exportar(tipo)
        try:
            nome = await asyncio.to_thread(self._gravar, tipo, carimbo_arquivo(), envelope)
        except OSError as e:
            logger.error("Erro ao salvar backup %s: %s", tipo, e)
            raise ErroInterno(f"Erro ao salvar backup: {e}") from e

        logger.info("Backup %s criado: %s (%d demandas)", tipo, nome, envelope["totalDemandas"])
        return nome

    def _gravar(self, tipo: str, carimbo: str, envelope: Dict[str, Any]) -> str:
        os.makedirs(self.diretorio, exist_ok=True)
        base = f"backup_{tipo}_{carimbo}"
        nome = f"{base}.json"
        sufixo = 0
        while True:
            try:
                # "x": nunca sobrescreve um snapshot existente
                with open(os.path.join(self.diretorio, nome), "x", encoding="utf-8") as fh:
                    json.dump(envelope, fh, ensure_ascii=False, indent=2)
                return nome
            except FileExistsError:
                sufixo += 1
                nome = f"{base}-{sufixo}.json"

    # ---------------------------
    # Retenção
    # ---------------------------
    async def podar_antigos(self) -> List[str]:
        return await asyncio.to_thread(self._podar)

    def _podar(self) -> List[str]:
        try:
            arquivos = os.listdir(self.diretorio)
        except FileNotFoundError:
            return []

        automaticos = sorted(
            (f for f in arquivos if f.startswith(PREFIXO_AUTO) and f.endswith(".json")),
            key=ordem_cronologica,
        )
        excesso = len(automaticos) - self.retencao
        if excesso <= 0:
            return []

        removidos = []
        for nome in automaticos[:excesso]:
            try:
                os.remove(os.path.join(self.diretorio, nome))
                removidos.append(nome)
            except OSError as e:
                logger.error("Erro ao remover backup antigo %s: %s", nome, e)
        logger.info("Retenção de backups: %d removido(s)", len(removidos))
        return removidos

    # ---------------------------
    # Listagem
    # ---------------------------
    def listar(self) -> List[Dict[str, Any]]:
        try:
            arquivos = os.listdir(self.diretorio)
        except FileNotFoundError:
            return []

        out = []
        for nome in arquivos:
            m = _NOME_BACKUP.match(nome)
            if not m:
                continue
            caminho = os.path.join(self.diretorio, nome)
            st = os.stat(caminho)
            out.append({
                "arquivo": nome,
                "tipo": m.group("tipo"),
                "tamanho": st.st_size,
                "criadoEm": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(),
            })
        out.sort(key=lambda b: ordem_cronologica(b["arquivo"]), reverse=True)
        return out
