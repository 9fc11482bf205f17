# app/sistema.py
"""
Objeto de serviço da aplicação.

Dono do engine, da fábrica de sessões, do canal WebSocket, do supervisor de
tarefas e dos timers de backup. O FastAPI cria um por processo no lifespan
(``app.state.sistema``); os testes criam o seu apontando para um SQLite
temporário.
"""
import asyncio
import logging
from typing import List, Optional

from sqlalchemy import text

from app.core.config import Settings, settings
from app.db.database import criar_engine, criar_sessionmaker
from app.services.auditoria import RegistradorAuditoria
from app.services.backup_service import MotorBackup
from app.services.demanda_service import GeradorTags, ServicoDemandas
from app.services.importacao import ImportadorDemandas
from app.services.notificacoes import DespachanteNotificacoes
from app.services.tarefas import SupervisorTarefas
from app.services.tempo_real import GerenciadorConexoes
from app.startup import ensure_schema
from app.utils.datas import agora

logger = logging.getLogger("demandas.sistema")


class SistemaDemandas:
    def __init__(self, config: Settings = settings, canal: Optional[GerenciadorConexoes] = None):
        self.config = config
        self.engine = criar_engine(config.DATABASE_URL)
        self.sessionmaker = criar_sessionmaker(self.engine)

        self.canal = canal or GerenciadorConexoes()
        self.tarefas = SupervisorTarefas()
        self.tags = GeradorTags()

        self.auditoria = RegistradorAuditoria(self.sessionmaker)
        self.notificacoes = DespachanteNotificacoes(self.sessionmaker, self.canal, self.tarefas)
        self.backups = MotorBackup(self.sessionmaker, config.BACKUP_DIR, config.BACKUP_RETENTION)
        self.demandas = ServicoDemandas(
            self.sessionmaker, self.auditoria, self.notificacoes, self.backups, self.tarefas, self.tags
        )
        self.importador = ImportadorDemandas(
            self.sessionmaker, self.auditoria, self.backups, self.tarefas, self.tags
        )

        self.iniciado_em = None
        self._timers: List[asyncio.Task] = []

    # ---------------------------
    # Ciclo de vida
    # ---------------------------
    async def iniciar(self, agendar: bool = True) -> None:
        await ensure_schema(self.engine)
        self.iniciado_em = agora()
        if agendar:
            self._timers = [
                asyncio.create_task(
                    self._a_cada(self.config.backup_interval_seconds, self._backup_automatico),
                    name="timer backup auto",
                ),
                asyncio.create_task(
                    self._a_cada(self.config.backup_prune_interval_seconds, self.backups.podar_antigos),
                    name="timer retenção de backups",
                ),
            ]
        logger.info(
            "Sistema iniciado (banco=%s, backups em %s)",
            self.engine.url.render_as_string(hide_password=True),
            self.config.BACKUP_DIR,
        )

    async def encerrar(self, backup_final: bool = True) -> None:
        for timer in self._timers:
            timer.cancel()
        if self._timers:
            await asyncio.gather(*self._timers, return_exceptions=True)
        self._timers = []

        timeout = self.config.SHUTDOWN_BACKUP_TIMEOUT_SECONDS
        await self.tarefas.aguardar(timeout=timeout)

        if backup_final:
            try:
                await asyncio.wait_for(self.backups.criar_backup("shutdown"), timeout=timeout)
            except asyncio.TimeoutError:
                logger.error("Backup de encerramento excedeu %ss", timeout)
            except Exception:
                logger.exception("Erro no backup de encerramento")

        await self.engine.dispose()
        logger.info("Sistema encerrado")

    async def _a_cada(self, intervalo: float, acao) -> None:
        while True:
            await asyncio.sleep(intervalo)
            try:
                await acao()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Erro na rotina agendada")

    async def _backup_automatico(self) -> None:
        await self.backups.criar_backup("auto")

    # ---------------------------
    # Saúde
    # ---------------------------
    async def verificar_banco(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @property
    def uptime_segundos(self) -> float:
        if self.iniciado_em is None:
            return 0.0
        return (agora() - self.iniciado_em).total_seconds()
