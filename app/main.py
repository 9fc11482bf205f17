# app/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

# --------------------------
# Routers
# --------------------------
from app.routers import anotacoes, backup, demandas, notificacoes, tempo_real

# --------------------------
# Settings, erros e logging
# --------------------------
from app.core.config import Settings, settings
from app.core.errors import ErroInterno, registrar_handlers
from app.core.logs import configurar_logging
from app.dependencies.db import get_sistema
from app.sistema import SistemaDemandas

logger = logging.getLogger("demandas.http")


# ---------------------------------------------------------
# Lifespan: executa na inicialização/encerramento do app
# ---------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # on_startup: cria tabelas e liga os timers de backup/retenção
    sistema = SistemaDemandas(app.state.config)
    await sistema.iniciar()
    app.state.sistema = sistema
    yield
    # on_shutdown: drena efeitos pendentes e tira o backup de encerramento
    await sistema.encerrar()


def create_app(config: Settings = settings) -> FastAPI:
    configurar_logging(config.LOG_LEVEL)

    app = FastAPI(
        title="Gestão de Demandas",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    # ---------------------------------------------------------
    # CORS
    # ---------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        inicio = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - inicio) * 1000,
        )
        return response

    registrar_handlers(app)

    # ---------------------------------------------------------
    # API principal prefixada (/api)
    # ---------------------------------------------------------
    api = APIRouter(prefix="/api")
    api.include_router(demandas.router)                 # /api/demandas/*
    api.include_router(notificacoes.router)             # /api/notificacoes/*
    api.include_router(anotacoes.router)                # /api/anotacoes/*
    api.include_router(anotacoes.feedbacks_router)      # /api/feedbacks
    api.include_router(backup.router)                   # /api/backup, /api/backups, /api/restore
    app.include_router(api)

    app.include_router(tempo_real.router)               # WS /ws

    # ---------------------------------------------------------
    # Healthcheck
    # ---------------------------------------------------------
    @app.get("/health")
    async def health(sistema: SistemaDemandas = Depends(get_sistema)):
        try:
            await sistema.verificar_banco()
            total = await sistema.demandas.contar()
        except SQLAlchemyError as e:
            raise ErroInterno(f"Banco indisponível: {e}") from e
        return {
            "success": True,
            "status": "ok",
            "database": "connected",
            "totalDemandas": total,
            "uptime": round(sistema.uptime_segundos, 1),
            "conexoesWebSocket": sistema.canal.total_conexoes,
        }

    return app


app = create_app()
