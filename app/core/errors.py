# app/core/errors.py
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.config import settings

logger = logging.getLogger("demandas.erros")


# ======================================================
# Taxonomia de erros
# ======================================================
class ErroAplicacao(Exception):
    status_code = 500

    def __init__(self, mensagem: str):
        super().__init__(mensagem)
        self.mensagem = mensagem


class ErroValidacao(ErroAplicacao):
    """Campo obrigatório ausente ou malformado."""
    status_code = 400


class ErroNaoEncontrado(ErroAplicacao):
    status_code = 404


class ErroConflito(ErroAplicacao):
    """Violação de unicidade (tag, e-mail)."""
    status_code = 400


class ErroAutenticacao(ErroAplicacao):
    status_code = 401


class ErroInterno(ErroAplicacao):
    """Falha de banco ou de sistema de arquivos."""
    status_code = 500


def _erro(status_code: int, mensagem: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": mensagem, **extra},
    )


# ======================================================
# Handlers
# ======================================================
async def _handle_aplicacao(request: Request, exc: ErroAplicacao):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s", request.method, request.url.path, exc.mensagem)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, ErroAutenticacao) else None
    resp = _erro(exc.status_code, exc.mensagem)
    if headers:
        resp.headers.update(headers)
    return resp


async def _handle_http(request: Request, exc: HTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == 404 and detail == "Not Found":
        return _erro(404, "Rota não encontrada", path=request.url.path, method=request.method)
    return _erro(exc.status_code, detail)


async def _handle_validacao(request: Request, exc: RequestValidationError):
    erros = exc.errors()
    if erros:
        primeiro = erros[0]
        campo = ".".join(str(p) for p in primeiro.get("loc", ()) if p != "body")
        mensagem = f"{campo}: {primeiro.get('msg')}" if campo else primeiro.get("msg", "")
    else:
        mensagem = "Requisição inválida"
    return _erro(400, mensagem)


async def _handle_nao_tratado(request: Request, exc: Exception):
    logger.exception("Erro não tratado em %s %s", request.method, request.url.path)
    return _erro(
        500,
        "Erro interno do servidor",
        message="Erro interno" if settings.is_production else str(exc),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def registrar_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ErroAplicacao, _handle_aplicacao)
    app.add_exception_handler(HTTPException, _handle_http)
    app.add_exception_handler(RequestValidationError, _handle_validacao)
    app.add_exception_handler(Exception, _handle_nao_tratado)
