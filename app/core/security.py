from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from app.core.auth import decode_token
from app.core.errors import ErroAutenticacao

# -----------------------------------------------------------------------------
# OAuth2 Bearer
# -----------------------------------------------------------------------------
# auto_error=False: a ausência de token vira ErroAutenticacao (formato padrão
# {success: false, error}) em vez do 401 genérico do FastAPI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class Ator:
    """Quem está executando a operação (vai para auditoria e carimbos)."""
    id: int
    email: Optional[str] = None
    role: str = "funcionario"
    ip: Optional[str] = None

    @property
    def is_gestor(self) -> bool:
        return self.role == "gestor"


def ator_de_token(token: str, ip: Optional[str] = None) -> Ator:
    try:
        payload = decode_token(token)
        sub = payload.get("sub")
        if not sub:
            raise ValueError("Missing subject")
        return Ator(
            id=int(sub),
            email=payload.get("email"),
            role=payload.get("role") or "funcionario",
            ip=ip,
        )
    except (ValueError, TypeError):
        raise ErroAutenticacao("Token inválido")


async def get_usuario_atual(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Ator:
    """
    Dependência para rotas protegidas.
    - Lê o Bearer token do header Authorization.
    - Retorna o Ator (id, email, role) com o IP de origem da requisição.
    """
    if not token:
        raise ErroAutenticacao("Token não fornecido")
    ip = request.client.host if request.client else None
    return ator_de_token(token, ip=ip)
