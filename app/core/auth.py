# app/core/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from app.core.config import settings

# ============================
#  Token JWT
# ============================
# A emissão de tokens (login) fica fora deste serviço; create_token existe
# para scripts operacionais e testes.


def _exp(*, minutes: Optional[int] = None) -> int:
    now = datetime.now(timezone.utc)
    if minutes is None:
        minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return int((now + timedelta(minutes=minutes)).timestamp())


def create_token(*, sub: str, email: str | None = None, role: str = "funcionario",
                 minutes: Optional[int] = None) -> str:
    if not sub:
        raise ValueError("sub is required")

    payload = {
        "sub": str(sub),
        "email": email,
        "role": role,
        "exp": _exp(minutes=minutes),
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise ValueError(str(e))
