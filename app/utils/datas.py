# app/utils/datas.py
from datetime import datetime, timezone


def agora() -> datetime:
    return datetime.now(tz=timezone.utc)


def agora_iso() -> str:
    return agora().isoformat()


def carimbo_arquivo(momento: datetime | None = None) -> str:
    """
    Timestamp seguro para nome de arquivo (sem ':' nem '.') e que ordena
    lexicograficamente na mesma ordem cronológica.
    Ex.: 2025-01-31T13-05-59-123456Z
    """
    momento = momento or agora()
    return momento.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def data_br(momento: datetime | None = None) -> str:
    """Data/hora legível usada nas notas do comentário do gestor."""
    momento = momento or agora()
    return momento.strftime("%d/%m/%Y %H:%M")
