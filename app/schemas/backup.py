# app/schemas/backup.py
from pydantic import BaseModel


class BackupIn(BaseModel):
    tipo: str = "manual"
