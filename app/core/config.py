# app/core/config.py
from typing import List, Any
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # Ambiente
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # --- Banco (SQLAlchemy async) ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./demandas.db"

    # --- Segurança / JWT ---
    SECRET_KEY: str = "change-me"     # PRODUÇÃO: defina no .env
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # --- Backups ---
    BACKUP_DIR: str = "./backups"
    BACKUP_INTERVAL_HOURS: float = 6
    BACKUP_PRUNE_INTERVAL_HOURS: float = 24
    BACKUP_RETENTION: int = 10
    SHUTDOWN_BACKUP_TIMEOUT_SECONDS: float = 10

    # --- Busca ---
    SEARCH_DEFAULT_LIMIT: int = 20
    SEARCH_MAX_LIMIT: int = 100

    # --- CORS (origens permitidas) ---
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> List[str]:
        """
        Permite definir BACKEND_CORS_ORIGINS como CSV ou JSON no .env.
        - CSV:  BACKEND_CORS_ORIGINS=http://localhost:3000,http://127.0.0.1:3000
        - JSON: BACKEND_CORS_ORIGINS=["http://localhost:3000","http://127.0.0.1:3000"]
        """
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    parsed = json.loads(s)
                    if isinstance(parsed, list):
                        return [str(i).strip() for i in parsed if str(i).strip()]
                except ValueError:
                    pass
            return [i.strip() for i in s.split(",") if i.strip()]
        if isinstance(v, (list, tuple)):
            return [str(i).strip() for i in v if str(i).strip()]
        return list(cls.model_fields["BACKEND_CORS_ORIGINS"].default)

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in ("prod", "production")

    @property
    def backup_interval_seconds(self) -> float:
        return self.BACKUP_INTERVAL_HOURS * 60 * 60

    @property
    def backup_prune_interval_seconds(self) -> float:
        return self.BACKUP_PRUNE_INTERVAL_HOURS * 60 * 60


settings = Settings()
