import logging
import os
import socket
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger("nexa.config")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Valor invalido para %s (%r), usando padrao %s", name, raw, default)
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "sim", "on"}


class Settings:
    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        self.APP_NAME: str = os.getenv("APP_NAME", "Nexa Oper API")
        self.ENV: str = os.getenv("ENV", "development")
        self.SQLALCHEMY_DATABASE_URI: str = os.getenv(
            "SQLALCHEMY_DATABASE_URI",
            f"sqlite:///{(base_dir / 'nexa.db').as_posix()}",
        )

        self.RECONCILE_LOCK_TTL_MS: int = _int_env("RECONCILE_LOCK_TTL_MS", 15 * 60 * 1000)
        self.RECONCILIACAO_CRON: str = os.getenv("RECONCILIACAO_CRON", "0 23 * * *")
        self.RECONCILIACAO_CRON_ENABLED: bool = _bool_env("RECONCILIACAO_CRON_ENABLED", True)
        self.RECONCILIACAO_DIAS_HISTORICO: int = _int_env("RECONCILIACAO_DIAS_HISTORICO", 30)
        self.RECONCILIACAO_TOLERANCIA_MINUTOS: int = _int_env("RECONCILIACAO_TOLERANCIA_MINUTOS", 30)
        self.RECONCILIACAO_LOG_DIR: str = os.getenv(
            "RECONCILIACAO_LOG_DIR", (Path.cwd() / "logs").as_posix()
        )
        self.BUSINESS_TIMEZONE: str = os.getenv("BUSINESS_TIMEZONE", "America/Sao_Paulo")
        self.INTERNAL_API_SECRET: Optional[str] = os.getenv("INTERNAL_API_SECRET") or None
        self.HOSTNAME: str = os.getenv("HOSTNAME") or socket.gethostname() or "unknown"

        default_cors = [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ]
        cors_origins = os.getenv("BACKEND_CORS_ORIGINS")
        self.BACKEND_CORS_ORIGINS: List[str] = (
            [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
            if cors_origins
            else default_cors
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
