# taller/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Entorno
    ENV: str = "dev"  # dev | prod
    DEBUG: bool = True

    # App
    PROJECT_NAME: str = "Taller Alma"

    # Base de datos
    DATABASE_URL: str = "sqlite:///./taller.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30  # segundos
    DB_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Actor usado cuando la capa de auth no manda usuario
    USUARIO_SISTEMA: str = "Sistema"

    # Pedidos
    PEDIDO_ETAPA_INICIAL: str = "Pendiente por realizar"
    PEDIDO_ETAPA_FINAL: str = "Finalizado"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def database_url(self) -> str:
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()
