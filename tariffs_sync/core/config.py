"""
Configuracion central del job de sincronizacion.
Gestiona variables de entorno y valida los valores obligatorios al inicio:
si falta alguno o tiene formato invalido el proceso no debe arrancar.

Soporta dos entornos (ENVIRONMENT=development | production); en produccion
los logs se escriben tambien a archivo.
"""
import re
from functools import lru_cache
from typing import List, Literal

from apscheduler.triggers.cron import CronTrigger
from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings


SPREADSHEET_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-_]+$")
A1_RANGE_PATTERN = re.compile(r"^[A-Z]{1,3}[1-9][0-9]*:[A-Z]{1,3}[1-9][0-9]*$")


def parse_spreadsheet_ids(raw: str) -> List[str]:
    """
    Parsea la lista de IDs de Google Sheets separada por comas.
    Ignora entradas vacias (p.ej. coma final).
    """
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Configuracion de la aplicacion.
    Lee variables de entorno (y .env) y proporciona valores por defecto
    para todo lo que no es credencial.

    - DATABASE_URL se puede especificar completa o por componentes
    - GOOGLE_SHEETS_IDS es una lista separada por comas
    """

    APP_NAME: str = Field(default="WB Tariffs Sync")
    APP_VERSION: str = Field(default="1.0.0")
    ENVIRONMENT: Literal["development", "production"] = Field(default="development")

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="")
    DATABASE_PASSWORD: str = Field(default="")
    DATABASE_NAME: str = Field(default="")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_ECHO: bool = Field(default=False)

    # API de Wildberries
    WB_API_KEY: str = Field(min_length=1)
    WB_API_BASE_URL: str = Field(default="https://common-api.wildberries.ru/api/v1")
    WB_API_TIMEOUT: float = Field(default=10.0, gt=0)
    WB_API_MAX_RETRIES: int = Field(default=3, ge=0)

    # Google Sheets
    GOOGLE_SHEETS_IDS: str = Field(min_length=1)
    GOOGLE_API_CREDENTIALS_PATH: str = Field(min_length=1)
    SHEET_NAME: str = Field(default="stocks_coefs")
    SHEET_CLEAR_RANGE: str = Field(default="A1:Z1000")
    SHEET_MAX_RETRIES: int = Field(default=3, ge=1)

    # Sync
    UPSERT_BATCH_SIZE: int = Field(default=100, ge=1)
    SYNC_CRON: str = Field(default="0 * * * *")
    PUBLISH_CONCURRENTLY: bool = Field(default=False)
    RUN_ON_START: bool = Field(default=False)
    SEED_FILE: str = Field(default="data/tariffs_seed.json")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_DIR: str = Field(default="logs")

    @field_validator("GOOGLE_SHEETS_IDS")
    @classmethod
    def _validate_spreadsheet_ids(cls, value: str) -> str:
        ids = parse_spreadsheet_ids(value)
        if not ids:
            raise ValueError("GOOGLE_SHEETS_IDS debe contener al menos un ID")
        invalid = [i for i in ids if not SPREADSHEET_ID_PATTERN.match(i)]
        if invalid:
            raise ValueError(f"IDs de Google Sheets invalidos: {', '.join(invalid)}")
        return value

    @field_validator("SHEET_CLEAR_RANGE")
    @classmethod
    def _validate_clear_range(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not A1_RANGE_PATTERN.match(normalized):
            raise ValueError(f"SHEET_CLEAR_RANGE no es un rango A1 valido: {value}")
        return normalized

    @field_validator("SYNC_CRON")
    @classmethod
    def _validate_cron(cls, value: str) -> str:
        CronTrigger.from_crontab(value)
        return value

    @model_validator(mode="after")
    def _validate_database(self) -> "Settings":
        if self.DATABASE_URL:
            return self
        missing = [
            name
            for name in ("DATABASE_USER", "DATABASE_PASSWORD", "DATABASE_NAME")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"Faltan variables de base de datos: {', '.join(missing)} "
                f"(o define DATABASE_URL)"
            )
        return self

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def spreadsheet_ids(self) -> List[str]:
        """IDs de hojas destino, en el orden configurado."""
        return parse_spreadsheet_ids(self.GOOGLE_SHEETS_IDS)

    @computed_field
    @property
    def is_production(self) -> bool:
        """Indica si el entorno es de produccion."""
        return self.ENVIRONMENT == "production"

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """
    Instancia unica de configuracion.
    Se construye en el arranque; lanza ValidationError si falta algo obligatorio.
    """
    return Settings()
