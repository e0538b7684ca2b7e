"""
Ejecución programática de migraciones de Alembic.

Se corre antes de arrancar el scheduler (mismo efecto que `alembic upgrade head`).
"""
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from loguru import logger


PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ALEMBIC_INI = PROJECT_ROOT / "alembic.ini"


def sync_database_url(url: str) -> str:
    """
    Alembic corre sincronico: reemplaza asyncpg por psycopg (psycopg3).
    """
    return url.replace("+asyncpg", "+psycopg")


def build_alembic_config(database_url: str, ini_path: Optional[Path] = None) -> Config:
    ini = Path(ini_path or DEFAULT_ALEMBIC_INI)
    config = Config(str(ini))
    config.set_main_option("script_location", str(ini.parent / "alembic"))
    # configparser interpola "%"; las passwords url-encoded lo usan
    config.set_main_option("sqlalchemy.url", sync_database_url(database_url).replace("%", "%%"))
    return config


def run_migrations(database_url: str, target: str = "head", ini_path: Optional[Path] = None) -> None:
    """Aplica migraciones pendientes hasta target."""
    logger.info(f"Aplicando migraciones de base de datos (target={target})")
    command.upgrade(build_alembic_config(database_url, ini_path), target)
    logger.info("Migraciones aplicadas")
