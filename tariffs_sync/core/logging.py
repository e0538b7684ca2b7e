"""
Configuracion de sinks de loguru para el proceso.

- Consola: siempre, con colores.
- Produccion: ademas logs/app.log (INFO+) y logs/error.log (ERROR+).
"""
import sys
from pathlib import Path

from loguru import logger

from tariffs_sync.core.config import Settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"


def configure_logging(settings: Settings) -> None:
    """
    Reemplaza el sink por defecto de loguru segun el entorno.
    Debe llamarse una sola vez, al inicio del proceso.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.LOG_LEVEL,
        colorize=True,
    )

    if not settings.is_production:
        return

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_dir / "app.log"),
        format=FILE_FORMAT,
        level="INFO",
        rotation="10 MB",
        retention="10 days",
        enqueue=True,
    )
    logger.add(
        str(log_dir / "error.log"),
        format=FILE_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        backtrace=True,
        enqueue=True,
    )
    logger.info(f"Logs de archivo habilitados en {log_dir.resolve()}")
