"""
Punto de entrada principal del job de sincronizacion de tarifas WB.

Secuencia de arranque:
1. Carga y valida la configuracion (sale con codigo 1 si falta algo)
2. Configura logging
3. Aplica migraciones pendientes de Alembic
4. Aplica seeds, registra el job horario y espera SIGINT/SIGTERM
"""
import asyncio
import signal
import sys

from loguru import logger
from pydantic import ValidationError

from tariffs_sync.core.config import Settings, get_settings
from tariffs_sync.core.events import build_dependencies, shutdown, startup
from tariffs_sync.core.logging import configure_logging
from tariffs_sync.infrastructure.database.migrations import run_migrations
from tariffs_sync.infrastructure.database.session import database_backend
from tariffs_sync.infrastructure.repositories.tariff_repository import ensure_supported_dialect
from tariffs_sync.shared.exceptions import ConfigurationError


async def serve(settings: Settings) -> None:
    """Corre el scheduler hasta recibir una senal de terminacion."""
    container = build_dependencies(settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await startup(container, run_now=settings.RUN_ON_START)
        await stop_event.wait()
        logger.info("Senal de terminacion recibida")
    finally:
        await shutdown(container)


def main() -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error(f"Configuracion invalida, el proceso no arranca:\n{e}")
        return 1

    configure_logging(settings)

    try:
        ensure_supported_dialect(database_backend(settings))
        run_migrations(settings.effective_database_url)
        asyncio.run(serve(settings))
    except ConfigurationError as e:
        logger.error(f"Configuracion invalida: {e.message} {e.details}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
