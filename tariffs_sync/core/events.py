"""
Manejadores de inicio y cierre del proceso.

build_dependencies() arma el grafo de objetos (engine, clientes HTTP y de
Sheets, casos de uso, scheduler) una sola vez; shutdown() libera todo en
orden inverso.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tariffs_sync.application.use_cases.sheet_sync_use_cases import TariffSheetSyncUseCase
from tariffs_sync.application.use_cases.wb_tariffs_sync_use_cases import WBTariffsSyncUseCase
from tariffs_sync.core.config import Settings
from tariffs_sync.core.scheduler import SheetSyncFactory, TariffsSyncScheduler
from tariffs_sync.infrastructure.database.seeds import run_seeds
from tariffs_sync.infrastructure.database.session import (
    close_db,
    create_engine,
    create_session_factory,
    database_backend,
)
from tariffs_sync.infrastructure.external.google_sheets import GoogleSheetsClient
from tariffs_sync.infrastructure.external.wildberries import (
    WBCredentials,
    WBTariffsClient,
    build_http_client,
)
from tariffs_sync.infrastructure.repositories.tariff_repository import ensure_supported_dialect


@dataclass
class AppContainer:
    """Recursos vivos del proceso."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    http_client: httpx.AsyncClient
    tariffs_sync: WBTariffsSyncUseCase
    sheets: GoogleSheetsClient
    scheduler: TariffsSyncScheduler


def sheet_sync_factory(
    settings: Settings,
    sheets: GoogleSheetsClient,
    session_factory: async_sessionmaker[AsyncSession],
) -> SheetSyncFactory:
    """Un caso de uso por hoja, todos con la misma pestaña, rango y reintentos."""

    def factory(spreadsheet_id: str) -> TariffSheetSyncUseCase:
        return TariffSheetSyncUseCase(
            sheets=sheets,
            session_factory=session_factory,
            spreadsheet_id=spreadsheet_id,
            sheet_name=settings.SHEET_NAME,
            max_retries=settings.SHEET_MAX_RETRIES,
            clear_range=settings.SHEET_CLEAR_RANGE,
        )

    return factory


def build_dependencies(
    settings: Settings,
    *,
    sheets: Optional[GoogleSheetsClient] = None,
) -> AppContainer:
    """
    Construye los recursos del proceso a partir de la configuracion.

    Raises:
        ConfigurationError: si el motor de base de datos no soporta UPSERT
            o las credenciales de Google no se pueden cargar
    """
    ensure_supported_dialect(database_backend(settings))

    if sheets is None:
        sheets = GoogleSheetsClient.from_service_account_file(settings.GOOGLE_API_CREDENTIALS_PATH)

    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    http_client = build_http_client(
        WBCredentials(api_key=settings.WB_API_KEY),
        base_url=settings.WB_API_BASE_URL,
        timeout_s=settings.WB_API_TIMEOUT,
    )
    tariffs_sync = WBTariffsSyncUseCase(
        client=WBTariffsClient(http_client, max_retries=settings.WB_API_MAX_RETRIES),
        session_factory=session_factory,
        batch_size=settings.UPSERT_BATCH_SIZE,
    )

    scheduler = TariffsSyncScheduler(
        tariffs_sync=tariffs_sync,
        sheet_sync_factory=sheet_sync_factory(settings, sheets, session_factory),
        spreadsheet_ids=settings.spreadsheet_ids,
        cron=settings.SYNC_CRON,
        publish_concurrently=settings.PUBLISH_CONCURRENTLY,
    )
    return AppContainer(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        http_client=http_client,
        tariffs_sync=tariffs_sync,
        sheets=sheets,
        scheduler=scheduler,
    )


async def startup(container: AppContainer, *, run_now: bool = False) -> None:
    """Aplica seeds y arranca el scheduler."""
    settings = container.settings
    logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Entorno: {settings.ENVIRONMENT}")
    logger.info(f"Hojas destino: {', '.join(settings.spreadsheet_ids)}")

    await run_seeds(container.session_factory, Path(settings.SEED_FILE))
    container.scheduler.start(run_now=run_now)
    logger.success("Aplicacion iniciada correctamente")


async def shutdown(container: AppContainer) -> None:
    """Libera recursos al cerrar el proceso."""
    logger.info("Cerrando aplicacion...")
    container.scheduler.shutdown()
    await container.http_client.aclose()
    logger.info("Cliente HTTP de WB cerrado")
    await close_db(container.engine)
    logger.info("Conexiones a base de datos cerradas")
    logger.success("Aplicacion cerrada correctamente")
