"""
Caso de uso: PostgreSQL -> Google Sheets.

Lee la tabla `tariffs` ordenada por delivery_liter, arma la grilla
(encabezado + filas formateadas), limpia el rango destino y lo reescribe.
Toda la secuencia se reintenta con backoff exponencial (2^intento segundos).
"""
from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tariffs_sync.application.services.tariff_normalizer import format_display_date, format_money
from tariffs_sync.domain.entities.tariff import (
    NUMERIC_FIELDS,
    SheetSyncResult,
    SyncStatus,
    TariffRecord,
)
from tariffs_sync.infrastructure.external.google_sheets.sheets_client import (
    a1_range,
    cover_range,
    range_start,
)
from tariffs_sync.infrastructure.repositories.tariff_repository import TariffRepository


SHEET_HEADERS = [
    "Date",
    "Warehouse",
    "DeliveryBase",
    "DeliveryLiter",
    "DeliveryAndStorageExpr",
    "StorageBase",
    "StorageLiter",
]

DEFAULT_SHEET_NAME = "stocks_coefs"
DEFAULT_CLEAR_RANGE = "A1:Z1000"
DEFAULT_MAX_RETRIES = 3

Sleep = Callable[[float], Awaitable[None]]


class SheetsGateway(Protocol):
    async def clear_range(self, spreadsheet_id: str, range_a1: str) -> None: ...

    async def update_values(
        self, spreadsheet_id: str, range_a1: str, values: Sequence[Sequence[Any]]
    ) -> None: ...


def build_sheet_grid(records: Sequence[TariffRecord]) -> List[List[Optional[str]]]:
    """
    Construye la grilla para Sheets: encabezado + una fila por tarifa.
    Columnas: fecha, bodega y los cinco montos en el orden de NUMERIC_FIELDS.
    """
    rows: List[List[Optional[str]]] = [list(SHEET_HEADERS)]
    for record in records:
        rows.append(
            [format_display_date(record.date), record.warehouse_name]
            + [format_money(getattr(record, name)) for name in NUMERIC_FIELDS]
        )
    return rows


def retry_delay_seconds(attempt: int) -> float:
    """Espera antes del siguiente intento: 1000 * 2^attempt ms."""
    return float(2 ** attempt)


class TariffSheetSyncUseCase:
    """
    Sincroniza las tarifas guardadas hacia una hoja de Google Sheets.

    Args:
        sheets: gateway de Google Sheets
        session_factory: factory de sesiones de la base
        spreadsheet_id: ID de la hoja de calculo
        sheet_name: pestaña destino (default "stocks_coefs")
        max_retries: intentos maximos (default 3)
        clear_range: rango que se limpia antes de escribir (default A1:Z1000)
        only_date: si se indica, publica solo las tarifas de ese dia
    """

    def __init__(
        self,
        *,
        sheets: SheetsGateway,
        session_factory: async_sessionmaker[AsyncSession],
        spreadsheet_id: str,
        sheet_name: str = DEFAULT_SHEET_NAME,
        max_retries: int = DEFAULT_MAX_RETRIES,
        clear_range: str = DEFAULT_CLEAR_RANGE,
        only_date: Optional[date] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries debe ser >= 1")
        self.sheets = sheets
        self.session_factory = session_factory
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.max_retries = max_retries
        self.clear_range = clear_range
        self.only_date = only_date
        self._sleep = sleep

    async def _get_tariff_data(self) -> List[TariffRecord]:
        async with self.session_factory() as session:
            return await TariffRepository(session).list_ordered_by_delivery_liter(self.only_date)

    def _range_to_clear(self, grid: Sequence[Sequence[Any]]) -> str:
        columns = max((len(row) for row in grid), default=0)
        target = cover_range(self.clear_range, len(grid), columns)
        if target != self.clear_range:
            logger.warning(
                f"La grilla ({len(grid)}x{columns}) excede el rango configurado "
                f"{self.clear_range}; se limpia {target} en {self.spreadsheet_id}"
            )
        return target

    async def _sync_once(self) -> int:
        data = await self._get_tariff_data()
        grid = build_sheet_grid(data)
        await self.sheets.clear_range(
            self.spreadsheet_id, a1_range(self.sheet_name, self._range_to_clear(grid))
        )
        # La grilla arranca en la esquina del rango limpiado
        await self.sheets.update_values(
            self.spreadsheet_id, a1_range(self.sheet_name, range_start(self.clear_range)), grid
        )
        return len(grid) - 1

    async def sync(self) -> SheetSyncResult:
        """
        Ejecuta la sincronizacion con reintentos:
        1. Lee las tarifas de la base.
        2. Arma la grilla.
        3. Limpia el rango destino.
        4. Escribe la grilla desde la esquina superior izquierda del rango.
        """
        last_error: Optional[str] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                rows = await self._sync_once()
                logger.success(f"Hoja sincronizada: {self.spreadsheet_id} ({rows} filas)")
                return SheetSyncResult(
                    status=SyncStatus.SUCCESS,
                    spreadsheet_id=self.spreadsheet_id,
                    attempts=attempt,
                    rows=rows,
                )
            except Exception as e:
                last_error = str(e) or type(e).__name__
                logger.opt(exception=e).error(
                    f"Intento {attempt}/{self.max_retries} fallido para {self.spreadsheet_id}: {last_error}"
                )

                if attempt < self.max_retries:
                    delay = retry_delay_seconds(attempt)
                    logger.warning(f"Reintentando {self.spreadsheet_id} en {delay:.0f}s...")
                    await self._sleep(delay)

        logger.error(f"Sync de {self.spreadsheet_id} fallido tras {self.max_retries} intentos")
        return SheetSyncResult(
            status=SyncStatus.FAILED,
            spreadsheet_id=self.spreadsheet_id,
            attempts=self.max_retries,
            error=last_error,
        )
