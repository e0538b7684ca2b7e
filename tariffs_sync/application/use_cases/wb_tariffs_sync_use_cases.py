"""
Caso de uso: tarifas de WB -> PostgreSQL.

Flujo:
- Calcula "hoy" (UTC) y pide /tariffs/box?date=hoy
- Valida que exista response.data.warehouseList
- Mapea cada bodega a TariffRecord pasando los montos por el normalizador
- UPSERT por (warehouse_name, date) en lotes; cada lote hace commit propio

Idempotente por dia: correrlo N veces solo actualiza montos y updated_at.
Ningun error se propaga: red, payload, base de datos o cualquier otro
se devuelve como TariffSyncResult, asi el scheduler siempre publica.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tariffs_sync.application.services.tariff_normalizer import parse_locale_number
from tariffs_sync.domain.entities.tariff import SyncStatus, TariffRecord, TariffSyncResult
from tariffs_sync.infrastructure.external.wildberries.wb_client import WBTariffsClient
from tariffs_sync.infrastructure.repositories.tariff_repository import TariffRepository
from tariffs_sync.shared.exceptions import InvalidPayloadError, UpstreamApiError
from tariffs_sync.shared.utils.datetime_utils import Clock, utc_now, utc_today


# Campo de la API -> columna de la tabla
WB_FIELD_MAP = {
    "boxDeliveryBase": "delivery_base",
    "boxDeliveryLiter": "delivery_liter",
    "boxDeliveryAndStorageExpr": "delivery_and_storage_expr",
    "boxStorageBase": "storage_base",
    "boxStorageLiter": "storage_liter",
}

DEFAULT_BATCH_SIZE = 100


def extract_warehouse_list(payload: Any) -> List[dict]:
    """
    Extrae response.data.warehouseList del JSON de WB.

    Raises:
        InvalidPayloadError: si algun nivel falta o la lista no es una lista
    """
    node: Any = payload
    for key in ("response", "data", "warehouseList"):
        if not isinstance(node, dict) or key not in node:
            raise InvalidPayloadError(f"Falta '{key}' en la respuesta de WB", received=node)
        node = node[key]

    if not isinstance(node, list):
        raise InvalidPayloadError("warehouseList no es una lista", received=node)
    return node


def map_warehouse_entry(
    entry: Any,
    *,
    sync_date: date,
    updated_at: datetime,
) -> Optional[TariffRecord]:
    """
    Mapea una bodega de WB a TariffRecord.
    Retorna None (y loguea) si la entrada no tiene nombre de bodega.
    """
    if not isinstance(entry, dict):
        logger.warning(f"Entrada de bodega descartada (no es objeto): {entry!r}")
        return None

    name = entry.get("warehouseName")
    if not isinstance(name, str) or not name.strip():
        logger.warning(f"Entrada de bodega sin warehouseName descartada: {entry!r}")
        return None

    values = {column: parse_locale_number(entry.get(field)) for field, column in WB_FIELD_MAP.items()}
    return TariffRecord(
        warehouse_name=name.strip(),
        date=sync_date,
        updated_at=updated_at,
        **values,
    )


def chunked(items: Sequence[TariffRecord], size: int) -> List[Sequence[TariffRecord]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class WBTariffsSyncUseCase:
    """
    Orquestador WB -> Postgres.
    """

    def __init__(
        self,
        *,
        client: WBTariffsClient,
        session_factory: async_sessionmaker[AsyncSession],
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Clock = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size debe ser >= 1")
        self._client = client
        self._session_factory = session_factory
        self._batch_size = batch_size
        self._clock = clock

    async def sync(self) -> TariffSyncResult:
        """
        Ejecuta una corrida completa para la fecha de hoy.
        Nunca lanza excepciones: cualquier error se devuelve como FAILED.
        """
        today = utc_today(self._clock)
        logger.info(f"Iniciando sync de tarifas WB para {today.isoformat()}")

        try:
            return await self._sync_day(today)
        except Exception as e:
            logger.exception(f"Error inesperado en el sync de tarifas WB ({today})")
            return TariffSyncResult(
                status=SyncStatus.FAILED,
                sync_date=today,
                error=(str(e) or type(e).__name__)[:2000],
            )

    async def _sync_day(self, today: date) -> TariffSyncResult:
        try:
            payload = await self._client.get_box_tariffs(today)
        except UpstreamApiError as e:
            logger.error(f"Error consultando tarifas WB ({today}): {e.message} {e.details}")
            return TariffSyncResult(status=SyncStatus.FAILED, sync_date=today, error=e.message)

        try:
            warehouse_list = extract_warehouse_list(payload)
        except InvalidPayloadError as e:
            logger.warning(f"Formato de datos invalido desde WB API: {e.message}. No se escribe nada.")
            return TariffSyncResult(status=SyncStatus.NO_DATA, sync_date=today, error=e.message)

        updated_at = self._clock()
        tariffs = [
            record
            for record in (
                map_warehouse_entry(entry, sync_date=today, updated_at=updated_at)
                for entry in warehouse_list
            )
            if record is not None
        ]
        logger.info(
            f"Recibidas {len(warehouse_list)} bodegas de WB; {len(tariffs)} tarifas para insertar/actualizar"
        )

        if not tariffs:
            logger.warning(f"WB no devolvio tarifas utilizables para {today}")
            return TariffSyncResult(
                status=SyncStatus.NO_DATA, sync_date=today, fetched=len(warehouse_list)
            )

        # upserted solo cuenta lotes con commit confirmado
        upserted = 0
        try:
            for batch in chunked(tariffs, self._batch_size):
                async with self._session_factory() as session:
                    written = await TariffRepository(session).upsert_many(batch)
                    await session.commit()
                upserted += written
                logger.debug(f"Lote de {len(batch)} tarifas guardado ({upserted}/{len(tariffs)})")
        except Exception as e:
            label = "base de datos" if isinstance(e, SQLAlchemyError) else type(e).__name__
            logger.exception(
                f"Error guardando tarifas ({label}) tras {upserted}/{len(tariffs)} filas"
            )
            return TariffSyncResult(
                status=SyncStatus.FAILED,
                sync_date=today,
                fetched=len(warehouse_list),
                upserted=upserted,
                error=(str(e) or type(e).__name__)[:2000],
            )

        logger.success(f"Sync de tarifas WB completado: {upserted} filas ({today})")
        return TariffSyncResult(
            status=SyncStatus.SUCCESS,
            sync_date=today,
            fetched=len(warehouse_list),
            upserted=upserted,
        )
