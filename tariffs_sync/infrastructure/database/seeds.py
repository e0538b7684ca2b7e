"""
Carga de datos semilla (seeds) de tarifas desde un archivo JSON.

Formato esperado: lista de objetos con las columnas de la tabla
(warehouse_name, date ISO y los cinco montos). Los montos pueden venir
como numero o como string con coma decimal ("1,5").

Idempotente: usa el mismo UPSERT que el sync, volver a cargar el archivo
solo actualiza las filas existentes.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tariffs_sync.application.services.tariff_normalizer import parse_locale_number
from tariffs_sync.domain.entities.tariff import NUMERIC_FIELDS, TariffRecord
from tariffs_sync.infrastructure.repositories.tariff_repository import TariffRepository
from tariffs_sync.shared.utils.datetime_utils import parse_iso_date


def load_seed_data(file_path: Path) -> List[Dict[str, Any]]:
    """
    Carga datos de tarifas desde archivo JSON.

    Returns:
        Lista de diccionarios (vacia si el archivo no existe)
    """
    if not file_path.exists():
        logger.info(f"Archivo de seeds no encontrado, se omite: {file_path}")
        return []

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"El archivo de seeds debe contener una lista: {file_path}")

    logger.info(f"Cargadas {len(data)} tarifas desde {file_path}")
    return data


def seed_entry_to_record(entry: Dict[str, Any]) -> Optional[TariffRecord]:
    """Convierte una entrada del JSON en TariffRecord; None si es invalida."""
    name = entry.get("warehouse_name")
    raw_date = entry.get("date")
    on_date = parse_iso_date(raw_date) if isinstance(raw_date, str) else None

    if not isinstance(name, str) or not name.strip() or on_date is None:
        logger.warning(f"Seed invalido (falta warehouse_name o date): {entry!r}")
        return None

    values = {column: parse_locale_number(entry.get(column)) for column in NUMERIC_FIELDS}
    return TariffRecord(warehouse_name=name.strip(), date=on_date, **values)


async def run_seeds(
    session_factory: async_sessionmaker[AsyncSession],
    path: Union[str, Path],
) -> Dict[str, int]:
    """
    Inserta o actualiza las tarifas del archivo de seeds.

    Returns:
        Diccionario con estadisticas de la operacion
    """
    data = load_seed_data(Path(path))
    stats = {"total": len(data), "upserted": 0, "errors": 0}
    if not data:
        return stats

    records = []
    for entry in data:
        record = seed_entry_to_record(entry) if isinstance(entry, dict) else None
        if record is None:
            stats["errors"] += 1
            continue
        records.append(record)

    if records:
        async with session_factory() as session:
            stats["upserted"] = await TariffRepository(session).upsert_many(records)
            await session.commit()

    logger.success(
        f"Seeds aplicados: {stats['upserted']} tarifas, {stats['errors']} descartadas"
    )
    return stats
