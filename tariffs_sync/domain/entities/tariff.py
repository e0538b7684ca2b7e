"""
Entidades de dominio del pipeline de tarifas.

TariffRecord es la forma canonica de una fila de la tabla `tariffs`:
una bodega (warehouse) y una fecha de calendario. Los campos numericos en None
significan "no informado por la API o no parseable", nunca cero.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# Columnas numericas, en el orden en que se publican en la hoja.
NUMERIC_FIELDS = (
    "delivery_base",
    "delivery_liter",
    "delivery_and_storage_expr",
    "storage_base",
    "storage_liter",
)


@dataclass(frozen=True)
class TariffRecord:
    """Tarifa de cajas de una bodega para un dia."""

    warehouse_name: str
    date: date
    delivery_base: Optional[float] = None
    delivery_liter: Optional[float] = None
    delivery_and_storage_expr: Optional[float] = None
    storage_base: Optional[float] = None
    storage_liter: Optional[float] = None
    updated_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        """Dict listo para INSERT (sin la PK surrogate)."""
        return {
            "warehouse_name": self.warehouse_name,
            "date": self.date,
            "delivery_base": self.delivery_base,
            "delivery_liter": self.delivery_liter,
            "delivery_and_storage_expr": self.delivery_and_storage_expr,
            "storage_base": self.storage_base,
            "storage_liter": self.storage_liter,
            "updated_at": self.updated_at,
        }


class SyncStatus(str, Enum):
    """Resultado de una corrida de un componente."""

    SUCCESS = "success"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass
class TariffSyncResult:
    """Resultado de WB -> Postgres."""

    status: SyncStatus
    sync_date: date
    fetched: int = 0
    upserted: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.FAILED


@dataclass
class SheetSyncResult:
    """Resultado de Postgres -> Google Sheets para una hoja."""

    status: SyncStatus
    spreadsheet_id: str
    attempts: int = 0
    rows: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SyncStatus.SUCCESS


@dataclass
class CycleReport:
    """Resumen de un disparo completo del scheduler."""

    tariffs: Optional[TariffSyncResult] = None
    sheets: List[SheetSyncResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        if self.error or self.tariffs is None or not self.tariffs.ok:
            return False
        return all(s.ok for s in self.sheets)
