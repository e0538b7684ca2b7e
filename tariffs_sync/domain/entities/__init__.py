"""
Entidades del dominio.
"""
from tariffs_sync.domain.entities.tariff import (
    NUMERIC_FIELDS,
    CycleReport,
    SheetSyncResult,
    SyncStatus,
    TariffRecord,
    TariffSyncResult,
)

__all__ = [
    "NUMERIC_FIELDS",
    "CycleReport",
    "SheetSyncResult",
    "SyncStatus",
    "TariffRecord",
    "TariffSyncResult",
]
