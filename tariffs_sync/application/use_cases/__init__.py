"""
Casos de uso de la aplicacion.
"""
from .wb_tariffs_sync_use_cases import WBTariffsSyncUseCase
from .sheet_sync_use_cases import TariffSheetSyncUseCase

__all__ = ["WBTariffsSyncUseCase", "TariffSheetSyncUseCase"]
