"""
Excepciones de las integraciones del pipeline (WB, Postgres, Google Sheets).
"""
from typing import Any, Optional

from tariffs_sync.shared.exceptions.base import AppException


class ConfigurationError(AppException):
    """Configuración faltante o inválida; fatal en el arranque."""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else None
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details
        )


class UpstreamApiError(AppException):
    """Error de integración con la API de Wildberries."""

    def __init__(self, message: str, status_code: Optional[int] = None, attempts: int = 0):
        super().__init__(
            message=message,
            error_code="UPSTREAM_API_ERROR",
            details={"status_code": status_code, "attempts": attempts}
        )
        self.status_code = status_code
        self.attempts = attempts


class InvalidPayloadError(AppException):
    """La respuesta de la API no tiene la forma esperada."""

    def __init__(self, message: str, path: str = "response.data.warehouseList", received: Any = None):
        super().__init__(
            message=message,
            error_code="INVALID_PAYLOAD",
            details={"path": path, "received_type": type(received).__name__}
        )


class SheetSyncError(AppException):
    """Error al escribir en Google Sheets."""

    def __init__(self, message: str, spreadsheet_id: str, attempt: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="SHEET_SYNC_ERROR",
            details={"spreadsheet_id": spreadsheet_id, "attempt": attempt}
        )
        self.spreadsheet_id = spreadsheet_id
