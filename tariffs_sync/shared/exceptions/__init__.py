"""
Excepciones del job de sincronización.
"""
from tariffs_sync.shared.exceptions.base import AppException
from tariffs_sync.shared.exceptions.domain import (
    ConfigurationError,
    InvalidPayloadError,
    SheetSyncError,
    UpstreamApiError,
)

__all__ = [
    "AppException",
    "ConfigurationError",
    "InvalidPayloadError",
    "SheetSyncError",
    "UpstreamApiError",
]
