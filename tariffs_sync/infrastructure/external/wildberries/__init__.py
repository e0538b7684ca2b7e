"""
Integración con la API de Wildberries.
"""
from tariffs_sync.infrastructure.external.wildberries.wb_client import (
    DEFAULT_BASE_URL,
    WBCredentials,
    WBTariffsClient,
    build_http_client,
)

__all__ = ["DEFAULT_BASE_URL", "WBCredentials", "WBTariffsClient", "build_http_client"]
