"""
Cliente mínimo de la API "common" de Wildberries (tarifas de cajas).

Requisitos cubiertos:
- httpx async con timeout fijo
- header Authorization con el token de WB
- reintentos con backoff exponencial para errores de red, timeouts, 429 y 5xx
  (solo GET, que es idempotente)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Optional

import httpx
from loguru import logger

from tariffs_sync.shared.exceptions import UpstreamApiError


DEFAULT_BASE_URL = "https://common-api.wildberries.ru/api/v1"

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class WBCredentials:
    api_key: str


def build_http_client(
    credentials: WBCredentials,
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout_s: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Construye el AsyncClient compartido: base URL, timeout y autorización.
    El ciclo de vida (aclose) lo maneja el punto de entrada.
    """
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout_s),
        headers={
            "Authorization": credentials.api_key,
            "Accept": "application/json",
        },
        transport=transport,
    )


class WBTariffsClient:
    """
    Cliente HTTP de tarifas WB.

    Importante:
    - No parsea los valores numéricos: eso lo decide el normalizador.
    - Sí valida que la respuesta sea JSON.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        max_retries: int = 3,
        min_backoff_s: float = 1.0,
        max_backoff_s: float = 30.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep

    async def get_box_tariffs(self, on_date: date) -> dict[str, Any]:
        """
        GET /tariffs/box?date=YYYY-MM-DD

        Returns:
            El JSON completo de la respuesta (sin validar su forma)
        """
        return await self._request_json("GET", "/tariffs/box", params={"date": on_date.isoformat()})

    def _backoff(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return min(self._max_backoff_s, float(retry_after))
            except ValueError:
                pass
        return min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))

    async def _request_json(
        self, method: str, url: str, *, params: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Request HTTP con backoff.

        Estrategia:
        - Timeout / error de red: exponencial.
        - 429: respeta Retry-After si existe, si no exponencial.
        - 5xx: exponencial.
        - 4xx (no 429): error inmediato (token o parámetros mal).
        """
        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._http.request(method, url, params=params)
            except httpx.TransportError as e:
                if attempt >= self._max_retries:
                    raise UpstreamApiError(
                        f"WB API sin respuesta tras {attempt} reintentos: {e!r}",
                        attempts=attempt + 1,
                    ) from e
                sleep_s = self._backoff(attempt, None)
                logger.warning(
                    f"WB API error de red ({type(e).__name__}); reintento {attempt + 1}/{self._max_retries} en {sleep_s:.1f}s"
                )
                await self._sleep(sleep_s)
                continue
            except httpx.HTTPError as e:
                # DecodingError, TooManyRedirects, etc.: no se reintentan
                raise UpstreamApiError(
                    f"WB API request falló ({type(e).__name__}): {e}",
                    attempts=attempt + 1,
                ) from e

            if resp.is_success:
                try:
                    return resp.json()
                except ValueError as e:
                    raise UpstreamApiError(
                        f"WB API devolvió un cuerpo que no es JSON (status {resp.status_code})",
                        status_code=resp.status_code,
                        attempts=attempt + 1,
                    ) from e

            # Errores recuperables
            if resp.status_code == 429 or resp.is_server_error:
                if attempt >= self._max_retries:
                    raise UpstreamApiError(
                        f"WB API error {resp.status_code} tras {attempt} reintentos: {resp.text[:500]}",
                        status_code=resp.status_code,
                        attempts=attempt + 1,
                    )
                sleep_s = self._backoff(attempt, resp.headers.get("Retry-After"))
                logger.warning(
                    f"WB API respondió {resp.status_code}; reintento {attempt + 1}/{self._max_retries} en {sleep_s:.1f}s"
                )
                await self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise UpstreamApiError(
                f"WB API request falló {resp.status_code}: {resp.text[:500]}",
                status_code=resp.status_code,
                attempts=attempt + 1,
            )

        raise UpstreamApiError("WB API: reintentos agotados", attempts=self._max_retries + 1)
