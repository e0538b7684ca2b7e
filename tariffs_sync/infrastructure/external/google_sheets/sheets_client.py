"""
Cliente de Google Sheets v4 autenticado con service account.

googleapiclient es bloqueante: cada llamada se ejecuta en un thread
(asyncio.to_thread) para no bloquear el event loop del scheduler.
httplib2.Http no es thread-safe: cada worker thread usa su propio
AuthorizedHttp (o, sin credenciales, las llamadas se serializan).
"""
from __future__ import annotations

import asyncio
import re
import threading
from pathlib import Path
from typing import Any, List, Optional, Sequence

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from tariffs_sync.shared.exceptions import ConfigurationError, SheetSyncError


SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"

_SIMPLE_TITLE_RE = re.compile(r"^[A-Za-z0-9_]+$")
_CELL_RE = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")


def column_index(letters: str) -> int:
    """Letras de columna a indice (A -> 1, Z -> 26, AA -> 27)."""
    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def column_letter(index: int) -> str:
    """Indice de columna a letras (1 -> A, 27 -> AA)."""
    letters = ""
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def range_start(range_spec: str) -> str:
    """Celda superior izquierda de un rango A1 ("B2:Z1000" -> "B2")."""
    return range_spec.upper().split(":")[0]


def cover_range(range_spec: str, rows: int, columns: int) -> str:
    """
    Retorna range_spec si alcanza para una grilla de rows x columns que empieza
    en su esquina superior izquierda; si no, lo extiende lo necesario.
    """
    start, end = range_spec.upper().split(":")
    start_match, end_match = _CELL_RE.match(start), _CELL_RE.match(end)
    if not start_match or not end_match:
        raise ValueError(f"Rango A1 invalido: {range_spec}")

    start_col, start_row = column_index(start_match.group(1)), int(start_match.group(2))
    end_col, end_row = column_index(end_match.group(1)), int(end_match.group(2))

    needed_col = start_col + columns - 1
    needed_row = start_row + rows - 1
    if needed_col <= end_col and needed_row <= end_row:
        return f"{start}:{end}"
    return f"{start}:{column_letter(max(end_col, needed_col))}{max(end_row, needed_row)}"


def quote_sheet_title(title: str) -> str:
    """Retorna el nombre de la hoja formateado para notacion A1."""
    normalised = (title or "").strip()
    if not normalised:
        return "''"
    if _SIMPLE_TITLE_RE.fullmatch(normalised):
        return normalised
    escaped = normalised.replace("'", "''")
    return f"'{escaped}'"


def a1_range(sheet_name: str, range_spec: str) -> str:
    """Combina hoja y rango: ("stocks_coefs", "A1:Z1000") -> "stocks_coefs!A1:Z1000"."""
    return f"{quote_sheet_title(sheet_name)}!{range_spec}"


class GoogleSheetsClient:
    """
    Gateway minimo sobre spreadsheets.values: limpiar un rango y escribir valores.
    """

    def __init__(self, service: Any, credentials: Optional[Any] = None):
        self._service = service
        self._credentials = credentials
        self._local = threading.local()
        self._shared_http_lock = threading.Lock()

    @classmethod
    def from_service_account_file(cls, credentials_path: str) -> "GoogleSheetsClient":
        """
        Construye el cliente desde el JSON de la service account.

        Raises:
            ConfigurationError: si el archivo no existe o no es una credencial valida
        """
        path = Path(credentials_path).expanduser()
        if not path.is_file():
            raise ConfigurationError(
                f"No existe el archivo de credenciales de Google: {path}",
                setting="GOOGLE_API_CREDENTIALS_PATH",
            )
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=SCOPES
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Credenciales de Google invalidas ({path}): {e}",
                setting="GOOGLE_API_CREDENTIALS_PATH",
            ) from e

        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        logger.info(f"Cliente de Google Sheets inicializado ({credentials.service_account_email})")
        return cls(service, credentials)

    def _thread_http(self) -> AuthorizedHttp:
        http = getattr(self._local, "http", None)
        if http is None:
            http = AuthorizedHttp(self._credentials, http=httplib2.Http())
            self._local.http = http
        return http

    def _execute_blocking(self, request: Any) -> Any:
        if self._credentials is None:
            # Sin credenciales todas las llamadas usan el Http del servicio
            with self._shared_http_lock:
                return request.execute()
        return request.execute(http=self._thread_http())

    async def _execute(self, request: Any, spreadsheet_id: str) -> Any:
        try:
            return await asyncio.to_thread(self._execute_blocking, request)
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            raise SheetSyncError(
                f"Google Sheets respondio {status}: {e.reason or e}",
                spreadsheet_id=spreadsheet_id,
            ) from e

    async def clear_range(self, spreadsheet_id: str, range_a1: str) -> None:
        request = self._service.spreadsheets().values().clear(
            spreadsheetId=spreadsheet_id,
            range=range_a1,
            body={},
        )
        await self._execute(request, spreadsheet_id)

    async def update_values(
        self,
        spreadsheet_id: str,
        range_a1: str,
        values: Sequence[Sequence[Any]],
    ) -> None:
        """
        Escribe valores a partir de range_a1.
        USER_ENTERED deja que Sheets interprete tipos (numeros, fechas).
        """
        body: dict[str, List[List[Any]]] = {"values": [list(row) for row in values]}
        request = self._service.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=range_a1,
            valueInputOption=VALUE_INPUT_OPTION,
            body=body,
        )
        await self._execute(request, spreadsheet_id)
