"""
Tests del cliente de Google Sheets y de los helpers de notacion A1.

El servicio de googleapiclient se reemplaza por un Mock.
"""
import asyncio
import threading
import time
from unittest.mock import Mock

import pytest
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError

from tariffs_sync.infrastructure.external.google_sheets.sheets_client import (
    VALUE_INPUT_OPTION,
    GoogleSheetsClient,
    a1_range,
    column_index,
    column_letter,
    cover_range,
    quote_sheet_title,
    range_start,
)
from tariffs_sync.shared.exceptions import ConfigurationError, SheetSyncError


class TestA1Helpers:
    """Tests para los helpers de rangos A1."""

    @pytest.mark.parametrize("letters,index", [("A", 1), ("Z", 26), ("AA", 27), ("AZ", 52), ("ZZ", 702)])
    def test_column_index_and_letter(self, letters, index):
        assert column_index(letters) == index
        assert column_letter(index) == letters

    def test_cover_range_keeps_range_when_it_fits(self):
        assert cover_range("A1:Z1000", 3, 7) == "A1:Z1000"

    def test_cover_range_widens_rows_and_columns(self):
        assert cover_range("A1:Z1000", 1500, 7) == "A1:Z1500"
        assert cover_range("A1:C10", 2, 7) == "A1:G10"
        assert cover_range("B2:C3", 4, 4) == "B2:E5"

    def test_cover_range_rejects_garbage(self):
        with pytest.raises(ValueError):
            cover_range("A:Z", 1, 1)

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("stocks_coefs", "stocks_coefs"),
            ("Hoja 1", "'Hoja 1'"),
            ("O'Brien", "'O''Brien'"),
            ("", "''"),
        ],
    )
    def test_quote_sheet_title(self, title, expected):
        assert quote_sheet_title(title) == expected

    def test_a1_range(self):
        assert a1_range("stocks_coefs", "A1:Z1000") == "stocks_coefs!A1:Z1000"

    @pytest.mark.parametrize("range_spec,expected", [("A1:Z1000", "A1"), ("b2:z10", "B2")])
    def test_range_start(self, range_spec, expected):
        assert range_start(range_spec) == expected


class TestGoogleSheetsClient:
    """Tests para GoogleSheetsClient."""

    @pytest.fixture
    def service(self):
        return Mock()

    @pytest.mark.asyncio
    async def test_clear_range(self, service):
        client = GoogleSheetsClient(service)

        await client.clear_range("sheet-1", "stocks_coefs!A1:Z1000")

        values = service.spreadsheets.return_value.values.return_value
        values.clear.assert_called_once_with(
            spreadsheetId="sheet-1", range="stocks_coefs!A1:Z1000", body={}
        )
        values.clear.return_value.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_update_values_uses_user_entered(self, service):
        client = GoogleSheetsClient(service)

        await client.update_values("sheet-1", "stocks_coefs!A1", [("Date", "Warehouse"), ("05.03.2024", "A")])

        values = service.spreadsheets.return_value.values.return_value
        values.update.assert_called_once_with(
            spreadsheetId="sheet-1",
            range="stocks_coefs!A1",
            valueInputOption=VALUE_INPUT_OPTION,
            body={"values": [["Date", "Warehouse"], ["05.03.2024", "A"]]},
        )

    @pytest.mark.asyncio
    async def test_http_error_is_wrapped(self, service):
        values = service.spreadsheets.return_value.values.return_value
        values.clear.return_value.execute.side_effect = HttpError(
            Mock(status=403, reason="Forbidden"), b"forbidden"
        )
        client = GoogleSheetsClient(service)

        with pytest.raises(SheetSyncError) as exc_info:
            await client.clear_range("sheet-1", "stocks_coefs!A1:Z1000")

        assert "403" in exc_info.value.message
        assert exc_info.value.spreadsheet_id == "sheet-1"

    def test_missing_credentials_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            GoogleSheetsClient.from_service_account_file(str(tmp_path / "missing.json"))

    def test_invalid_credentials_file(self, tmp_path):
        path = tmp_path / "credentials.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            GoogleSheetsClient.from_service_account_file(str(path))


class TestGoogleSheetsClientConcurrency:
    """Publicaciones concurrentes sobre un mismo cliente (PUBLISH_CONCURRENTLY)."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_use_one_http_per_thread(self):
        service = Mock()
        barrier = threading.Barrier(2, timeout=5)
        seen = []

        def execute(**kwargs):
            # Ambas llamadas tienen que estar en vuelo al mismo tiempo
            barrier.wait()
            seen.append((threading.get_ident(), kwargs["http"]))
            return {}

        values = service.spreadsheets.return_value.values.return_value
        values.clear.return_value.execute.side_effect = execute
        client = GoogleSheetsClient(service, credentials=Mock())

        await asyncio.gather(
            client.clear_range("sheet-1", "stocks_coefs!A1:Z1000"),
            client.clear_range("sheet-2", "stocks_coefs!A1:Z1000"),
        )

        assert len(seen) == 2
        (thread_a, http_a), (thread_b, http_b) = seen
        assert thread_a != thread_b
        assert isinstance(http_a, AuthorizedHttp)
        assert isinstance(http_b, AuthorizedHttp)
        assert http_a is not http_b

    @pytest.mark.asyncio
    async def test_calls_without_credentials_are_serialized(self):
        service = Mock()
        lock = threading.Lock()
        state = {"active": 0, "max_active": 0}

        def execute(**kwargs):
            assert "http" not in kwargs
            with lock:
                state["active"] += 1
                state["max_active"] = max(state["max_active"], state["active"])
            time.sleep(0.05)
            with lock:
                state["active"] -= 1
            return {}

        values = service.spreadsheets.return_value.values.return_value
        values.clear.return_value.execute.side_effect = execute
        values.update.return_value.execute.side_effect = execute
        client = GoogleSheetsClient(service)

        await asyncio.gather(
            client.clear_range("sheet-1", "stocks_coefs!A1:Z1000"),
            client.update_values("sheet-2", "stocks_coefs!A1", [("Date",)]),
            client.clear_range("sheet-3", "stocks_coefs!A1:Z1000"),
        )

        assert state["max_active"] == 1
