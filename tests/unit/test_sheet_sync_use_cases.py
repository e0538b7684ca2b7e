"""
Tests unitarios para TariffSheetSyncUseCase.

Google Sheets se reemplaza por un gateway fake que registra las llamadas
y puede fallar las primeras N veces.
"""
from datetime import date, datetime, timezone

import pytest

from tariffs_sync.application.use_cases.sheet_sync_use_cases import (
    SHEET_HEADERS,
    TariffSheetSyncUseCase,
    build_sheet_grid,
    retry_delay_seconds,
)
from tariffs_sync.domain.entities.tariff import SyncStatus, TariffRecord
from tariffs_sync.infrastructure.repositories.tariff_repository import TariffRepository
from tariffs_sync.shared.exceptions import SheetSyncError


DAY = date(2024, 3, 5)
NOW = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


class FakeSheets:
    """Gateway en memoria; falla las primeras `failures` escrituras."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.cleared = []
        self.updated = []

    async def clear_range(self, spreadsheet_id, range_a1):
        self.cleared.append((spreadsheet_id, range_a1))

    async def update_values(self, spreadsheet_id, range_a1, values):
        if self.failures > 0:
            self.failures -= 1
            raise SheetSyncError("quota exceeded", spreadsheet_id=spreadsheet_id)
        self.updated.append((spreadsheet_id, range_a1, [list(row) for row in values]))


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


async def seed(session_factory, records):
    async with session_factory() as session:
        await TariffRepository(session).upsert_many(records)
        await session.commit()


def make_use_case(session_factory, sheets, **kwargs):
    sleep = RecordingSleep()
    use_case = TariffSheetSyncUseCase(
        sheets=sheets,
        session_factory=session_factory,
        spreadsheet_id="sheet-1",
        sleep=sleep,
        **kwargs,
    )
    return use_case, sleep


class TestBuildSheetGrid:
    """Tests para build_sheet_grid."""

    def test_header_only_when_empty(self):
        assert build_sheet_grid([]) == [SHEET_HEADERS]

    def test_row_format(self):
        grid = build_sheet_grid([
            TariffRecord("Коледино", DAY, delivery_base=48, delivery_liter=11.2,
                         delivery_and_storage_expr=160, storage_base=0.1, storage_liter=None),
        ])

        assert grid[1] == ["05.03.2024", "Коледино", "48,00", "11,20", "160,00", "0,10", None]

    def test_retry_delay_grows(self):
        assert [retry_delay_seconds(a) for a in (1, 2, 3)] == [2.0, 4.0, 8.0]


class TestTariffSheetSyncUseCase:
    """Tests para TariffSheetSyncUseCase.sync()."""

    @pytest.mark.asyncio
    async def test_end_to_end_two_rows(self, session_factory):
        await seed(session_factory, [
            TariffRecord("Казань", DAY, delivery_base=40, delivery_liter=12.5,
                         delivery_and_storage_expr=150, storage_base=0.08, storage_liter=0.08,
                         updated_at=NOW),
            TariffRecord("Коледино", DAY, delivery_base=48, delivery_liter=11.2,
                         delivery_and_storage_expr=160, storage_base=0.1, storage_liter=0.1,
                         updated_at=NOW),
        ])
        sheets = FakeSheets()
        use_case, sleep = make_use_case(session_factory, sheets)

        result = await use_case.sync()

        assert result.status is SyncStatus.SUCCESS
        assert result.attempts == 1
        assert result.rows == 2
        assert sleep.calls == []
        assert sheets.cleared == [("sheet-1", "stocks_coefs!A1:Z1000")]

        (spreadsheet_id, range_a1, grid), = sheets.updated
        assert spreadsheet_id == "sheet-1"
        assert range_a1 == "stocks_coefs!A1"
        assert grid == [
            ["Date", "Warehouse", "DeliveryBase", "DeliveryLiter",
             "DeliveryAndStorageExpr", "StorageBase", "StorageLiter"],
            ["05.03.2024", "Коледино", "48,00", "11,20", "160,00", "0,10", "0,10"],
            ["05.03.2024", "Казань", "40,00", "12,50", "150,00", "0,08", "0,08"],
        ]

    @pytest.mark.asyncio
    async def test_two_failures_then_success(self, session_factory):
        await seed(session_factory, [TariffRecord("A", DAY, delivery_liter=1.0, updated_at=NOW)])
        sheets = FakeSheets(failures=2)
        use_case, sleep = make_use_case(session_factory, sheets, max_retries=3)

        result = await use_case.sync()

        assert result.status is SyncStatus.SUCCESS
        assert result.attempts == 3
        assert len(sheets.cleared) == 3
        assert len(sheets.updated) == 1
        assert sleep.calls == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_all_attempts_fail_returns_failed(self, session_factory):
        sheets = FakeSheets(failures=10)
        use_case, sleep = make_use_case(session_factory, sheets, max_retries=3)

        result = await use_case.sync()

        assert result.status is SyncStatus.FAILED
        assert not result.ok
        assert result.attempts == 3
        assert result.error == "quota exceeded"
        assert sheets.updated == []
        assert sleep.calls == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_clear_range_is_widened_for_large_grids(self, session_factory):
        await seed(session_factory, [
            TariffRecord(f"Склад {i}", DAY, delivery_liter=float(i), updated_at=NOW)
            for i in range(5)
        ])
        sheets = FakeSheets()
        use_case, _ = make_use_case(session_factory, sheets, clear_range="A1:C3")

        await use_case.sync()

        assert sheets.cleared == [("sheet-1", "stocks_coefs!A1:G6")]

    @pytest.mark.asyncio
    async def test_custom_sheet_name_is_quoted(self, session_factory):
        sheets = FakeSheets()
        use_case, _ = make_use_case(session_factory, sheets, sheet_name="Тарифы WB")

        await use_case.sync()

        assert sheets.cleared == [("sheet-1", "'Тарифы WB'!A1:Z1000")]
        assert sheets.updated[0][1] == "'Тарифы WB'!A1"

    @pytest.mark.asyncio
    async def test_only_date_filters_rows(self, session_factory):
        await seed(session_factory, [
            TariffRecord("Hoy", DAY, delivery_liter=1.0, updated_at=NOW),
            TariffRecord("Ayer", date(2024, 3, 4), delivery_liter=0.5, updated_at=NOW),
        ])
        sheets = FakeSheets()
        use_case, _ = make_use_case(session_factory, sheets, only_date=DAY)

        result = await use_case.sync()

        assert result.rows == 1
        assert sheets.updated[0][2][1][1] == "Hoy"

    @pytest.mark.asyncio
    async def test_grid_is_written_at_clear_range_corner(self, session_factory):
        await seed(session_factory, [
            TariffRecord("Коледино", DAY, delivery_liter=1.0, updated_at=NOW),
        ])
        sheets = FakeSheets()
        use_case, _ = make_use_case(session_factory, sheets, clear_range="B2:Z1000")

        await use_case.sync()

        assert sheets.cleared == [("sheet-1", "stocks_coefs!B2:Z1000")]
        assert sheets.updated[0][1] == "stocks_coefs!B2"
