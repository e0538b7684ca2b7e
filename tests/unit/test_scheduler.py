"""
Tests unitarios para TariffsSyncScheduler.

Los casos de uso y el AsyncIOScheduler se mockean: solo se verifica la
orquestacion del ciclo.
"""
import asyncio
from datetime import date
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from apscheduler.triggers.cron import CronTrigger

from tariffs_sync.application.use_cases.wb_tariffs_sync_use_cases import WBTariffsSyncUseCase
from tariffs_sync.core.scheduler import SYNC_JOB_ID, TariffsSyncScheduler
from tariffs_sync.domain.entities.tariff import SheetSyncResult, SyncStatus, TariffSyncResult
from tariffs_sync.infrastructure.external.wildberries import (
    WBCredentials,
    WBTariffsClient,
    build_http_client,
)


TODAY = date(2024, 3, 5)


def tariffs_ok():
    return TariffSyncResult(status=SyncStatus.SUCCESS, sync_date=TODAY, fetched=2, upserted=2)


def sheet_use_case(spreadsheet_id, status=SyncStatus.SUCCESS):
    use_case = Mock()
    use_case.sync = AsyncMock(
        return_value=SheetSyncResult(status=status, spreadsheet_id=spreadsheet_id, attempts=1)
    )
    return use_case


class TestTariffsSyncScheduler:
    """Tests para TariffsSyncScheduler."""

    @pytest.fixture
    def tariffs_sync(self):
        use_case = Mock()
        use_case.sync = AsyncMock(return_value=tariffs_ok())
        return use_case

    @pytest.fixture
    def apscheduler(self):
        scheduler = Mock()
        scheduler.running = True
        return scheduler

    # =========================================================================
    # run_cycle
    # =========================================================================

    @pytest.mark.asyncio
    async def test_run_cycle_publishes_once_per_spreadsheet_in_order(self, tariffs_sync, apscheduler):
        built = []

        def factory(spreadsheet_id):
            built.append(spreadsheet_id)
            return sheet_use_case(spreadsheet_id)

        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=factory,
            spreadsheet_ids=["a", "b", "c"],
            scheduler=apscheduler,
        )

        report = await scheduler.run_cycle()

        tariffs_sync.sync.assert_awaited_once()
        assert built == ["a", "b", "c"]
        assert [s.spreadsheet_id for s in report.sheets] == ["a", "b", "c"]
        assert report.ok

    @pytest.mark.asyncio
    async def test_run_cycle_swallows_exceptions(self, tariffs_sync, apscheduler):
        tariffs_sync.sync.side_effect = RuntimeError("boom")
        factory = Mock()

        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=factory,
            spreadsheet_ids=["a"],
            scheduler=apscheduler,
        )

        report = await scheduler.run_cycle()

        assert report.error == "boom"
        assert not report.ok
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_sheet_does_not_stop_other_sheets(self, tariffs_sync, apscheduler):
        use_cases = {
            "a": sheet_use_case("a", SyncStatus.FAILED),
            "b": sheet_use_case("b"),
        }
        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=use_cases.__getitem__,
            spreadsheet_ids=["a", "b"],
            scheduler=apscheduler,
        )

        report = await scheduler.run_cycle()

        use_cases["b"].sync.assert_awaited_once()
        assert [s.ok for s in report.sheets] == [False, True]
        assert not report.ok

    @pytest.mark.asyncio
    async def test_publish_concurrently_runs_all_sheets(self, tariffs_sync, apscheduler):
        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=sheet_use_case,
            spreadsheet_ids=["a", "b"],
            publish_concurrently=True,
            scheduler=apscheduler,
        )

        report = await scheduler.run_cycle()

        assert [s.spreadsheet_id for s in report.sheets] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_failed_fetch_still_publishes_every_sheet(self, session_factory, apscheduler):
        http = build_http_client(
            WBCredentials(api_key="wb-token"),
            base_url="https://wb.test/api/v1",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(
                    200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"
                )
            ),
        )
        tariffs_sync = WBTariffsSyncUseCase(
            client=WBTariffsClient(http, max_retries=0),
            session_factory=session_factory,
        )
        built = []

        def factory(spreadsheet_id):
            built.append(spreadsheet_id)
            return sheet_use_case(spreadsheet_id)

        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=factory,
            spreadsheet_ids=["a", "b"],
            scheduler=apscheduler,
        )

        report = await scheduler.run_cycle()

        assert report.error is None
        assert report.tariffs.status is SyncStatus.FAILED
        assert built == ["a", "b"]
        assert [s.ok for s in report.sheets] == [True, True]
        assert not report.ok

    # =========================================================================
    # start / shutdown
    # =========================================================================

    def test_start_registers_hourly_job(self, tariffs_sync, apscheduler):
        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=sheet_use_case,
            spreadsheet_ids=["a"],
            scheduler=apscheduler,
        )

        scheduler.start()

        apscheduler.add_job.assert_called_once()
        args, kwargs = apscheduler.add_job.call_args
        assert args[0] == scheduler.run_cycle
        assert isinstance(kwargs["trigger"], CronTrigger)
        assert kwargs["id"] == SYNC_JOB_ID
        assert kwargs["max_instances"] == 1
        assert kwargs["replace_existing"] is True
        apscheduler.start.assert_called_once()

    @pytest.mark.asyncio
    async def test_start_with_run_now_triggers_a_cycle(self, tariffs_sync, apscheduler):
        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=sheet_use_case,
            spreadsheet_ids=["a"],
            scheduler=apscheduler,
        )

        scheduler.start(run_now=True)
        await asyncio.wait_for(scheduler._startup_task, timeout=1)

        tariffs_sync.sync.assert_awaited_once()

    def test_shutdown_stops_running_scheduler(self, tariffs_sync, apscheduler):
        scheduler = TariffsSyncScheduler(
            tariffs_sync=tariffs_sync,
            sheet_sync_factory=sheet_use_case,
            spreadsheet_ids=["a"],
            scheduler=apscheduler,
        )

        scheduler.shutdown()
        apscheduler.shutdown.assert_called_once_with(wait=False)

        apscheduler.reset_mock()
        apscheduler.running = False
        scheduler.shutdown()
        apscheduler.shutdown.assert_not_called()
