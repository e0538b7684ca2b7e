"""
Scheduler del job: dispara un ciclo WB -> Postgres -> Sheets cada hora.

run_cycle() es el unico limite final de captura: cualquier excepcion que
escape de los casos de uso se loguea y se descarta para que el timer
siga disparando.
"""
import asyncio
from typing import Callable, List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from tariffs_sync.application.use_cases.sheet_sync_use_cases import TariffSheetSyncUseCase
from tariffs_sync.application.use_cases.wb_tariffs_sync_use_cases import WBTariffsSyncUseCase
from tariffs_sync.domain.entities.tariff import CycleReport, SheetSyncResult


SYNC_JOB_ID = "wb_tariffs_sync"
DEFAULT_CRON = "0 * * * *"

SheetSyncFactory = Callable[[str], TariffSheetSyncUseCase]


class TariffsSyncScheduler:
    """
    Orquesta los ciclos de sincronizacion sobre un AsyncIOScheduler.

    Uso:
        scheduler = TariffsSyncScheduler(
            tariffs_sync=wb_use_case,
            sheet_sync_factory=lambda sid: TariffSheetSyncUseCase(...),
            spreadsheet_ids=settings.spreadsheet_ids,
        )
        scheduler.start()
    """

    def __init__(
        self,
        *,
        tariffs_sync: WBTariffsSyncUseCase,
        sheet_sync_factory: SheetSyncFactory,
        spreadsheet_ids: Sequence[str],
        cron: str = DEFAULT_CRON,
        publish_concurrently: bool = False,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        self._tariffs_sync = tariffs_sync
        self._sheet_sync_factory = sheet_sync_factory
        self._spreadsheet_ids = list(spreadsheet_ids)
        self._cron = cron
        self._publish_concurrently = publish_concurrently
        self._scheduler = scheduler or AsyncIOScheduler(timezone="UTC")
        self._startup_task: Optional[asyncio.Task] = None

    async def _publish(self) -> List[SheetSyncResult]:
        if self._publish_concurrently:
            return list(
                await asyncio.gather(
                    *(self._sheet_sync_factory(sid).sync() for sid in self._spreadsheet_ids)
                )
            )

        results: List[SheetSyncResult] = []
        for spreadsheet_id in self._spreadsheet_ids:
            results.append(await self._sheet_sync_factory(spreadsheet_id).sync())
        return results

    async def run_cycle(self) -> CycleReport:
        """
        Un ciclo completo: tarifas WB -> DB, luego DB -> cada hoja.
        Nunca lanza excepciones.
        """
        logger.info("Ejecutando job horario: sync de tarifas WB y actualizacion de Google Sheets")
        report = CycleReport()

        try:
            report.tariffs = await self._tariffs_sync.sync()
            logger.info(
                f"Tarifas WB: status={report.tariffs.status.value}, "
                f"upserted={report.tariffs.upserted}"
            )
            report.sheets = await self._publish()
        except Exception as e:
            report.error = str(e) or type(e).__name__
            logger.opt(exception=e).error(f"Error en el ciclo de sincronizacion: {report.error}")
            return report

        failed = [s.spreadsheet_id for s in report.sheets if not s.ok]
        if failed:
            logger.warning(f"Ciclo terminado con hojas fallidas: {', '.join(failed)}")
        else:
            logger.info(f"Ciclo terminado: {len(report.sheets)} hojas actualizadas")
        return report

    def start(self, *, run_now: bool = False) -> None:
        """
        Registra el job cron y arranca el scheduler.
        Debe llamarse con un event loop corriendo.
        """
        self._scheduler.add_job(
            self.run_cycle,
            trigger=CronTrigger.from_crontab(self._cron, timezone="UTC"),
            id=SYNC_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        logger.info(f"Job '{SYNC_JOB_ID}' programado con cron '{self._cron}'")

        if run_now:
            self._startup_task = asyncio.get_running_loop().create_task(self.run_cycle())

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler detenido")
