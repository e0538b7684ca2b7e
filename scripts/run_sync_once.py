#!/usr/bin/env python
"""
CLI: ejecuta un solo ciclo WB -> Postgres -> Google Sheets y termina.

Util para pruebas manuales o para correr el job desde cron/systemd timer
en lugar del scheduler interno.

Ejecucion:
  python scripts/run_sync_once.py
  python scripts/run_sync_once.py --only-fetch
  python scripts/run_sync_once.py --only-publish --spreadsheet-id <ID>
  python scripts/run_sync_once.py --only-publish --date 2024-03-05
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env", override=False)

from tariffs_sync.application.use_cases.sheet_sync_use_cases import TariffSheetSyncUseCase  # noqa: E402
from tariffs_sync.core.config import get_settings  # noqa: E402
from tariffs_sync.core.events import build_dependencies, shutdown  # noqa: E402
from tariffs_sync.core.logging import configure_logging  # noqa: E402
from tariffs_sync.shared.utils.datetime_utils import parse_iso_date  # noqa: E402


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync unico de tarifas WB")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--only-fetch", action="store_true", help="Solo WB -> Postgres")
    group.add_argument("--only-publish", action="store_true", help="Solo Postgres -> Google Sheets")
    parser.add_argument(
        "--spreadsheet-id",
        action="append",
        default=None,
        help="Publica solo en este ID (se puede repetir; default: GOOGLE_SHEETS_IDS)",
    )
    parser.add_argument("--date", type=str, default=None, help="Publica solo las tarifas de este dia (YYYY-MM-DD)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Mostrar mensajes de debug")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    container = build_dependencies(settings)

    only_date = None
    if args.date:
        only_date = parse_iso_date(args.date)
        if only_date is None:
            logger.error(f"Fecha invalida: {args.date}")
            return 2

    ok = True
    try:
        if not args.only_publish:
            result = await container.tariffs_sync.sync()
            logger.info(f"Tarifas WB: status={result.status.value}, upserted={result.upserted}")
            ok = ok and result.ok

        if not args.only_fetch:
            for spreadsheet_id in args.spreadsheet_id or settings.spreadsheet_ids:
                sheet_result = await TariffSheetSyncUseCase(
                    sheets=container.sheets,
                    session_factory=container.session_factory,
                    spreadsheet_id=spreadsheet_id,
                    sheet_name=settings.SHEET_NAME,
                    max_retries=settings.SHEET_MAX_RETRIES,
                    clear_range=settings.SHEET_CLEAR_RANGE,
                    only_date=only_date,
                ).sync()
                ok = ok and sheet_result.ok
    finally:
        await shutdown(container)

    return 0 if ok else 1


def main() -> None:
    args = parse_args()

    settings = get_settings()
    if args.verbose:
        settings = settings.model_copy(update={"LOG_LEVEL": "DEBUG"})
    configure_logging(settings)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
