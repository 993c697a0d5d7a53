"""Scrape today's (or a given day's) results for all or some lotteries.

Usage:
  python scripts/scrape_draws.py
  python scripts/scrape_draws.py --lottery FEDERAL --lottery LOTECE --date 2024-05-10
  python scripts/scrape_draws.py --database-url sqlite:///./bicho.db --workers 2
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
import sys
from collections.abc import Sequence
from datetime import date

from dotenv import load_dotenv
from tqdm import tqdm

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from bicho.config import parse_proxy_list, resolve_database_url, resolve_db_backend
from bicho.db import connect_mongo, create_session_factory
from bicho.lotteries import LOTTERIES, parse_lottery_id
from bicho.logging_config import configure_logging
from bicho.repositories.draw_result_repository import DrawResultRepository
from bicho.services.scrape_service import ScrapeRunService

logger = logging.getLogger(__name__)


def _load_env() -> None:
    load_dotenv()
    p = PROJECT_ROOT / ".env.local"
    if p.exists():
        load_dotenv(dotenv_path=p, override=True)


def _build_repository(database_url: str | None) -> DrawResultRepository:
    if resolve_db_backend() == "mongo" and not database_url:
        db = connect_mongo(
            os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            os.getenv("MONGODB_DB", "bicho"),
        )
        return DrawResultRepository(backend="mongo", mongo_db=db)
    return DrawResultRepository(create_session_factory(database_url or resolve_database_url()), backend="sql")


def main(argv: Sequence[str] | None = None) -> int:
    """Run one scrape batch and print a summary."""

    parser = argparse.ArgumentParser(description="Scrape jogo do bicho results into the draw store")
    parser.add_argument(
        "--lottery",
        dest="lotteries",
        action="append",
        default=None,
        help="Lottery id (repeatable, default: all)",
    )
    parser.add_argument("--date", dest="target_date", type=date.fromisoformat, default=None)
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, default=None)
    parser.add_argument("--workers", dest="workers", type=int, default=None)
    parser.add_argument(
        "--database-url",
        dest="database_url",
        type=str,
        default=None,
        help="Override DB connection string (e.g. sqlite:///./bicho.db)",
    )
    args = parser.parse_args(argv)

    _load_env()
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    try:
        lottery_ids = [parse_lottery_id(x) for x in args.lotteries] if args.lotteries else list(LOTTERIES)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    config = {
        "FETCH_TIMEOUT_SECONDS": args.timeout_seconds or float(os.getenv("FETCH_TIMEOUT_SECONDS", "20")),
        "SCRAPE_MAX_WORKERS": args.workers or int(os.getenv("SCRAPE_MAX_WORKERS", "4")),
        "PROXY_LIST": parse_proxy_list(os.getenv("PROXY_LIST")),
        "PROXY_ROTATION_ENABLED": os.getenv("PROXY_ROTATION_ENABLED", "").lower() in ("1", "true", "yes", "on"),
    }
    service = ScrapeRunService.from_config(config, _build_repository(args.database_url))

    with tqdm(total=len(lottery_ids), desc="Scraping") as bar:
        try:
            report = service.run(lottery_ids, target_date=args.target_date, on_done=lambda _lid: bar.update(1))
        except KeyboardInterrupt:
            service.cancel()
            raise

    for lid, err in report.exhausted.items():
        logger.warning("%s exhausted: %s", lid, err)
    for lid, err in report.store_failed.items():
        logger.error("%s store failure: %s", lid, err)
    logger.info(
        "Succeeded %s/%s lotteries, %s draws written (%s new)",
        len(report.succeeded),
        len(lottery_ids),
        report.draws_written,
        report.draws_created,
    )
    return 0 if not report.store_failed else 1


if __name__ == "__main__":
    raise SystemExit(main())
