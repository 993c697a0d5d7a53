"""Batch scrape runs across lotteries.

Lotteries are processed concurrently on a small thread pool; each lottery's
URL list is walked sequentially by its own failover controller. A failure in
one lottery (exhausted sources, store down) never aborts the others.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from bicho.errors import StoreUnavailableError
from bicho.lotteries import LOTTERIES, LotteryId, lottery_key, parse_lottery_id
from bicho.repositories.draw_result_repository import DrawResultRepository
from bicho.services.failover_service import FailoverOutcome, SourceFailoverController
from bicho.services.fetcher import Fetcher, HttpFetcher, ProxyRotator

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass
class RunReport:
    target_date: date | None = None
    succeeded: list[str] = field(default_factory=list)
    exhausted: dict[str, str] = field(default_factory=dict)
    store_failed: dict[str, str] = field(default_factory=dict)
    cancelled: list[str] = field(default_factory=list)
    draws_written: int = 0
    draws_created: int = 0
    outcomes: dict[str, FailoverOutcome] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "target_date": self.target_date.isoformat() if self.target_date else None,
            "succeeded": sorted(self.succeeded),
            "exhausted": dict(sorted(self.exhausted.items())),
            "store_failed": dict(sorted(self.store_failed.items())),
            "cancelled": sorted(self.cancelled),
            "draws_written": self.draws_written,
            "draws_created": self.draws_created,
        }


@dataclass(frozen=True)
class _LotteryRun:
    lottery_id: str
    status: str  # succeeded | exhausted | store_failed | cancelled
    message: str = ""
    created: bool = False
    outcome: FailoverOutcome | None = None


class ScrapeRunService:
    """Run the failover pipeline for many lotteries and store the results."""

    def __init__(
        self,
        controller: SourceFailoverController,
        repository: DrawResultRepository,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._controller = controller
        self._repo = repository
        self._max_workers = max(1, int(max_workers))
        self._cancel = cancel_event or threading.Event()

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        repository: DrawResultRepository,
        fetcher: Fetcher | None = None,
    ) -> "ScrapeRunService":
        if fetcher is None:
            rotator = ProxyRotator(
                config.get("PROXY_LIST") or (),
                enabled=bool(config.get("PROXY_ROTATION_ENABLED", False)),
            )
            fetcher = HttpFetcher(rotator=rotator)
        controller = SourceFailoverController(
            fetcher,
            timeout=float(config.get("FETCH_TIMEOUT_SECONDS", 20.0)),
        )
        return cls(
            controller,
            repository,
            max_workers=int(config.get("SCRAPE_MAX_WORKERS", DEFAULT_MAX_WORKERS)),
        )

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    def cancel(self) -> None:
        """Stop starting new lotteries; in-flight ones finish their attempt."""

        self._cancel.set()

    def run(
        self,
        lottery_ids: Iterable[LotteryId | str] | None = None,
        target_date: date | None = None,
        on_done: Callable[[str], None] | None = None,
    ) -> RunReport:
        ids: list[LotteryId] = []
        for raw in lottery_ids if lottery_ids is not None else LOTTERIES.keys():
            lid = raw if isinstance(raw, LotteryId) else parse_lottery_id(raw)
            if lid not in ids:
                ids.append(lid)

        report = RunReport(target_date=target_date)
        if not ids:
            return report

        logger.info("Scrape run: %s lotteries, %s workers", len(ids), self._max_workers)

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(ids)), thread_name_prefix="scrape") as pool:
            futures = {pool.submit(self._run_one, lid, target_date): lid for lid in ids}
            for future in as_completed(futures):
                key = lottery_key(futures[future])
                try:
                    result = future.result()
                except Exception as exc:  # contained per lottery
                    logger.exception("Scrape for %s crashed", key)
                    result = _LotteryRun(lottery_id=key, status="exhausted", message=f"error: {exc}")
                self._merge(report, result)
                if on_done is not None:
                    on_done(key)

        logger.info(
            "Scrape run done: %s ok, %s exhausted, %s store failures, %s cancelled, %s written",
            len(report.succeeded),
            len(report.exhausted),
            len(report.store_failed),
            len(report.cancelled),
            report.draws_written,
        )
        return report

    def _run_one(self, lottery_id: LotteryId, target_date: date | None) -> _LotteryRun:
        key = lottery_key(lottery_id)
        if self._cancel.is_set():
            return _LotteryRun(lottery_id=key, status="cancelled")

        outcome = self._controller.run(lottery_id, target_date)
        if not outcome.succeeded or outcome.record is None:
            return _LotteryRun(
                lottery_id=key,
                status="exhausted",
                message=outcome.last_error or "no sources",
                outcome=outcome,
            )

        try:
            created = self._repo.upsert(outcome.record)
        except StoreUnavailableError as exc:
            logger.error("Store unavailable for %s: %s", key, exc.details or exc.message)
            return _LotteryRun(
                lottery_id=key,
                status="store_failed",
                message=str(exc.details or exc.message),
                outcome=outcome,
            )

        return _LotteryRun(lottery_id=key, status="succeeded", created=created, outcome=outcome)

    @staticmethod
    def _merge(report: RunReport, result: _LotteryRun) -> None:
        if result.outcome is not None:
            report.outcomes[result.lottery_id] = result.outcome

        if result.status == "succeeded":
            report.succeeded.append(result.lottery_id)
            report.draws_written += 1
            report.draws_created += int(result.created)
        elif result.status == "store_failed":
            report.store_failed[result.lottery_id] = result.message
        elif result.status == "cancelled":
            report.cancelled.append(result.lottery_id)
        else:
            report.exhausted[result.lottery_id] = result.message
