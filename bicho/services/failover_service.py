"""Per-lottery source failover.

For one ``(lottery, date)`` request the controller walks the configured URLs
in order (primary first, then backups), fetching and extracting each one at
most once. The first document that fills every expected prize position wins
and the remaining URLs are never touched. Any failed attempt, whether a
fetch error, an empty or partial extraction, or a page that breaks parsing,
just moves on to the next URL.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from bicho.errors import NormalizationRejected
from bicho.lotteries import LOTTERIES, LotteryConfig, LotteryId, lottery_key, parse_lottery_id
from bicho.services.extraction_service import Document, MultiStrategyExtractor, extract_draw_date
from bicho.services.fetcher import FetchErrorKind, Fetcher
from bicho.services.format_detector import FormatDetector, FormatGuess
from bicho.services.normalizer import DrawRecord, ResultNormalizer

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 20.0


class ControllerState(str, Enum):
    PENDING = "pending"
    TRYING_SOURCE = "trying_source"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class AttemptKind(str, Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    EMPTY = "empty"
    PARTIAL = "partial"
    ERROR = "error"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class SourceAttempt:
    index: int
    url: str
    kind: AttemptKind
    message: str = ""
    guess: FormatGuess | None = None
    populated: int = 0


@dataclass
class FailoverOutcome:
    lottery_id: str
    target_date: date | None
    state: ControllerState = ControllerState.PENDING
    source_index: int | None = None
    record: DrawRecord | None = None
    attempts: list[SourceAttempt] = field(default_factory=list)
    last_error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is ControllerState.SUCCEEDED

    @property
    def tried_urls(self) -> list[str]:
        return [a.url for a in self.attempts]


class SourceFailoverController:
    """Sequential state machine over one lottery's URL list."""

    def __init__(
        self,
        fetcher: Fetcher,
        detector: FormatDetector | None = None,
        extractor: MultiStrategyExtractor | None = None,
        normalizer: ResultNormalizer | None = None,
        lotteries: Mapping[LotteryId, LotteryConfig] = LOTTERIES,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        self._fetcher = fetcher
        self._detector = detector or FormatDetector()
        self._extractor = extractor or MultiStrategyExtractor()
        self._normalizer = normalizer or ResultNormalizer()
        self._lotteries = lotteries
        self._timeout = float(timeout)

    def run(self, lottery_id: LotteryId | str, target_date: date | None = None) -> FailoverOutcome:
        """Try each URL once until a complete result is found.

        When ``target_date`` is omitted the draw date is read from the page,
        falling back to today.
        """

        lid = lottery_id if isinstance(lottery_id, LotteryId) else parse_lottery_id(lottery_id)
        config = self._lotteries[lid]
        outcome = FailoverOutcome(lottery_id=lottery_key(lid), target_date=target_date)

        for index, url in enumerate(config.urls):
            outcome.state = ControllerState.TRYING_SOURCE
            outcome.source_index = index
            try:
                attempt, record = self._attempt(config, index, url, target_date)
            except Exception as exc:
                # A page that breaks parsing only costs this source.
                logger.exception("%s: unexpected error on source %s", outcome.lottery_id, url)
                message = str(exc) or type(exc).__name__
                attempt = SourceAttempt(index=index, url=url, kind=AttemptKind.ERROR, message=message)
                record = None
            outcome.attempts.append(attempt)

            if record is not None:
                outcome.state = ControllerState.SUCCEEDED
                outcome.record = record
                logger.info(
                    "%s: result from source %s/%s (%s)",
                    outcome.lottery_id,
                    index + 1,
                    len(config.urls),
                    url,
                )
                return outcome

            outcome.last_error = f"{attempt.kind.value}: {attempt.message}" if attempt.message else attempt.kind.value
            logger.info("%s: source %s failed (%s)", outcome.lottery_id, url, outcome.last_error)

        outcome.state = ControllerState.EXHAUSTED
        outcome.source_index = None
        logger.warning(
            "%s: all %s sources exhausted, last error: %s",
            outcome.lottery_id,
            len(config.urls),
            outcome.last_error,
        )
        return outcome

    def _attempt(
        self,
        config: LotteryConfig,
        index: int,
        url: str,
        target_date: date | None,
    ) -> tuple[SourceAttempt, DrawRecord | None]:
        fetched = self._fetcher.fetch(url, self._timeout)
        if not fetched.success:
            kind = AttemptKind.TIMEOUT if fetched.error_kind is FetchErrorKind.TIMEOUT else AttemptKind.TRANSPORT
            return SourceAttempt(index=index, url=url, kind=kind, message=fetched.message), None

        document = Document(url=url, markup=fetched.text)
        guess = self._detector.detect(document.text, config.lottery_id.value)
        extraction = self._extractor.extract(document, guess)

        if extraction.is_empty:
            return (
                SourceAttempt(index=index, url=url, kind=AttemptKind.EMPTY, message="no valid candidates", guess=guess),
                None,
            )
        if not extraction.is_complete:
            return (
                SourceAttempt(
                    index=index,
                    url=url,
                    kind=AttemptKind.PARTIAL,
                    message=f"{extraction.populated}/{guess.expected_prize_count} positions",
                    guess=guess,
                    populated=extraction.populated,
                ),
                None,
            )

        draw_date = target_date or extract_draw_date(document.text) or date.today()
        try:
            record = self._normalizer.normalize(
                extraction.positions,
                lottery_id=config.lottery_id,
                draw_date=draw_date,
                digit_width=guess.digit_width,
                prize_count=guess.expected_prize_count,
                source_url=url,
            )
        except NormalizationRejected as exc:
            return SourceAttempt(index=index, url=url, kind=AttemptKind.EMPTY, message=exc.message, guess=guess), None

        return (
            SourceAttempt(
                index=index,
                url=url,
                kind=AttemptKind.SUCCEEDED,
                guess=guess,
                populated=extraction.populated,
            ),
            record,
        )
