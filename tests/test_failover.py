from datetime import date

import pytest

from bicho.lotteries import LotteryConfig, LotteryId
from bicho.services.extraction_service import MultiStrategyExtractor
from bicho.services.failover_service import AttemptKind, ControllerState, SourceFailoverController
from bicho.services.fetcher import FetchErrorKind, FetchResult

from helpers import FakeFetcher, result_page

PRIMARY = "https://primary.test/federal"
BACKUP_1 = "https://backup1.test/federal"
BACKUP_2 = "https://backup2.test/federal"

LOTTERIES = {
    LotteryId.FEDERAL: LotteryConfig(
        lottery_id=LotteryId.FEDERAL,
        display_name="FEDERAL",
        state="BRASIL",
        schedule=("20:00",),
        primary_url=PRIMARY,
        backup_urls=(BACKUP_1, BACKUP_2),
    )
}
GOOD = result_page(["1234", "5678", "9012", "3456", "7890"])
DAY = date(2026, 10, 19)


def _controller(fetcher):
    return SourceFailoverController(fetcher, lotteries=LOTTERIES, timeout=3.0)


def test_stops_at_first_successful_source():
    fetcher = FakeFetcher({BACKUP_1: GOOD, BACKUP_2: GOOD})
    outcome = _controller(fetcher).run(LotteryId.FEDERAL, DAY)

    assert outcome.state is ControllerState.SUCCEEDED
    assert fetcher.calls == [PRIMARY, BACKUP_1]
    assert [a.kind for a in outcome.attempts] == [AttemptKind.TRANSPORT, AttemptKind.SUCCEEDED]
    assert outcome.record.prizes == ("1234", "5678", "9012", "3456", "7890")
    assert outcome.record.source_url == BACKUP_1
    assert outcome.record.draw_date == DAY
    assert fetcher.timeouts == [3.0, 3.0]


def test_primary_success_never_touches_backups():
    fetcher = FakeFetcher({PRIMARY: GOOD, BACKUP_1: GOOD})
    outcome = _controller(fetcher).run("federal", DAY)
    assert outcome.succeeded
    assert fetcher.calls == [PRIMARY]
    assert outcome.source_index == 0


def test_exhausted_after_timeout_empty_and_partial():
    fetcher = FakeFetcher(
        {
            PRIMARY: FetchResult.failed(PRIMARY, FetchErrorKind.TIMEOUT, "timeout after 3.0s"),
            BACKUP_1: "<html><body><p>Aguardando resultado</p></body></html>",
            BACKUP_2: result_page(["1234", "5678", "9012"]),
        }
    )
    outcome = _controller(fetcher).run(LotteryId.FEDERAL, DAY)

    assert outcome.state is ControllerState.EXHAUSTED
    assert outcome.record is None
    assert [a.kind for a in outcome.attempts] == [AttemptKind.TIMEOUT, AttemptKind.EMPTY, AttemptKind.PARTIAL]
    assert outcome.attempts[2].populated == 3
    assert outcome.last_error == "partial: 3/5 positions"
    assert fetcher.calls == [PRIMARY, BACKUP_1, BACKUP_2]
    assert outcome.tried_urls == fetcher.calls


def test_each_url_tried_once_when_all_fail():
    fetcher = FakeFetcher()
    outcome = _controller(fetcher).run(LotteryId.FEDERAL, DAY)
    assert outcome.state is ControllerState.EXHAUSTED
    assert fetcher.calls == [PRIMARY, BACKUP_1, BACKUP_2]
    assert outcome.tried_urls == fetcher.calls
    assert outcome.last_error == "transport: connection refused"


def test_draw_date_read_from_page_when_not_given():
    fetcher = FakeFetcher({PRIMARY: result_page(["1234", "5678", "9012", "3456", "7890"], day="18/10/2026")})
    outcome = _controller(fetcher).run(LotteryId.FEDERAL)
    assert outcome.record.draw_date == date(2026, 10, 18)


def test_unknown_lottery_is_rejected():
    with pytest.raises(ValueError):
        _controller(FakeFetcher()).run("MEGA_SENA", DAY)


class _BrokenOnPrimary(MultiStrategyExtractor):
    def extract(self, document, guess):
        if document.url == PRIMARY:
            raise RuntimeError("unexpected markup")
        return super().extract(document, guess)


def test_page_that_breaks_extraction_moves_on_to_backup():
    fetcher = FakeFetcher({PRIMARY: GOOD, BACKUP_1: GOOD})
    controller = SourceFailoverController(fetcher, extractor=_BrokenOnPrimary(), lotteries=LOTTERIES, timeout=3.0)
    outcome = controller.run(LotteryId.FEDERAL, DAY)

    assert outcome.succeeded
    assert outcome.record.source_url == BACKUP_1
    assert [a.kind for a in outcome.attempts] == [AttemptKind.ERROR, AttemptKind.SUCCEEDED]
    assert outcome.attempts[0].message == "unexpected markup"
