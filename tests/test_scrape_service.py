import threading
from datetime import date

from bicho.errors import StoreUnavailableError
from bicho.lotteries import LOTTERIES, LotteryId
from bicho.services.failover_service import SourceFailoverController
from bicho.services.scrape_service import ScrapeRunService

from helpers import FakeFetcher, result_page

DAY = date(2026, 10, 19)
FEDERAL_URL = LOTTERIES[LotteryId.FEDERAL].primary_url
NACIONAL_BACKUP = LOTTERIES[LotteryId.NACIONAL].backup_urls[0]


class _DownRepository:
    def upsert(self, record):
        raise StoreUnavailableError(details="database is down")


def _service(fetcher, repo, **kwargs):
    return ScrapeRunService(SourceFailoverController(fetcher, timeout=1.0), repo, max_workers=2, **kwargs)


def test_one_lottery_failing_does_not_stop_the_others(repo):
    fetcher = FakeFetcher(
        {
            FEDERAL_URL: result_page(["1234", "5678", "9012", "3456", "7890"]),
            NACIONAL_BACKUP: result_page(["1111", "2222", "3333", "4444", "5555"], title="Resultado Nacional"),
        }
    )
    report = _service(fetcher, repo).run(["FEDERAL", LotteryId.NACIONAL, "LOTECE"], target_date=DAY)

    assert sorted(report.succeeded) == ["FEDERAL", "NACIONAL"]
    assert list(report.exhausted) == ["LOTECE"]
    assert report.exhausted["LOTECE"].startswith("transport")
    assert report.draws_written == 2
    assert report.draws_created == 2
    assert repo.get("NACIONAL", DAY).source_url == NACIONAL_BACKUP


def test_rerun_updates_instead_of_duplicating(repo):
    fetcher = FakeFetcher({FEDERAL_URL: result_page(["1234", "5678", "9012", "3456", "7890"])})
    service = _service(fetcher, repo)
    service.run(["FEDERAL"], target_date=DAY)
    report = service.run(["FEDERAL"], target_date=DAY)

    assert report.draws_written == 1
    assert report.draws_created == 0
    assert repo.count("FEDERAL") == 1


def test_store_failure_is_reported_per_lottery():
    fetcher = FakeFetcher({FEDERAL_URL: result_page(["1234", "5678", "9012", "3456", "7890"])})
    report = _service(fetcher, _DownRepository()).run(["FEDERAL", "LOTECE"], target_date=DAY)

    assert report.store_failed == {"FEDERAL": "database is down"}
    assert "LOTECE" in report.exhausted
    assert report.draws_written == 0


def test_cancelled_run_starts_nothing(repo):
    fetcher = FakeFetcher()
    cancel = threading.Event()
    cancel.set()
    report = _service(fetcher, repo, cancel_event=cancel).run(["FEDERAL", "LOTECE"], target_date=DAY)

    assert sorted(report.cancelled) == ["FEDERAL", "LOTECE"]
    assert fetcher.calls == []


def test_duplicate_ids_run_once(repo):
    fetcher = FakeFetcher({FEDERAL_URL: result_page(["1234", "5678", "9012", "3456", "7890"])})
    done = []
    report = _service(fetcher, repo).run(["FEDERAL", "federal"], target_date=DAY, on_done=done.append)
    assert report.succeeded == ["FEDERAL"]
    assert done == ["FEDERAL"]
    assert fetcher.calls == [FEDERAL_URL]


def test_report_as_dict():
    fetcher = FakeFetcher()
    report = _service(fetcher, _DownRepository()).run(["LOTEP"], target_date=DAY)
    data = report.as_dict()
    assert data["target_date"] == "2026-10-19"
    assert data["succeeded"] == []
    assert set(data["exhausted"]) == {"LOTEP"}
