from datetime import date

import pytest

from bicho.db import create_session_factory
from bicho.errors import StoreUnavailableError
from bicho.repositories.draw_result_repository import DrawResultRepository

from helpers import draw

D1, D2, D3 = date(2026, 10, 17), date(2026, 10, 18), date(2026, 10, 19)


def test_upsert_same_key_keeps_only_the_latest(repo):
    first = draw("FEDERAL", D1, "1234", "5678", "9012", "3456", "7890", source_url="https://a")
    second = draw("FEDERAL", D1, "1111", "2222", "3333", "4444", "5555", source_url="https://b")

    assert repo.upsert(first) is True
    assert repo.upsert(second) is False

    assert repo.count("FEDERAL") == 1
    assert repo.get("FEDERAL", D1) == second


def test_upsert_replaces_whole_prize_list(repo):
    repo.upsert(draw("MALUQUINHA_RJ", D1, "1", "2", "3", "4", "5", "6", "7"))
    repo.upsert(draw("MALUQUINHA_RJ", D1, "0001", "0002"))
    assert repo.get("MALUQUINHA_RJ", D1).prizes == ("0001", "0002")


def test_history_is_oldest_first_and_per_lottery(repo):
    repo.upsert(draw("FEDERAL", D3, "3333"))
    repo.upsert(draw("FEDERAL", D1, "1111"))
    repo.upsert(draw("LOTECE", D2, "9999"))
    repo.upsert(draw("FEDERAL", D2, "2222"))

    history = repo.list_history("FEDERAL")
    assert [r.draw_date for r in history] == [D1, D2, D3]
    assert [r.prizes[0] for r in history] == ["1111", "2222", "3333"]


def test_list_recent_newest_first(repo):
    for day, value in ((D1, "1111"), (D2, "2222"), (D3, "3333")):
        repo.upsert(draw("FEDERAL", day, value))
    repo.upsert(draw("LOTECE", D3, "9999"))

    assert [r.draw_date for r in repo.list_recent("FEDERAL", limit=2)] == [D3, D2]
    assert len(repo.list_recent(limit=10)) == 4
    assert repo.count() == 4


def test_records_round_trip(repo):
    record = draw("LOTECE", D2, *[f"{n:04d}" for n in range(10)], source_url="https://lotece.test")
    repo.upsert(record)
    assert repo.get("LOTECE", D2) == record
    assert repo.get("LOTECE", D1) is None


def test_more_than_ten_prizes_is_refused(repo):
    with pytest.raises(ValueError):
        repo.upsert(draw("FEDERAL", D1, *["1234"] * 11))


def test_unreachable_database_surfaces_as_store_unavailable(tmp_path):
    broken = create_session_factory(f"sqlite:///{tmp_path / 'missing' / 'draws.db'}", create_tables=False)
    repo = DrawResultRepository(broken, backend="sql")
    with pytest.raises(StoreUnavailableError):
        repo.count()
    with pytest.raises(StoreUnavailableError):
        repo.upsert(draw("FEDERAL", D1, "1234"))
