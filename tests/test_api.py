from datetime import date

import pytest

from bicho.lotteries import LOTTERIES, LotteryId
from bicho.repositories.draw_result_repository import repository_for_app

from helpers import FakeFetcher, draw, result_page

UPSTREAM = "https://upstream.example.com/federal"


@pytest.fixture
def seeded(app):
    with app.app_context():
        repo = repository_for_app()
        repo.upsert(draw("FEDERAL", date(2026, 10, 14), "1234", "5678", "9012", "3456", "7890", source_url=UPSTREAM))
        repo.upsert(draw("FEDERAL", date(2026, 10, 17), "1111", "2222", "3333", "4444", "5555", source_url=UPSTREAM))
        repo.upsert(draw("LOTECE", date(2026, 10, 17), "0001", "0002", source_url=UPSTREAM))
    return app


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["store"] == "ok"
    assert body["data"]["backend"] == "sql"
    assert body["data"]["draws"] == 0


def test_lotteries_hide_source_urls(client):
    resp = client.get("/lotteries")
    data = resp.get_json()["data"]
    assert len(data) == 11
    assert {"id", "name", "state", "schedule", "prizes", "digits"} == set(data[0])
    assert "http" not in resp.get_data(as_text=True)


def test_results_are_newest_first_and_masked(seeded):
    client = seeded.test_client()
    resp = client.get("/results?lottery=federal")
    assert resp.status_code == 200
    data = resp.get_json()["data"]

    assert [r["draw_date"] for r in data] == ["2026-10-17", "2026-10-14"]
    assert all(r["source"] == "sistema" for r in data)
    first = data[0]["prizes"][0]
    assert first == {"position": 1, "value": "1111", "group": "03", "animal": "Burro"}
    assert "upstream.example.com" not in resp.get_data(as_text=True)


def test_results_limit_and_filters(seeded):
    client = seeded.test_client()
    assert len(client.get("/results").get_json()["data"]) == 3
    assert len(client.get("/results?limit=1").get_json()["data"]) == 1

    resp = client.get("/results?limit=0")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "validation_error"

    resp = client.get("/results?lottery=NOPE")
    assert resp.status_code == 404


def test_overdue_lists_cover_every_value(seeded):
    client = seeded.test_client()
    resp = client.get("/overdue/FEDERAL?top=3")
    assert resp.status_code == 200
    data = resp.get_json()["data"]

    assert data["total_draws"] == 2
    assert data["counts"] == {"dezena": 100, "centena": 1000, "milhar": 10000, "animal": 25}
    assert len(data["dezenas"]) == 3
    top = data["dezenas"][0]
    assert top["draws_since_last_seen"] == 2
    assert top["last_seen"] == "never"


def test_overdue_min_draws_filters(seeded):
    client = seeded.test_client()
    data = client.get("/overdue/FEDERAL?min_draws=2").get_json()["data"]
    assert data["min_draws"] == 2
    assert all(r["draws_since_last_seen"] >= 2 for r in data["milhares"])
    assert data["counts"]["milhar"] == 10000 - 10

    assert client.get("/overdue/FEDERAL?min_draws=-1").status_code == 400


def test_overdue_unknown_lottery(client):
    resp = client.get("/overdue/atlantis")
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "not_found"


def test_suggestions(seeded):
    client = seeded.test_client()
    data = client.get("/suggestions/FEDERAL?mode=random&count=3").get_json()["data"]
    assert data["lottery_id"] == "FEDERAL"
    assert len(data["dezenas"]) == 3
    assert len(data["animais"]) == 3

    data = client.get("/suggestions/FEDERAL?count=2").get_json()["data"]
    assert [s["reason"] for s in data["dezenas"]] == ["never drawn in 2 draws"] * 2

    assert client.get("/suggestions/FEDERAL?mode=lucky").status_code == 400


def test_scrape_trigger_stores_results(app, client):
    url = LOTTERIES[LotteryId.FEDERAL].primary_url
    app.extensions["scrape_fetcher"] = FakeFetcher({url: result_page(["1234", "5678", "9012", "3456", "7890"])})

    resp = client.post("/scrape", json={"lotteries": ["FEDERAL", "LOTECE"], "date": "2026-10-19"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["succeeded"] == ["FEDERAL"]
    assert list(data["exhausted"]) == ["LOTECE"]
    assert data["draws_created"] == 1

    results = client.get("/results?lottery=FEDERAL").get_json()["data"]
    assert results[0]["draw_date"] == "2026-10-19"
    assert [p["value"] for p in results[0]["prizes"]] == ["1234", "5678", "9012", "3456", "7890"]


def test_scrape_rejects_unknown_lottery(client):
    resp = client.post("/scrape", json={"lotteries": ["ATLANTIS"]})
    assert resp.status_code == 400
    assert "lotteries" in resp.get_json()["error"]["details"]


def test_results_meta(seeded):
    body = seeded.test_client().get("/results?limit=2").get_json()
    assert body["meta"] == {"count": 2, "limit": 2}
