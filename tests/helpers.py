"""Shared test doubles and page builders (no network)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from bicho.services.fetcher import FetchErrorKind, FetchResult
from bicho.services.normalizer import DrawRecord


class FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail as transport errors."""

    def __init__(self, pages: dict[str, str | FetchResult] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[str] = []
        self.timeouts: list[float] = []

    def fetch(self, url: str, timeout: float) -> FetchResult:
        self.calls.append(url)
        self.timeouts.append(timeout)
        page = self.pages.get(url)
        if page is None:
            return FetchResult.failed(url, FetchErrorKind.TRANSPORT, "connection refused")
        if isinstance(page, FetchResult):
            return page
        return FetchResult.ok(url, page)


def result_page(prizes: Sequence[str], *, title: str = "Resultado Federal", day: str = "19/10/2026") -> str:
    rows = "\n".join(
        f"<tr><td>{i}º Prêmio</td><td>{value}</td></tr>" for i, value in enumerate(prizes, start=1)
    )
    return f"""
    <html><head><title>{title}</title><script>var x = 1234;</script></head>
    <body>
      <h1>{title} {day}</h1>
      <table>
        <tr><th>Prêmio</th><th>Milhar</th></tr>
        {rows}
      </table>
      <footer>Atualizado às 20:00</footer>
    </body></html>
    """


def draw(lottery_id: str, day: date, *prizes: str, source_url: str = "https://example.com/x") -> DrawRecord:
    return DrawRecord(lottery_id=lottery_id, draw_date=day, prizes=tuple(prizes), source_url=source_url)
