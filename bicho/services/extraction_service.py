"""Multi-strategy extraction of prize numbers from result pages of unknown shape.

Every strategy is a plain function ``(Document) -> list[RawCandidate]``. The
extractor runs them in priority order (tabular, list, container, free text),
pools their candidates, drops duplicates and invalid tokens, and fits the
survivors onto the expected number of prize positions.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from functools import cached_property

from bs4 import BeautifulSoup, Tag

from bicho.services.format_detector import FormatGuess
from bicho.services.normalizer import normalize_token
from bicho.utils.text import collapse_ws, parse_markup, strip_dates_and_times

logger = logging.getLogger(__name__)


TOKEN_RE = re.compile(r"(?<!\d)\d{3,4}(?!\d)")
# R$ 1.200,00 / 18.000 / 1.000,50
MONEY_RE = re.compile(r"R\$\s*[\d.,]+|\b\d{1,3}(?:\.\d{3})+(?:,\d{2})?\b|\b\d+,\d{2}\b")
CONTAINER_HINT_RE = re.compile(
    r"result|resultado|premio|prêmio|prize|lottery|loteria|sorteio|bicho|milhar|animal|grupo|dezena",
    re.IGNORECASE,
)
CONTAINER_TAGS = ("div", "section", "article", "aside", "main")
FREE_TEXT_RE = re.compile(
    r"(?<!\d)(?P<pos>\d{1,2})\s?(?:[º°ª]|o\b)\s*(?:pr[êe]mio)?\s*[:\-–]?\s*"
    r"(?P<number>\d{3,4})(?!\d)",
    re.IGNORECASE,
)
BR_DATE_RE = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})\b")


@dataclass(frozen=True)
class RawCandidate:
    value: str
    strategy: str
    source_url: str = ""
    position: int | None = None


@dataclass
class Document:
    """One fetched page; parsed lazily and shared by all strategies."""

    url: str
    markup: str

    @cached_property
    def soup(self) -> BeautifulSoup:
        return parse_markup(self.markup)

    @cached_property
    def text(self) -> str:
        return collapse_ws(self.soup.get_text(" "))


Strategy = Callable[[Document], list[RawCandidate]]


def candidate_tokens(text: str) -> list[str]:
    """3-4 digit tokens in reading order, ignoring dates, hours and money."""

    cleaned = MONEY_RE.sub(" ", strip_dates_and_times(text))
    return TOKEN_RE.findall(cleaned)


def _tokens_to_candidates(texts: Sequence[str], strategy: str, url: str) -> list[RawCandidate]:
    out: list[RawCandidate] = []
    for text in texts:
        for token in candidate_tokens(text):
            out.append(RawCandidate(value=token, strategy=strategy, source_url=url))
    return out


def extract_tabular(document: Document) -> list[RawCandidate]:
    """Row by row: header and data cells joined, then tokenized."""

    rows: list[str] = []
    for tr in document.soup.find_all("tr"):
        cells = tr.find_all(["th", "td"])
        if not cells:
            continue
        rows.append(" ".join(collapse_ws(c.get_text(" ")) for c in cells))
    return _tokens_to_candidates(rows, "table", document.url)


def extract_list(document: Document) -> list[RawCandidate]:
    items = [collapse_ws(li.get_text(" ")) for li in document.soup.find_all("li")]
    return _tokens_to_candidates(items, "list", document.url)


def _looks_like_result_container(tag: Tag) -> bool:
    if tag.name not in CONTAINER_TAGS:
        return False
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    hint = " ".join([*classes, str(tag.get("id") or "")])
    return bool(hint.strip()) and bool(CONTAINER_HINT_RE.search(hint))


def extract_containers(document: Document) -> list[RawCandidate]:
    """Innermost block elements whose class/id names look result-related."""

    matches = document.soup.find_all(_looks_like_result_container)
    matched_ids = {id(m) for m in matches}
    innermost = [
        m for m in matches
        if not any(id(d) in matched_ids for d in m.find_all(list(CONTAINER_TAGS)))
    ]
    texts = [collapse_ws(m.get_text(" ")) for m in innermost]
    return _tokens_to_candidates(texts, "container", document.url)


def extract_free_text(document: Document) -> list[RawCandidate]:
    """``1º 1234`` / ``2o prêmio: 5678`` style runs scanned over the whole page text.

    Only the first run of positions is kept: a repeated position means the page
    moved on to another draw.
    """

    text = MONEY_RE.sub(" ", strip_dates_and_times(document.text))
    out: list[RawCandidate] = []
    seen_positions: set[int] = set()
    for match in FREE_TEXT_RE.finditer(text):
        position = int(match.group("pos"))
        if position in seen_positions:
            break
        seen_positions.add(position)
        out.append(
            RawCandidate(
                value=match.group("number"),
                strategy="text",
                source_url=document.url,
                position=position,
            )
        )
    out.sort(key=lambda c: c.position or 0)
    return out


STRUCTURED_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("table", extract_tabular),
    ("list", extract_list),
    ("container", extract_containers),
)
FALLBACK_STRATEGY: tuple[str, Strategy] = ("text", extract_free_text)


def is_valid_token(token: str, digit_width: int) -> bool:
    """Numeric, dezena in 0..99, length within one of the digit width."""

    if not token or not token.isdigit():
        return False
    if not (digit_width - 1 <= len(token) <= digit_width + 1):
        return False
    return 0 <= int(token[-2:]) <= 99


@dataclass(frozen=True)
class ExtractionResult:
    source_url: str
    guess: FormatGuess
    candidates: tuple[RawCandidate, ...]
    positions: tuple[str | None, ...]
    strategies_used: tuple[str, ...] = field(default_factory=tuple)

    @property
    def populated(self) -> int:
        return sum(1 for p in self.positions if p is not None)

    @property
    def is_empty(self) -> bool:
        return self.populated == 0

    @property
    def is_complete(self) -> bool:
        return bool(self.positions) and self.populated == len(self.positions)


class MultiStrategyExtractor:
    """Pool, validate and position candidates from every applicable strategy."""

    def __init__(
        self,
        structured: Sequence[tuple[str, Strategy]] = STRUCTURED_STRATEGIES,
        fallback: tuple[str, Strategy] | None = FALLBACK_STRATEGY,
    ) -> None:
        self._structured = tuple(structured)
        self._fallback = fallback

    @staticmethod
    def _dedupe_valid(candidates: Sequence[RawCandidate], digit_width: int) -> list[RawCandidate]:
        # "123" and "0123" are the same prize once zero-filled; first seen wins.
        seen: set[str] = set()
        out: list[RawCandidate] = []
        for c in candidates:
            if not is_valid_token(c.value, digit_width):
                continue
            key = normalize_token(c.value, digit_width)
            if key is None or key in seen:
                continue
            seen.add(key)
            out.append(c)
        return out

    def extract(self, document: Document, guess: FormatGuess) -> ExtractionResult:
        expected = max(0, int(guess.expected_prize_count))
        pooled: list[RawCandidate] = []
        used: list[str] = []

        for name, strategy in self._structured:
            found = strategy(document)
            if found:
                used.append(name)
                pooled.extend(found)

        valid = self._dedupe_valid(pooled, guess.digit_width)

        if self._fallback is not None and len(valid) < expected:
            name, strategy = self._fallback
            found = strategy(document)
            if found:
                used.append(name)
                pooled.extend(found)
                valid = self._dedupe_valid(pooled, guess.digit_width)

        chosen = tuple(valid[:expected])
        positions = tuple(c.value for c in chosen) + (None,) * (expected - len(chosen))

        logger.debug(
            "Extracted %s/%s positions from %s via %s",
            len(chosen),
            expected,
            document.url,
            ",".join(used) or "nothing",
        )
        return ExtractionResult(
            source_url=document.url,
            guess=guess,
            candidates=chosen,
            positions=positions,
            strategies_used=tuple(used),
        )


def extract_draw_date(text: str) -> date | None:
    """First plausible dd/mm/yyyy date in the text, if any."""

    for match in BR_DATE_RE.finditer(text or ""):
        day, month, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None
