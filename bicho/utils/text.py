"""Markup/text helpers shared by the format detector and the extractor."""

from __future__ import annotations

import re
import unicodedata

from bs4 import BeautifulSoup

# dd/mm/yyyy, dd-mm-yy, dd.mm.yyyy and ISO yyyy-mm-dd
DATE_RE = re.compile(r"\b(?:\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}|\d{4}-\d{2}-\d{2})\b")
# 14:00, 14h, 14h30
TIME_RE = re.compile(r"\b\d{1,2}(?::\d{2}|h\d{0,2})\b", re.IGNORECASE)
WS_RE = re.compile(r"\s+")


def parse_markup(document: str) -> BeautifulSoup:
    """Parse HTML with lxml, dropping script/style/noscript blocks."""

    soup = BeautifulSoup(document or "", "lxml")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return soup


def fold_accents(text: str) -> str:
    """Lowercase and strip diacritics: "Paraíba" -> "paraiba"."""

    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()


def collapse_ws(text: str) -> str:
    return WS_RE.sub(" ", text or "").strip()


def strip_dates_and_times(text: str) -> str:
    """Blank out dates and clock times so years and hours never look like prizes."""

    text = DATE_RE.sub(" ", text or "")
    return TIME_RE.sub(" ", text)
