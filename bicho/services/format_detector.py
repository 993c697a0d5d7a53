"""Best-effort inference of a result page's layout (prize count, digit width)."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from bicho.lotteries import FORMAT_KEYWORDS, KnownFormat
from bicho.utils.text import fold_accents

logger = logging.getLogger(__name__)


DEFAULT_PRIZE_COUNT = 5
DEFAULT_DIGIT_WIDTH = 4
DEFAULT_CONFIDENCE = 0.5
MIN_ORDINAL_OCCURRENCES = 3
KEYWORD_CONFIDENCE = 0.9
DIGIT_RULE_CONFIDENCE = 0.8


@dataclass(frozen=True)
class FormatGuess:
    expected_prize_count: int
    digit_width: int  # 3 | 4
    confidence: float
    rule: str = "default"


@dataclass(frozen=True)
class OrdinalRule:
    count: int
    confidence: float

    @property
    def pattern(self) -> re.Pattern[str]:
        # "10º", "10 °", "10ª", "10o" but never the tail of "110º"
        return re.compile(rf"(?<!\d){self.count}\s?(?:[º°ª]|o\b)")


ORDINAL_RULES: tuple[OrdinalRule, ...] = (
    OrdinalRule(count=10, confidence=0.9),
    OrdinalRule(count=7, confidence=0.9),
    OrdinalRule(count=5, confidence=0.8),
    OrdinalRule(count=1, confidence=0.7),
)

_NUMBER_RE = re.compile(r"\d+")


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(keyword)}(?!\w)")


class FormatDetector:
    """Apply ordered, weighted rules to page text.

    Rules, in order:
      1) ordinal-marker density (10, 7, 5, 1; at least 3 occurrences)
      2) 3- vs 4-digit token tally (one side must exceed twice the other)
      3) known keyword in the lottery id or the text, which overrides 1) and 2)

    Detection never fails; the confidence tells callers how much to trust it.
    """

    def __init__(
        self,
        keywords: Mapping[str, KnownFormat] = FORMAT_KEYWORDS,
        ordinal_rules: Sequence[OrdinalRule] = ORDINAL_RULES,
    ) -> None:
        self._keywords = []
        for kw, fmt in keywords.items():
            folded = fold_accents(kw)
            self._keywords.append((folded, _keyword_pattern(folded), fmt))
        self._ordinal_rules = sorted(ordinal_rules, key=lambda r: r.count, reverse=True)

    def detect(self, text: str, lottery_id: str = "") -> FormatGuess:
        text = text or ""
        prizes = DEFAULT_PRIZE_COUNT
        digits = DEFAULT_DIGIT_WIDTH
        confidence = DEFAULT_CONFIDENCE
        rule = "default"

        for ordinal in self._ordinal_rules:
            hits = len(ordinal.pattern.findall(text))
            if hits >= MIN_ORDINAL_OCCURRENCES:
                prizes = ordinal.count
                confidence = max(confidence, ordinal.confidence)
                rule = f"ordinal:{ordinal.count}"
                break

        tokens = _NUMBER_RE.findall(text)
        four = sum(1 for t in tokens if len(t) == 4)
        three = sum(1 for t in tokens if len(t) == 3)
        if four > three * 2:
            digits = 4
            confidence = max(confidence, DIGIT_RULE_CONFIDENCE)
            rule = f"{rule}+digits:4"
        elif three > four * 2:
            digits = 3
            confidence = max(confidence, DIGIT_RULE_CONFIDENCE)
            rule = f"{rule}+digits:3"

        known = self._match_keyword(lottery_id, text)
        if known is not None:
            keyword, fmt = known
            prizes, digits, confidence = fmt.prizes, fmt.digits, KEYWORD_CONFIDENCE
            rule = f"keyword:{keyword}"

        guess = FormatGuess(
            expected_prize_count=prizes,
            digit_width=digits,
            confidence=confidence,
            rule=rule,
        )
        logger.debug("Format for %s: %s", lottery_id or "?", guess)
        return guess

    def _match_keyword(self, lottery_id: str, text: str) -> tuple[str, KnownFormat] | None:
        # The identifier is checked against every keyword before the page text,
        # so navigation links to other lotteries cannot win over the id itself.
        ident = fold_accents(re.sub(r"[_\-]+", " ", str(lottery_id or "")))
        if ident:
            for keyword, pattern, fmt in self._keywords:
                if pattern.search(ident):
                    return keyword, fmt

        folded = fold_accents(text)
        for keyword, pattern, fmt in self._keywords:
            if pattern.search(folded):
                return keyword, fmt
        return None
