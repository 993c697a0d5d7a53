"""Overdue ("atrasados") analysis over a lottery's draw history.

For each taxonomy (dezena, centena, milhar, animal) every possible value is
evaluated, not just the ones that were drawn, so a value that never appeared
is reported as overdue since the start of the recorded history.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from sqlalchemy.orm import Session

from bicho.animals import DEFAULT_ANIMALS, AnimalTable
from bicho.errors import ValidationError
from bicho.lotteries import LotteryId, lottery_key
from bicho.repositories.draw_result_repository import DrawResultRepository
from bicho.services.normalizer import DrawRecord

logger = logging.getLogger(__name__)

NEVER = "never"
DEFAULT_MIN_DRAWS = 10


class Taxonomy(str, Enum):
    DEZENA = "dezena"
    CENTENA = "centena"
    MILHAR = "milhar"
    ANIMAL = "animal"


_WIDTHS = {Taxonomy.DEZENA: 2, Taxonomy.CENTENA: 3, Taxonomy.MILHAR: 4}


@dataclass(frozen=True)
class OverdueRecord:
    taxonomy: Taxonomy
    value: str
    draws_since_last_seen: int
    last_seen_date: date | None = None
    last_position: int | None = None
    group: int | None = None

    @property
    def never_seen(self) -> bool:
        return self.last_seen_date is None

    @property
    def last_seen_label(self) -> str:
        return self.last_seen_date.isoformat() if self.last_seen_date else NEVER


@dataclass(frozen=True)
class OverdueReport:
    lottery_id: str
    total_draws: int
    min_draws: int
    lists: dict[Taxonomy, list[OverdueRecord]] = field(default_factory=dict)

    def __getitem__(self, taxonomy: Taxonomy | str) -> list[OverdueRecord]:
        return self.lists[Taxonomy(taxonomy)]

    def top(self, taxonomy: Taxonomy | str, n: int = 10) -> list[OverdueRecord]:
        return self[taxonomy][: max(0, int(n))]


@dataclass
class _Seen:
    index: int
    draw_date: date
    position: int


class StalenessAnalyzer:
    """Dense staleness pass over the full value universe of each taxonomy."""

    def __init__(self, animals: AnimalTable = DEFAULT_ANIMALS) -> None:
        self._animals = animals

    def universe(self, taxonomy: Taxonomy | str) -> list[str]:
        """Every value of a taxonomy in its natural order."""

        taxonomy = Taxonomy(taxonomy)
        if taxonomy is Taxonomy.ANIMAL:
            return self._animals.names
        width = _WIDTHS[taxonomy]
        return [f"{n:0{width}d}" for n in range(10**width)]

    def last_seen(self, history: Sequence[DrawRecord]) -> dict[Taxonomy, dict[str, _Seen]]:
        """Single forward pass; later occurrences overwrite earlier ones."""

        seen: dict[Taxonomy, dict[str, _Seen]] = {t: {} for t in Taxonomy}
        for index, draw in enumerate(history):
            for position, value in enumerate(draw.prizes, start=1):
                if not value or not value.isdigit():
                    continue
                mark = _Seen(index=index, draw_date=draw.draw_date, position=position)
                seen[Taxonomy.DEZENA][value[-2:].zfill(2)] = mark
                if len(value) >= 3:
                    seen[Taxonomy.CENTENA][value[-3:]] = mark
                if len(value) >= 4:
                    seen[Taxonomy.MILHAR][value[-4:]] = mark
                seen[Taxonomy.ANIMAL][self._animals.for_number(value).name] = mark
        return seen

    def analyze(
        self,
        history: Sequence[DrawRecord],
        min_draws: int = 0,
        lottery_id: LotteryId | str = "",
    ) -> OverdueReport:
        """Ranked overdue lists; ``history`` must be ordered oldest first."""

        if int(min_draws) < 0:
            raise ValidationError("min_draws must be >= 0")

        total = len(history)
        seen = self.last_seen(history)
        groups = {a.name: a.group for a in self._animals}

        lists: dict[Taxonomy, list[OverdueRecord]] = {}
        for taxonomy in Taxonomy:
            marks = seen[taxonomy]
            records: list[OverdueRecord] = []
            for value in self.universe(taxonomy):
                mark = marks.get(value)
                if mark is None:
                    since, last_date, position = total, None, None
                else:
                    since, last_date, position = total - 1 - mark.index, mark.draw_date, mark.position
                if since < min_draws:
                    continue
                records.append(
                    OverdueRecord(
                        taxonomy=taxonomy,
                        value=value,
                        draws_since_last_seen=since,
                        last_seen_date=last_date,
                        last_position=position,
                        group=groups.get(value) if taxonomy is Taxonomy.ANIMAL else None,
                    )
                )
            # list.sort is stable: ties keep the universe order.
            records.sort(key=lambda r: r.draws_since_last_seen, reverse=True)
            lists[taxonomy] = records

        return OverdueReport(
            lottery_id=lottery_key(lottery_id) if lottery_id else "",
            total_draws=total,
            min_draws=int(min_draws),
            lists=lists,
        )


class OverdueService:
    """Load a lottery's history from the draw store and analyze it."""

    def __init__(
        self,
        repository: DrawResultRepository | None = None,
        analyzer: StalenessAnalyzer | None = None,
    ) -> None:
        self._repo = repository or DrawResultRepository()
        self._analyzer = analyzer or StalenessAnalyzer()

    def overdue(
        self,
        lottery_id: LotteryId | str,
        *,
        min_draws: int = DEFAULT_MIN_DRAWS,
        session: Session | None = None,
    ) -> OverdueReport:
        history = self._repo.list_history(lottery_id, session=session)
        report = self._analyzer.analyze(history, min_draws=min_draws, lottery_id=lottery_id)
        logger.info(
            "Overdue for %s: %s draws, %s dezenas >= %s",
            report.lottery_id,
            report.total_draws,
            len(report[Taxonomy.DEZENA]),
            min_draws,
        )
        return report
