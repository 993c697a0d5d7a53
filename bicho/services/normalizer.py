"""Turn positioned extraction tokens into a canonical draw record."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from bicho.animals import DEFAULT_ANIMALS, Animal, AnimalTable
from bicho.errors import NormalizationRejected
from bicho.lotteries import LotteryId, lottery_key

logger = logging.getLogger(__name__)

MAX_PRIZES = 10


@dataclass(frozen=True)
class PrizeInfo:
    position: int
    value: str
    dezena: str
    centena: str
    animal: Animal


@dataclass(frozen=True)
class DrawRecord:
    """One lottery's result for one calendar day.

    ``prizes`` holds the 1st..nth prize in order; a ``None`` marks a position
    the source did not provide. Trailing empty positions are never stored.
    """

    lottery_id: str
    draw_date: date
    prizes: tuple[str | None, ...]
    source_url: str = ""

    @property
    def populated(self) -> tuple[str, ...]:
        return tuple(p for p in self.prizes if p is not None)

    @property
    def dezenas(self) -> tuple[str, ...]:
        return tuple(p[-2:] for p in self.populated)

    def animals(self, table: AnimalTable = DEFAULT_ANIMALS) -> tuple[Animal, ...]:
        return tuple(table.for_number(p) for p in self.populated)

    def details(self, table: AnimalTable = DEFAULT_ANIMALS) -> list[PrizeInfo]:
        out: list[PrizeInfo] = []
        for position, value in enumerate(self.prizes, start=1):
            if value is None:
                continue
            out.append(
                PrizeInfo(
                    position=position,
                    value=value,
                    dezena=value[-2:],
                    centena=value[-3:],
                    animal=table.for_number(value),
                )
            )
        return out


def normalize_token(token: str | None, digit_width: int) -> str | None:
    """Fix a raw token to ``digit_width`` digits, or ``None`` if unusable.

    Short tokens lost their leading zeros and are zero-filled; long ones keep
    their trailing ``digit_width`` digits.
    """

    if token is None:
        return None
    digits = str(token).strip()
    if not digits.isdigit():
        return None
    if len(digits) < digit_width:
        return digits.zfill(digit_width)
    return digits[-digit_width:]


class ResultNormalizer:
    """Build ``DrawRecord`` values using an explicit animal table."""

    def __init__(self, animals: AnimalTable = DEFAULT_ANIMALS) -> None:
        self._animals = animals

    @property
    def animals(self) -> AnimalTable:
        return self._animals

    def normalize(
        self,
        positions: Sequence[str | None],
        *,
        lottery_id: LotteryId | str,
        draw_date: date,
        digit_width: int = 4,
        prize_count: int | None = None,
        source_url: str = "",
    ) -> DrawRecord:
        cap = min(MAX_PRIZES, prize_count if prize_count is not None else len(positions))
        prizes = [normalize_token(token, digit_width) for token in list(positions)[:cap]]

        while prizes and prizes[-1] is None:
            prizes.pop()

        if not prizes:
            raise NormalizationRejected(
                f"No prize positions for {lottery_key(lottery_id)} on {draw_date.isoformat()}",
                details={"lottery_id": lottery_key(lottery_id), "source_url": source_url},
            )

        record = DrawRecord(
            lottery_id=lottery_key(lottery_id),
            draw_date=draw_date,
            prizes=tuple(prizes),
            source_url=source_url,
        )
        logger.debug(
            "Normalized %s %s: %s",
            record.lottery_id,
            draw_date.isoformat(),
            ", ".join(
                f"{p.position}º {p.value} ({p.animal.name})" for p in record.details(self._animals)
            ),
        )
        return record
