"""Suggestions ("palpites") built from overdue lists or at random."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from bicho.animals import DEFAULT_ANIMALS, AnimalTable
from bicho.errors import ValidationError
from bicho.services.overdue_service import OverdueRecord, OverdueReport, OverdueService, Taxonomy

MAX_PER_TAXONOMY = 25
SUGGESTION_MODES = ("overdue", "random", "mixed")


@dataclass(frozen=True)
class Suggestion:
    taxonomy: Taxonomy
    value: str
    reason: str
    group: str | None = None
    animal: str | None = None


@dataclass(frozen=True)
class SuggestionSet:
    dezenas: list[Suggestion] = field(default_factory=list)
    centenas: list[Suggestion] = field(default_factory=list)
    milhares: list[Suggestion] = field(default_factory=list)
    animais: list[Suggestion] = field(default_factory=list)
    lottery_id: str | None = None
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> dict:
        def _rows(items: list[Suggestion]) -> list[dict]:
            return [
                {
                    "type": s.taxonomy.value,
                    "value": s.value,
                    "group": s.group,
                    "animal": s.animal,
                    "reason": s.reason,
                }
                for s in items
            ]

        return {
            "lottery_id": self.lottery_id,
            "generated_at": self.generated_at.isoformat(),
            "dezenas": _rows(self.dezenas),
            "centenas": _rows(self.centenas),
            "milhares": _rows(self.milhares),
            "animais": _rows(self.animais),
        }


def _overdue_reason(record: OverdueRecord) -> str:
    if record.never_seen:
        return f"never drawn in {record.draws_since_last_seen} draws"
    return f"{record.draws_since_last_seen} draws overdue"


class SuggestionService:
    def __init__(
        self,
        overdue_service: OverdueService | None = None,
        animals: AnimalTable = DEFAULT_ANIMALS,
        rng: random.Random | None = None,
    ) -> None:
        self._overdue = overdue_service
        self._animals = animals
        self._rng = rng or random.Random()

    @staticmethod
    def _check_count(per_taxonomy: int) -> int:
        n = int(per_taxonomy)
        if not 1 <= n <= MAX_PER_TAXONOMY:
            raise ValidationError(f"per_taxonomy must be between 1 and {MAX_PER_TAXONOMY}")
        return n

    def _with_animal(self, taxonomy: Taxonomy, value: str, reason: str) -> Suggestion:
        animal = self._animals.for_number(value)
        return Suggestion(
            taxonomy=taxonomy,
            value=value,
            reason=reason,
            group=animal.group_label,
            animal=animal.name,
        )

    def _random_values(self, width: int, count: int) -> list[str]:
        out: list[str] = []
        while len(out) < count:
            value = f"{self._rng.randrange(10**width):0{width}d}"
            if value not in out:
                out.append(value)
        return out

    def at_random(self, per_taxonomy: int = 5) -> SuggestionSet:
        n = self._check_count(per_taxonomy)
        animals = self._rng.sample(list(self._animals), k=n)
        return SuggestionSet(
            dezenas=[Suggestion(Taxonomy.DEZENA, v, "random") for v in self._random_values(2, n)],
            centenas=[Suggestion(Taxonomy.CENTENA, v, "random") for v in self._random_values(3, n)],
            milhares=[self._with_animal(Taxonomy.MILHAR, v, "random") for v in self._random_values(4, n)],
            animais=[
                Suggestion(Taxonomy.ANIMAL, a.name, "random", group=a.group_label, animal=a.name)
                for a in animals
            ],
        )

    def from_overdue(self, report: OverdueReport, per_taxonomy: int = 5) -> SuggestionSet:
        """Top overdue values per taxonomy.

        Each top overdue animal also contributes one milhar ending in one of
        its dezenas, with random leading digits.
        """

        n = self._check_count(per_taxonomy)

        milhares = [
            self._with_animal(Taxonomy.MILHAR, r.value, _overdue_reason(r))
            for r in report.top(Taxonomy.MILHAR, n)
        ]
        taken = {s.value for s in milhares}

        animais: list[Suggestion] = []
        for r in report.top(Taxonomy.ANIMAL, n):
            animal = self._animals.by_name(r.value)
            if animal is None:
                continue
            animais.append(
                Suggestion(Taxonomy.ANIMAL, animal.name, _overdue_reason(r), group=animal.group_label, animal=animal.name)
            )
            dezena = self._rng.choice(animal.dezena_labels)
            milhar = f"{self._rng.randrange(100):02d}{dezena}"
            if milhar not in taken:
                taken.add(milhar)
                milhares.append(self._with_animal(Taxonomy.MILHAR, milhar, f"overdue animal {animal.name}"))

        return SuggestionSet(
            dezenas=[Suggestion(Taxonomy.DEZENA, r.value, _overdue_reason(r)) for r in report.top(Taxonomy.DEZENA, n)],
            centenas=[
                Suggestion(Taxonomy.CENTENA, r.value, _overdue_reason(r)) for r in report.top(Taxonomy.CENTENA, n)
            ],
            milhares=milhares,
            animais=animais,
            lottery_id=report.lottery_id or None,
        )

    def mixed(self, report: OverdueReport, per_taxonomy: int = 5, overdue_share: float = 0.5) -> SuggestionSet:
        """Blend overdue picks with random ones; ``overdue_share`` in [0, 1]."""

        n = self._check_count(per_taxonomy)
        if not 0.0 <= float(overdue_share) <= 1.0:
            raise ValidationError("overdue_share must be between 0 and 1")
        k = int(float(overdue_share) * n)

        overdue = self.from_overdue(report, n)
        rnd = self.at_random(n)

        def _blend(a: list[Suggestion], b: list[Suggestion]) -> list[Suggestion]:
            picked = list(a[:k])
            seen = {s.value for s in picked}
            for s in b:
                if len(picked) >= n:
                    break
                if s.value not in seen:
                    picked.append(s)
                    seen.add(s.value)
            return picked

        return SuggestionSet(
            dezenas=_blend(overdue.dezenas, rnd.dezenas),
            centenas=_blend(overdue.centenas, rnd.centenas),
            milhares=_blend(overdue.milhares, rnd.milhares),
            animais=_blend(overdue.animais, rnd.animais),
            lottery_id=report.lottery_id or None,
        )

    def for_lottery(
        self,
        lottery_id: str,
        *,
        mode: str = "overdue",
        per_taxonomy: int = 5,
        min_draws: int = 10,
        session=None,
    ) -> SuggestionSet:
        if mode not in SUGGESTION_MODES:
            raise ValidationError(f"Unknown suggestion mode: {mode}", details={"allowed": list(SUGGESTION_MODES)})
        if mode == "random":
            return replace(self.at_random(per_taxonomy), lottery_id=lottery_id)

        if self._overdue is None:
            self._overdue = OverdueService()
        report = self._overdue.overdue(lottery_id, min_draws=min_draws, session=session)
        if mode == "mixed":
            return self.mixed(report, per_taxonomy)
        return self.from_overdue(report, per_taxonomy)
