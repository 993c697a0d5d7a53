"""The 25 animal groups of the jogo do bicho.

Each group owns four consecutive dezenas; group 25 ends at 00, which stands
for 100. The table is static and shared read-only by the normalizer and the
overdue analyzer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from bicho.utils.text import fold_accents


@dataclass(frozen=True)
class Animal:
    group: int
    name: str
    dezenas: tuple[int, int, int, int]

    @property
    def group_label(self) -> str:
        return f"{self.group:02d}"

    @property
    def dezena_labels(self) -> tuple[str, ...]:
        return tuple(f"{d % 100:02d}" for d in self.dezenas)


_NAMES = (
    "Avestruz",
    "Águia",
    "Burro",
    "Borboleta",
    "Cachorro",
    "Cabra",
    "Carneiro",
    "Camelo",
    "Cobra",
    "Coelho",
    "Cavalo",
    "Elefante",
    "Galo",
    "Gato",
    "Jacaré",
    "Leão",
    "Macaco",
    "Porco",
    "Pavão",
    "Peru",
    "Touro",
    "Tigre",
    "Urso",
    "Veado",
    "Vaca",
)

ANIMALS: tuple[Animal, ...] = tuple(
    Animal(
        group=i + 1,
        name=name,
        dezenas=(i * 4 + 1, i * 4 + 2, i * 4 + 3, i * 4 + 4),
    )
    for i, name in enumerate(_NAMES)
)


class AnimalTable:
    """Lookup helpers over an ordered animal list."""

    def __init__(self, animals: Sequence[Animal] = ANIMALS) -> None:
        if len(animals) != 25:
            raise ValueError("animal table must have exactly 25 groups")
        self._animals = tuple(animals)
        self._by_dezena: dict[int, Animal] = {}
        for animal in self._animals:
            for d in animal.dezenas:
                self._by_dezena[d % 100] = animal
        self._by_name = {fold_accents(a.name): a for a in self._animals}

    def __iter__(self):
        return iter(self._animals)

    def __len__(self) -> int:
        return len(self._animals)

    @property
    def names(self) -> list[str]:
        return [a.name for a in self._animals]

    def for_dezena(self, dezena: int) -> Animal:
        """Animal owning a 0..99 dezena (0 is the last dezena of group 25)."""

        if not 0 <= int(dezena) <= 100:
            raise ValueError(f"dezena out of range: {dezena}")
        return self._by_dezena[int(dezena) % 100]

    def for_number(self, value: str | int) -> Animal:
        """Animal for any numeric value, using its last two digits."""

        digits = str(value).strip()
        if not digits.isdigit():
            raise ValueError(f"not a number: {value!r}")
        return self.for_dezena(int(digits[-2:]))

    def by_group(self, group: int) -> Animal | None:
        if 1 <= int(group) <= len(self._animals):
            return self._animals[int(group) - 1]
        return None

    def by_name(self, name: str) -> Animal | None:
        return self._by_name.get(fold_accents(name).strip())


DEFAULT_ANIMALS = AnimalTable()
