import random
from datetime import date

import pytest

from bicho.animals import DEFAULT_ANIMALS
from bicho.errors import ValidationError
from bicho.services.overdue_service import StalenessAnalyzer, Taxonomy
from bicho.services.suggestion_service import SuggestionService

from helpers import draw

HISTORY = [
    draw("FEDERAL", date(2026, 10, 17), "1234", "5678", "9012", "3456", "7890"),
    draw("FEDERAL", date(2026, 10, 18), "1111", "2222", "3333", "4444", "5555"),
]
REPORT = StalenessAnalyzer().analyze(HISTORY, min_draws=0, lottery_id="FEDERAL")


def test_overdue_picks_follow_the_ranking():
    picks = SuggestionService(rng=random.Random(7)).from_overdue(REPORT, per_taxonomy=4)

    assert [s.value for s in picks.dezenas] == [r.value for r in REPORT.top(Taxonomy.DEZENA, 4)]
    assert [s.value for s in picks.centenas] == [r.value for r in REPORT.top(Taxonomy.CENTENA, 4)]
    assert [s.value for s in picks.animais] == [r.value for r in REPORT.top(Taxonomy.ANIMAL, 4)]
    assert picks.lottery_id == "FEDERAL"


def test_overdue_animals_add_milhares_ending_in_their_dezenas():
    picks = SuggestionService(rng=random.Random(7)).from_overdue(REPORT, per_taxonomy=3)
    extra = picks.milhares[3:]
    assert extra
    for s in extra:
        animal = DEFAULT_ANIMALS.by_name(s.animal)
        assert s.value[-2:] in animal.dezena_labels
        assert s.reason == f"overdue animal {animal.name}"


def test_random_picks_are_unique_and_seeded():
    a = SuggestionService(rng=random.Random(42)).at_random(6)
    b = SuggestionService(rng=random.Random(42)).at_random(6)
    assert [s.value for s in a.milhares] == [s.value for s in b.milhares]
    for group in (a.dezenas, a.centenas, a.milhares, a.animais):
        assert len(group) == 6
        assert len({s.value for s in group}) == 6
    assert all(len(s.value) == 2 for s in a.dezenas)


def test_mixed_blends_overdue_and_random():
    picks = SuggestionService(rng=random.Random(1)).mixed(REPORT, per_taxonomy=4, overdue_share=0.5)
    top = [r.value for r in REPORT.top(Taxonomy.DEZENA, 2)]
    assert [s.value for s in picks.dezenas[:2]] == top
    assert len(picks.dezenas) == 4


def test_invalid_count():
    with pytest.raises(ValidationError):
        SuggestionService().at_random(0)
    with pytest.raises(ValidationError):
        SuggestionService().mixed(REPORT, per_taxonomy=3, overdue_share=2)
