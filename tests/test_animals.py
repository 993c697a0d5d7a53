import pytest

from bicho.animals import ANIMALS, AnimalTable, DEFAULT_ANIMALS


def test_table_has_25_groups_of_four_dezenas():
    assert len(DEFAULT_ANIMALS) == 25
    assert all(len(a.dezenas) == 4 for a in DEFAULT_ANIMALS)
    assert DEFAULT_ANIMALS.by_group(1).name == "Avestruz"
    assert DEFAULT_ANIMALS.by_group(25).dezena_labels == ("97", "98", "99", "00")


def test_lookup_uses_last_two_digits():
    assert DEFAULT_ANIMALS.for_number("1234").name == "Cobra"
    assert DEFAULT_ANIMALS.for_number("0001").name == "Avestruz"
    assert DEFAULT_ANIMALS.for_number("1200").name == "Vaca"
    assert DEFAULT_ANIMALS.for_dezena(100).name == "Vaca"
    assert DEFAULT_ANIMALS.for_dezena(0).group == 25


def test_every_dezena_maps_to_exactly_one_group():
    groups = [DEFAULT_ANIMALS.for_dezena(d).group for d in range(100)]
    assert sorted(set(groups)) == list(range(1, 26))
    assert all(groups.count(g) == 4 for g in range(1, 26))


def test_name_lookup_ignores_accents_and_case():
    assert DEFAULT_ANIMALS.by_name("aguia").group == 2
    assert DEFAULT_ANIMALS.by_name("LEÃO").group == 16
    assert DEFAULT_ANIMALS.by_name("Dragão") is None
    assert DEFAULT_ANIMALS.by_name("leão").group == 16


def test_invalid_inputs():
    with pytest.raises(ValueError):
        DEFAULT_ANIMALS.for_number("12a4")
    with pytest.raises(ValueError):
        DEFAULT_ANIMALS.for_dezena(101)
    with pytest.raises(ValueError):
        AnimalTable(ANIMALS[:24])
