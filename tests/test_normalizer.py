import pytest

from beyleague.normalization.normalizer import (
    names_match,
    normalize_beyblade_name,
    normalize_player_name,
)


@pytest.mark.parametrize(
    "raw",
    ["  Valkyrie   Wing ", "DRAN‑SWORD", "Hells\tScythe\n4-60T", "", "Cobalt — Drake"],
)
def test_normalize_is_idempotent(raw):
    once = normalize_beyblade_name(raw)
    assert normalize_beyblade_name(once) == once


def test_dash_variants_collapse_to_hyphen():
    variants = ["Valkyrie‐Wing", "Valkyrie‑Wing", "Valkyrie–Wing", "Valkyrie—Wing", "Valkyrie−Wing"]
    assert {normalize_beyblade_name(v) for v in variants} == {"valkyrie-wing"}
    assert normalize_beyblade_name("Valkyrie-Wing") == "valkyrie-wing"


def test_whitespace_runs_become_single_space():
    assert normalize_beyblade_name("  Longinus \t  Destroy  ") == "longinus destroy"


def test_names_match_ignores_case_and_dash_style():
    assert names_match("Dran–Sword", "dran-sword")
    assert not names_match("Dran Sword", "Dran-Sword")


def test_normalize_player_name_is_case_insensitive():
    assert normalize_player_name(" ALEX ") == normalize_player_name("alex")
