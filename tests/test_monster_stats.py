import random

from conftest import FLAT_BASE
from services.monster_stats import apply_mods, derive_stats, max_hp_for, roll_growth, round_half_up


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(6.8) == 7
    assert round_half_up(5.44) == 5


def test_level_one_neutral_growth_returns_base():
    assert derive_stats(FLAT_BASE, None, 1) == FLAT_BASE


def test_level_scales_primary_stats_but_not_acc_eva():
    stats = derive_stats(FLAT_BASE, {}, 5)
    assert stats["PHY"] == 13
    assert stats["HP"] == 52
    assert stats["ACC"] == 95
    assert stats["EVA"] == 5


def test_growth_multiplier_applies():
    stats = derive_stats(FLAT_BASE, {"PHY": 1.1, "EVA": 1.05}, 1)
    assert stats["PHY"] == 11
    assert stats["EVA"] == 5


def test_stats_never_below_one():
    stats = derive_stats({"PHY": 0}, None, 1)
    assert stats["PHY"] == 1
    assert stats["MAG"] == 1


def test_apply_mods_scales_and_floors():
    stats = {"PHY": 50, "DEF": 10}
    assert apply_mods(stats, {"PHY": 0.4}) == {"PHY": 70, "DEF": 10}
    assert apply_mods(stats, {"DEF": -2.0})["DEF"] == 1
    assert apply_mods(stats, None) == stats


def test_roll_growth_within_bounds():
    rng = random.Random(11)
    for _ in range(50):
        growth = roll_growth(rng)
        for stat, value in growth.items():
            spread = 0.05 if stat in ("ACC", "EVA") else 0.10
            assert 1 - spread <= value <= 1 + spread


def test_max_hp_for_level_curve():
    assert max_hp_for(FLAT_BASE, None, 1) == 40
    assert max_hp_for(FLAT_BASE, None, 2) == 43
    assert max_hp_for(FLAT_BASE, None, 3) == 46
