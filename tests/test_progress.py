import random

from conftest import TEST_SPECIES
from models.monster import LearnList, Monster
from services.progress import (
    award_xp,
    calc_xp_reward,
    record_learn_list,
    roll_learn_list,
    xp_required_for,
)

LEAFLING = TEST_SPECIES[0]


def monster(**kw):
    data = dict(id=1, owner_id=7, species_id=1, level=1, xp=0, hp=40, max_hp=40)
    data.update(kw)
    return Monster(**data)


def test_xp_curve():
    assert xp_required_for(1) == 30
    assert xp_required_for(2) == 60
    assert xp_required_for(3) == 110


def test_xp_reward():
    assert calc_xp_reward(1) == 14
    assert calc_xp_reward(0) == 10
    assert calc_xp_reward(30) == 130


def test_exact_threshold_levels_up_with_zero_leftover():
    m = monster(xp=16)
    result = award_xp(m, 1, LEAFLING, random.Random(1))

    assert m.level == 2
    assert m.xp == 0
    assert result.xp_gained == 14
    assert result.levels_gained == 1
    assert result.messages[:2] == ["Leafling gained 14 XP.", "Leafling grew to Lv2!"]


def test_below_threshold_only_accumulates():
    m = monster(xp=10)
    result = award_xp(m, 1, LEAFLING, random.Random(1))
    assert (m.level, m.xp) == (1, 24)
    assert result.levels_gained == 0


def test_multi_level_cascade_keeps_overflow_and_heals_partially():
    m = monster(hp=10, nickname="Sprout")
    result = award_xp(m, 30, LEAFLING, random.Random(1))

    # 130 = 30 (Lv1) + 60 (Lv2) + 40 залишок
    assert (m.level, m.xp) == (3, 40)
    assert result.levels_gained == 2
    assert "Sprout grew to Lv2!" in result.messages
    assert "Sprout grew to Lv3!" in result.messages
    # max 40 -> 43 -> 46, лікування max(2, round(delta / 2)) = 2 за рівень
    assert m.max_hp == 46
    assert m.hp == 14


def test_level_up_heal_capped_at_max():
    m = monster(hp=42, max_hp=42, xp=29)
    award_xp(m, 1, LEAFLING, random.Random(1))
    assert m.hp == m.max_hp == 43


def test_record_learn_list_bumps_each_distinct_code_once():
    m = monster()
    m.learned_pool.effects.append("dmg_phys")

    bumped = record_learn_list(m, ["dmg_phys", "stun", "stun", "dot_poison"], ["accuracy_up"])

    assert bumped == ["stun", "dot_poison", "accuracy_up"]
    assert m.learn_list.effects == {"stun": 1, "dot_poison": 1}
    assert m.learn_list.bonuses == {"accuracy_up": 1}


def test_record_learn_list_caps_at_100():
    m = monster(learn_list=LearnList(effects={"stun": 100}))
    record_learn_list(m, ["stun"], [])
    assert m.learn_list.effects["stun"] == 100


def test_roll_learn_list_promotes_certain_codes_and_keeps_zero_ones():
    m = monster(learn_list=LearnList(effects={"stun": 100, "dot_poison": 0}, bonuses={"high_crit": 100}))
    messages = roll_learn_list(m, random.Random(5))

    assert messages == ["Learned effect: stun", "Learned bonus: high_crit"]
    assert m.learned_pool.effects == ["stun"]
    assert m.learned_pool.bonuses == ["high_crit"]
    assert m.learn_list.effects == {"dot_poison": 0}
    assert m.learn_list.bonuses == {}


def test_level_up_rolls_learn_list():
    m = monster(xp=16, learn_list=LearnList(effects={"stun": 100}))
    result = award_xp(m, 1, LEAFLING, random.Random(2))

    assert result.learned == ["stun"]
    assert "Learned effect: stun" in result.messages
    assert "stun" in m.learned_pool.effects


def test_no_learn_roll_without_level_up():
    m = monster(learn_list=LearnList(effects={"stun": 100}))
    award_xp(m, 1, LEAFLING, random.Random(2))
    assert m.learned_pool.effects == []
