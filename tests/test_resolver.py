import pytest

from conftest import FLAT_BASE, ScriptedRandom
from models.content import Move
from services.battle.models import Combatant
from services.battle.resolver import (
    calc_damage,
    effect_accuracy,
    live_stats,
    resolve_move,
)


def fighter(side, *, hp=40, level=1, base=None, status="none", nickname=None):
    return Combatant(
        side=side,
        monster_id=1 if side == "you" else None,
        species_id=1,
        species_name="Leafling",
        nickname=nickname,
        level=level,
        hp=hp,
        max_hp=40,
        base=dict(base or FLAT_BASE),
        status=status,
    )


def mv(*effects, bonuses=(), name="Test Move", power=None, accuracy=None):
    return Move(id=1, name=name, stack_effects=list(effects), stack_bonuses=list(bonuses),
                power=power, accuracy=accuracy)


def empty_mods():
    return {"you": {}, "enemy": {}}


def resolve(registry, attacker, defender, move, *, rng=None, mods=None):
    log = []
    mods = mods if mods is not None else empty_mods()
    resolve_move(attacker, defender, move, registry=registry, mods=mods,
                 rng=rng or ScriptedRandom(), log=log)
    return log, mods


def test_calc_damage_formula():
    assert calc_damage(10, 1, 10, 10) == 7
    # ratio обрізається до [0.25, 2.5]
    assert calc_damage(10, 1, 100, 1) == 17
    assert calc_damage(10, 1, 1, 100) == 2
    assert calc_damage(0.01, 1, 10, 10) == 1


def test_physical_hit_logs_and_deals_damage(registry):
    you, enemy = fighter("you", nickname="Sprout"), fighter("enemy")
    log, _ = resolve(registry, you, enemy, mv("dmg_phys", name="Tackle"))

    assert enemy.hp == 33
    assert log == ["Your Sprout's Tackle dealt 7 damage to Wild Leafling."]


def test_special_channel_uses_mag_and_res(registry):
    base = dict(FLAT_BASE, MAG=25, PHY=1)
    you, enemy = fighter("you", base=base), fighter("enemy")
    resolve(registry, you, enemy, mv("dmg_mag"))
    # 10 * 0.68 * 2.5
    assert enemy.hp == 40 - 17


def test_damage_never_below_one(registry):
    you, enemy = fighter("you"), fighter("enemy")
    resolve(registry, you, enemy, mv("dmg_tiny"))
    assert enemy.hp == 39


def test_empty_stack_falls_back_to_plain_hit(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, _ = resolve(registry, enemy, you, Move(id=0, name="Struggle"))
    assert you.hp == 40 - 5
    assert "Struggle dealt 5 damage" in log[0]


def test_miss_cancels_only_that_effect(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, mods = resolve(registry, you, enemy, mv("dmg_phys", "buff_phy"), rng=ScriptedRandom(default=0.99))

    assert enemy.hp == 40
    assert "missed" in log[0]
    # self-ефект не кидає точність
    assert mods["you"] == {"PHY": 0.2}
    assert "raised its PHY by 20%" in log[1]


def test_each_effect_rolls_separately(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, _ = resolve(registry, you, enemy, mv("dmg_phys", "stun"), rng=ScriptedRandom([0.1, 0.9]))

    assert enemy.hp == 33
    assert enemy.status == "none"
    assert "missed" in log[1]


def test_rest_of_stack_skipped_when_defender_faints(registry):
    you, enemy = fighter("you"), fighter("enemy", hp=3)
    log, _ = resolve(registry, you, enemy, mv("dmg_phys", "stun"))

    assert enemy.hp == 0
    assert enemy.status == "none"
    assert len(log) == 1


def test_status_is_exclusive(registry):
    you, enemy = fighter("you"), fighter("enemy", status="poison")
    log, _ = resolve(registry, you, enemy, mv("dmg_phys", "stun"))

    assert enemy.status == "poison"
    assert "already poison" in log[1]


def test_status_applied_to_target(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, _ = resolve(registry, you, enemy, mv("dmg_phys", "dot_poison"))
    assert enemy.status == "poison"
    assert log[1] == "Your Leafling's Test Move inflicted poison on Wild Leafling."


def test_stat_changes_stack_additively(registry):
    you, enemy = fighter("you"), fighter("enemy")
    mods = empty_mods()
    resolve(registry, you, enemy, mv("buff_def"), mods=mods)
    resolve(registry, you, enemy, mv("buff_def"), mods=mods)

    assert mods["you"]["DEF"] == pytest.approx(0.4)
    assert live_stats(you, mods)["DEF"] == 14
    assert live_stats(enemy, mods)["DEF"] == 10


def test_stat_change_order_does_not_matter(registry):
    a, b = empty_mods(), empty_mods()
    you, enemy = fighter("you"), fighter("enemy")
    resolve(registry, you, enemy, mv("debuff_def"), mods=a)
    resolve(registry, enemy, enemy, mv("buff_def"), mods=a)

    you, enemy = fighter("you"), fighter("enemy")
    resolve(registry, enemy, enemy, mv("buff_def"), mods=b)
    resolve(registry, you, enemy, mv("debuff_def"), mods=b)

    assert a["enemy"]["DEF"] == b["enemy"]["DEF"] == pytest.approx(0.1)


def test_mods_feed_into_damage(registry):
    you, enemy = fighter("you"), fighter("enemy")
    mods = {"you": {"PHY": 0.4}, "enemy": {}}
    resolve(registry, you, enemy, mv("dmg_phys"), mods=mods)
    # 10 * 0.68 * 1.4 = 9.52
    assert enemy.hp == 30


def test_unknown_stat_has_no_effect(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, mods = resolve(registry, you, enemy, mv("dmg_phys", "weird_stat"))
    assert mods == empty_mods()
    assert "had no noticeable effect" in log[1]


def test_unknown_effect_type_and_code_only_logged(registry):
    you, enemy = fighter("you"), fighter("enemy")
    log, _ = resolve(registry, you, enemy, mv("mystery", "ghost_code"))
    assert enemy.hp == 40
    assert log == [
        "Your Leafling's Test Move applied mystery.",
        "Your Leafling's Test Move applied ghost_code.",
    ]


def test_effect_accuracy_rules(registry):
    stun = registry.effect_by_code("stun")
    dmg = registry.effect_by_code("dmg_phys")
    buff = registry.effect_by_code("buff_def")

    assert effect_accuracy(dmg, mv("dmg_phys")) == pytest.approx(0.95)
    assert effect_accuracy(stun, mv("stun")) == pytest.approx(0.7)
    assert effect_accuracy(stun, mv("stun", bonuses=["accuracy_up"])) == pytest.approx(0.8)
    # кап 0.99
    assert effect_accuracy(dmg, mv("dmg_phys", bonuses=["accuracy_up"])) == pytest.approx(0.99)
    assert effect_accuracy(buff, mv("buff_def")) == pytest.approx(0.99)
    # акуратність муву, якщо в ефекту нема своєї; кламп знизу
    assert effect_accuracy(dmg, mv("dmg_phys", accuracy=0.01)) == pytest.approx(0.05)
