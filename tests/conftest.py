from __future__ import annotations

import asyncio
import copy
import random
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import pytest

from core.errors import TurnInProgress
from models.content import Bonus, Effect, Move
from models.monster import Monster, MoveSlot, Species
from services.battle.engine import BattleContext
from services.battle.models import BattleSession
from services.content.registry import ContentRegistry
from services.content.species import SpeciesCatalog

FLAT_BASE = {"HP": 40, "PHY": 10, "MAG": 10, "DEF": 10, "RES": 10, "SPD": 10, "ACC": 95, "EVA": 5}


class ScriptedRandom(random.Random):
    """
    random() віддає значення з черги, потім default.
    Цілі (randint/choice) лишаються сідованими й від random() не залежать.
    0.0 -> все влучає, втеча і ловля вдаються; 0.99 -> навпаки.
    """

    def __init__(self, values=(), default: float = 0.0, seed: int = 1) -> None:
        super().__init__(seed)
        self.values: List[float] = list(values)
        self.default = default

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return self.default

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def run(coro):
    return asyncio.run(coro)


# ───────────────────── fakes ─────────────────────

class FakeMoveStore:
    def __init__(self) -> None:
        self.by_key: Dict[str, Move] = {}
        self.rows: Dict[int, Move] = {}

    async def get_or_create(self, key, *, name, stack_effects, stack_bonuses, power=None, accuracy=None, priority=0):
        move = self.by_key.get(key)
        if move is None:
            move = Move(
                id=len(self.rows) + 1,
                name=name,
                stack_effects=list(stack_effects),
                stack_bonuses=list(stack_bonuses),
                power=power,
                accuracy=accuracy,
                priority=priority,
            )
            self.by_key[key] = move
            self.rows[move.id] = move
        return move

    async def by_ids(self, ids):
        return [self.rows[i] for i in ids if i in self.rows]


class FakePartyStore:
    def __init__(self) -> None:
        self.rows: Dict[int, Monster] = {}
        self.mutations: List[tuple] = []
        self._next_id = 1

    def add(self, monster: Monster) -> Monster:
        self.rows[monster.id] = monster
        self._next_id = max(self._next_id, monster.id + 1)
        return monster

    async def get(self, player_id: int) -> List[Monster]:
        rows = [m for m in self.rows.values() if m.owner_id == player_id]
        rows.sort(key=lambda m: (m.slot, m.id))
        return [m.model_copy(deep=True) for m in rows]

    async def get_one(self, player_id: int, monster_id: int) -> Optional[Monster]:
        m = self.rows.get(monster_id)
        if m is None or m.owner_id != player_id:
            return None
        return m.model_copy(deep=True)

    async def mutate(self, monster_id: int, fields: dict) -> None:
        self.mutations.append((monster_id, dict(fields)))
        m = self.rows[monster_id]
        for k, v in fields.items():
            setattr(m, k, copy.deepcopy(v))

    async def create(self, player_id, *, species_id, level, growth, moves, hp, max_hp, nickname=None) -> Monster:
        slot = len([m for m in self.rows.values() if m.owner_id == player_id])
        monster = Monster(
            id=self._next_id,
            owner_id=player_id,
            slot=slot,
            species_id=species_id,
            nickname=nickname,
            level=level,
            hp=hp,
            max_hp=max_hp,
            growth=growth,
            moves=moves,
        )
        self.add(monster)
        return monster.model_copy(deep=True)

    async def delete(self, monster_id: int) -> None:
        self.rows.pop(monster_id, None)


class FakeSessionStore:
    def __init__(self) -> None:
        self.data: Dict[int, BattleSession] = {}
        self.locked: set[int] = set()

    async def save(self, session: BattleSession, *, create: bool = False) -> bool:
        # як SET ... XX: без create лише поверх існуючого
        if not create and session.player_id not in self.data:
            return False
        self.data[session.player_id] = session.model_copy(deep=True)
        return True

    async def load(self, player_id: int) -> Optional[BattleSession]:
        s = self.data.get(player_id)
        return s.model_copy(deep=True) if s else None

    async def delete(self, player_id: int) -> None:
        self.data.pop(player_id, None)

    @asynccontextmanager
    async def turn_lock(self, player_id: int):
        if player_id in self.locked:
            raise TurnInProgress()
        self.locked.add(player_id)
        try:
            yield
        finally:
            self.locked.discard(player_id)


class FakeWorldStore:
    def __init__(self, biome: str = "grassland") -> None:
        self.biome = biome

    async def current_tile(self, player_id: int) -> dict:
        return {"biome": self.biome}


# ───────────────────── content ─────────────────────

TEST_EFFECTS = [
    Effect(code="dmg_phys", effect_type="damage", stat="PHY", amount=10, base_flag_eligible=True, base_pp=5),
    Effect(code="dmg_mag", effect_type="damage", stat="MAG", amount=10, base_flag_eligible=True),
    Effect(code="buff_def", target="self", effect_type="stat_change", stat="DEF", amount=0.2,
           base_flag_eligible=True, base_pp=10),
    Effect(code="buff_phy", target="self", effect_type="stat_change", stat="PHY", amount=0.2),
    Effect(code="debuff_def", effect_type="stat_change", stat="DEF", amount=-0.1),
    Effect(code="stun", effect_type="status", stat="stun", accuracy=0.7),
    Effect(code="dot_poison", effect_type="status", stat="poison"),
    Effect(code="dmg_tiny", effect_type="damage", stat="PHY", amount=0.01),
    Effect(code="weird_stat", effect_type="stat_change", stat="LUCK", amount=0.1),
    Effect(code="mystery", effect_type="teleport"),
]

TEST_BONUSES = [
    Bonus(code="accuracy_up"),
    Bonus(code="high_crit"),
]

TEST_SPECIES = [
    Species(id=1, name="Leafling", base=dict(FLAT_BASE), biomes=["grassland"], spawn_rate=1.0),
    Species(id=2, name="Finnet", base=dict(FLAT_BASE), biomes=["river"], spawn_rate=1.0),
]


@pytest.fixture
def move_store() -> FakeMoveStore:
    return FakeMoveStore()


@pytest.fixture
def registry(move_store) -> ContentRegistry:
    return ContentRegistry(TEST_EFFECTS, TEST_BONUSES, move_store, version=1)


@pytest.fixture
def species() -> SpeciesCatalog:
    return SpeciesCatalog(TEST_SPECIES)


@pytest.fixture
def party_store() -> FakePartyStore:
    return FakePartyStore()


@pytest.fixture
def sessions() -> FakeSessionStore:
    return FakeSessionStore()


@pytest.fixture
def world() -> FakeWorldStore:
    return FakeWorldStore()


@pytest.fixture
def make_monster(registry):
    """
    Монстр з одним мувом (за замовчуванням dmg_phys) і повним PP.
    """

    def _make(mid: int, *, owner_id: int = 7, slot: Optional[int] = None, level: int = 1,
              hp: Optional[int] = None, max_hp: int = 40, stack=("dmg_phys",), bonuses=(),
              pp: Optional[int] = None, nickname: Optional[str] = None, species_id: int = 1) -> Monster:
        move = run(registry.ensure_move(list(stack), list(bonuses)))
        max_pp = registry.max_pp_for_stack(move.stack_effects)
        return Monster(
            id=mid,
            owner_id=owner_id,
            slot=mid if slot is None else slot,
            species_id=species_id,
            nickname=nickname,
            level=level,
            hp=max_hp if hp is None else hp,
            max_hp=max_hp,
            moves=[MoveSlot(move_id=move.id, current_pp=max_pp if pp is None else pp)],
        )

    return _make


@pytest.fixture
def make_ctx(registry, species, move_store):
    def _ctx(rng: random.Random) -> BattleContext:
        return BattleContext(registry=registry, species=species, moves=dict(move_store.rows), rng=rng)

    return _ctx
