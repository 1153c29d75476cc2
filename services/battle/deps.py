# services/battle/deps.py
from __future__ import annotations

import random

from fastapi import Depends

from config import settings
from routers.redis_manager import get_redis
from services.battle.service import BattleService
from services.battle.state import RedisBattleStore
from services.content.registry import get_registry
from services.content.species import get_species_catalog
from services.party.repo import PgPartyStore
from services.party.service import PartyService
from services.world import PgWorldStore

# один RNG на процес; у тестах підміняється через конструктор сервісу
_rng = random.Random()


async def get_battle_store() -> RedisBattleStore:
    r = await get_redis()
    return RedisBattleStore(r, ttl=settings.battle_ttl, lock_ttl=settings.turn_lock_ttl)


async def get_battle_service(
    store: RedisBattleStore = Depends(get_battle_store),
) -> BattleService:
    return BattleService(
        sessions=store,
        party=PgPartyStore(),
        world=PgWorldStore(),
        registry=get_registry(),
        species=get_species_catalog(),
        rng=_rng,
    )


async def get_party_service(
    store: RedisBattleStore = Depends(get_battle_store),
) -> PartyService:
    return PartyService(
        party=PgPartyStore(),
        sessions=store,
        registry=get_registry(),
        species=get_species_catalog(),
        rng=_rng,
    )
