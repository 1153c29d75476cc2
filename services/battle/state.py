# services/battle/state.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger
from pydantic import ValidationError

from core.errors import TurnInProgress
from services.battle.models import BattleSession

# --------------------------------------------------
# Redis keys
# state: battle:{player_id}      -> JSON BattleSession (TTL = idle expiry)
# lock:  battle:lock:{player_id} -> NX-лок на хід
# --------------------------------------------------


def _key_state(player_id: int) -> str:
    return f"battle:{int(player_id)}"


def _key_lock(player_id: int) -> str:
    return f"battle:lock:{int(player_id)}"


class RedisBattleStore:
    def __init__(self, r, ttl: int = 1800, lock_ttl: int = 12) -> None:
        self._r = r
        self._ttl = int(ttl)
        self._lock_ttl = int(lock_ttl)

    async def save(self, session: BattleSession, *, create: bool = False) -> bool:
        """
        Кожне збереження оновлює TTL. Без create пишемо лише поверх існуючого ключа (XX):
        бій, закритий через finish під час ходу, не воскресає.
        """
        ok = await self._r.set(
            _key_state(session.player_id),
            session.model_dump_json(),
            ex=self._ttl,
            xx=not create,
        )
        return bool(ok)

    async def load(self, player_id: int) -> Optional[BattleSession]:
        raw = await self._r.get(_key_state(player_id))
        if not raw:
            return None
        try:
            return BattleSession.model_validate_json(raw)
        except ValidationError:
            logger.warning("battle: corrupt session dropped player={}", player_id)
            await self.delete(player_id)
            return None

    async def delete(self, player_id: int) -> None:
        await self._r.delete(_key_state(player_id))

    @asynccontextmanager
    async def turn_lock(self, player_id: int) -> AsyncIterator[None]:
        acquired = await self._r.set(_key_lock(player_id), "1", ex=self._lock_ttl, nx=True)
        if not acquired:
            raise TurnInProgress()
        try:
            yield
        finally:
            await self._r.delete(_key_lock(player_id))
