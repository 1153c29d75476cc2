# services/world.py
from __future__ import annotations

from typing import Dict

from db import get_pool

DEFAULT_BIOME = "grassland"


class PgWorldStore:
    """
    Поточний тайл гравця. Генерація світу тут не живе: беремо лише біом.
    """

    async def current_tile(self, player_id: int) -> Dict[str, str]:
        pool = await get_pool()
        row = await pool.fetchrow(
            "SELECT biome FROM players WHERE player_id = $1",
            player_id,
        )
        biome = (row["biome"] if row else None) or DEFAULT_BIOME
        return {"biome": str(biome)}
