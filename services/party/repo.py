# services/party/repo.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from db import from_jsonb, get_pool, jsonb
from models.monster import LearnList, LearnedPool, Monster, MoveSlot

_COLUMNS = """
    id, owner_id, slot, species_id, nickname, level, xp, hp, max_hp,
    growth, moves, learned_pool, learn_list
"""

# що дозволено міняти через mutate()
_MUTABLE = {
    "slot": None,
    "nickname": None,
    "level": None,
    "xp": None,
    "hp": None,
    "max_hp": None,
    "growth": "jsonb",
    "moves": "jsonb",
    "learned_pool": "jsonb",
    "learn_list": "jsonb",
}


def _row_to_monster(row) -> Monster:
    return Monster(
        id=int(row["id"]),
        owner_id=int(row["owner_id"]),
        slot=int(row["slot"] or 0),
        species_id=int(row["species_id"]),
        nickname=row["nickname"],
        level=int(row["level"] or 1),
        xp=int(row["xp"] or 0),
        hp=int(row["hp"] or 0),
        max_hp=int(row["max_hp"] or 1),
        growth=from_jsonb(row["growth"], {}),
        moves=[MoveSlot(**m) for m in from_jsonb(row["moves"], [])],
        learned_pool=LearnedPool(**from_jsonb(row["learned_pool"], {})),
        learn_list=LearnList(**from_jsonb(row["learn_list"], {})),
    )


def _to_db(value: Any) -> Any:
    if isinstance(value, list):
        return [_to_db(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return value


class PgPartyStore:
    async def get(self, player_id: int) -> List[Monster]:
        pool = await get_pool()
        rows = await pool.fetch(
            f"SELECT {_COLUMNS} FROM monsters WHERE owner_id = $1 ORDER BY slot ASC, id ASC",
            player_id,
        )
        return [_row_to_monster(r) for r in rows]

    async def get_one(self, player_id: int, monster_id: int) -> Optional[Monster]:
        pool = await get_pool()
        row = await pool.fetchrow(
            f"SELECT {_COLUMNS} FROM monsters WHERE owner_id = $1 AND id = $2",
            player_id,
            monster_id,
        )
        return _row_to_monster(row) if row else None

    async def mutate(self, monster_id: int, fields: Dict[str, Any]) -> None:
        """
        Один UPDATE на рядок: усі поля прогресу пишуться атомарно.
        """
        sets: List[str] = []
        args: List[Any] = [int(monster_id)]
        for name, value in fields.items():
            if name not in _MUTABLE:
                raise ValueError(f"monster field {name!r} is not mutable")
            args.append(jsonb(_to_db(value)) if _MUTABLE[name] == "jsonb" else value)
            cast = "::jsonb" if _MUTABLE[name] == "jsonb" else ""
            sets.append(f"{name} = ${len(args)}{cast}")

        if not sets:
            return

        pool = await get_pool()
        await pool.execute(
            f"UPDATE monsters SET {', '.join(sets)} WHERE id = $1",
            *args,
        )

    async def create(
        self,
        player_id: int,
        *,
        species_id: int,
        level: int,
        growth: Dict[str, float],
        moves: List[MoveSlot],
        hp: int,
        max_hp: int,
        nickname: Optional[str] = None,
    ) -> Monster:
        pool = await get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                next_slot = await conn.fetchval(
                    "SELECT COALESCE(MAX(slot) + 1, 0) FROM monsters WHERE owner_id = $1",
                    player_id,
                )
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO monsters(owner_id, slot, species_id, nickname, level, xp, hp, max_hp,
                                         growth, moves, learned_pool, learn_list)
                    VALUES ($1, $2, $3, $4, $5, 0, $6, $7, $8::jsonb, $9::jsonb, $10::jsonb, $11::jsonb)
                    RETURNING {_COLUMNS}
                    """,
                    player_id,
                    int(next_slot or 0),
                    species_id,
                    nickname,
                    level,
                    hp,
                    max_hp,
                    jsonb(growth),
                    jsonb(_to_db(moves)),
                    jsonb(LearnedPool().model_dump()),
                    jsonb(LearnList().model_dump()),
                )
        return _row_to_monster(row)

    async def delete(self, monster_id: int) -> None:
        pool = await get_pool()
        await pool.execute("DELETE FROM monsters WHERE id = $1", monster_id)
