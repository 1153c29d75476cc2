# services/content/repo.py
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from db import from_jsonb, get_pool, jsonb
from models.content import Move


def _row_to_move(row) -> Move:
    return Move(
        id=int(row["id"]),
        name=str(row["name"]),
        stack_effects=from_jsonb(row["stack_effects"], []),
        stack_bonuses=from_jsonb(row["stack_bonuses"], []),
        power=row["power"],
        accuracy=row["accuracy"],
        priority=int(row["priority"] or 0),
    )


class PgMoveStore:
    """
    moves.stack_key UNIQUE -> INSERT ... ON CONFLICT DO NOTHING,
    тож два паралельні get_or_create не створять дубль.
    """

    async def get_or_create(
        self,
        stack_key: str,
        *,
        name: str,
        stack_effects: Sequence[str],
        stack_bonuses: Sequence[str],
        power: Optional[float] = None,
        accuracy: Optional[float] = None,
        priority: int = 0,
    ) -> Move:
        pool = await get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO moves(stack_key, name, stack_effects, stack_bonuses, power, accuracy, priority)
                VALUES ($1, $2, $3::jsonb, $4::jsonb, $5, $6, $7)
                ON CONFLICT (stack_key) DO NOTHING
                RETURNING id, name, stack_effects, stack_bonuses, power, accuracy, priority
                """,
                stack_key,
                name,
                jsonb(list(stack_effects)),
                jsonb(list(stack_bonuses)),
                power,
                accuracy,
                int(priority),
            )
            if row is None:
                row = await conn.fetchrow(
                    """
                    SELECT id, name, stack_effects, stack_bonuses, power, accuracy, priority
                    FROM moves
                    WHERE stack_key = $1
                    """,
                    stack_key,
                )
        return _row_to_move(row)

    async def by_ids(self, move_ids: Iterable[int]) -> List[Move]:
        ids = [int(m) for m in move_ids]
        if not ids:
            return []
        pool = await get_pool()
        rows = await pool.fetch(
            """
            SELECT id, name, stack_effects, stack_bonuses, power, accuracy, priority
            FROM moves
            WHERE id = ANY($1::int[])
            """,
            ids,
        )
        return [_row_to_move(r) for r in rows]
