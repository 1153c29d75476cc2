# services/content/registry.py
from __future__ import annotations

import time
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from core.errors import InvalidStackError
from models.content import Bonus, ContentPool, Effect, Move, NamedMove

FALLBACK_MAX_PP = 20


def _dedupe(codes: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for c in codes:
        c = (c or "").strip()
        if c and c not in seen:
            seen.add(c)
            out.append(c)
    return out


class ContentRegistry:
    """
    Read-only довідник ефектів/бонусів + канонічні муви.
    Муви живуть у сторі (moves table) і кешуються по id: вони незмінні.
    """

    def __init__(
        self,
        effects: Iterable[Effect],
        bonuses: Iterable[Bonus],
        move_store,
        named_moves: Iterable[NamedMove] = (),
        version: Optional[int] = None,
    ) -> None:
        self._effects: Dict[str, Effect] = {e.code: e for e in effects}
        self._bonuses: Dict[str, Bonus] = {b.code: b for b in bonuses}
        self._store = move_store
        self._moves: Dict[int, Move] = {}
        self.version = int(version if version is not None else time.time() * 1000)

        self._named: Dict[str, NamedMove] = {}
        for nm in named_moves:
            stack, bonuses_ = self.normalize_stack(nm.stack_effects, nm.stack_bonuses)
            self._named[self.stack_key(stack, bonuses_)] = nm

    # ───────── lookups ─────────

    def effect_by_code(self, code: str) -> Optional[Effect]:
        return self._effects.get(code)

    def bonus_by_code(self, code: str) -> Optional[Bonus]:
        return self._bonuses.get(code)

    def effect_codes(self) -> List[str]:
        return list(self._effects)

    def bonus_codes(self) -> List[str]:
        return list(self._bonuses)

    def effects(self) -> List[Effect]:
        return list(self._effects.values())

    def bonuses(self) -> List[Bonus]:
        return list(self._bonuses.values())

    def base_effects(self) -> List[Effect]:
        return [e for e in self._effects.values() if e.base_flag_eligible]

    def is_base(self, code: str) -> bool:
        eff = self._effects.get(code)
        return bool(eff and eff.base_flag_eligible)

    def content_pool(self) -> ContentPool:
        return ContentPool(
            effects=self.effect_codes(),
            bonuses=self.bonus_codes(),
            version=self.version,
        )

    # ───────── canonicalization ─────────

    def normalize_stack(
        self,
        stack: Sequence[str],
        bonuses: Sequence[str] = (),
    ) -> Tuple[List[str], List[str]]:
        """
        База першою, решта ефектів без дублів у стабільному (сортованому) порядку,
        бонуси без дублів і відсортовані.
        """
        codes = _dedupe(stack)
        if not codes:
            return [], sorted(_dedupe(bonuses))

        head = next((c for c in codes if self.is_base(c)), codes[0])
        rest = sorted(c for c in codes if c != head)
        return [head, *rest], sorted(_dedupe(bonuses))

    @staticmethod
    def stack_key(stack: Sequence[str], bonuses: Sequence[str]) -> str:
        return "+".join(stack) + "|" + "+".join(bonuses)

    @staticmethod
    def synth_name(stack: Sequence[str], bonuses: Sequence[str]) -> str:
        name = "+".join(stack)
        if bonuses:
            name += " [" + ", ".join(bonuses) + "]"
        return name

    async def ensure_move(self, stack: Sequence[str], bonuses: Sequence[str] = ()) -> Move:
        """
        get-or-create канонічного муву для нормалізованої комбінації.
        Ідемпотентно і безпечно при паралельних викликах (upsert по stack_key).
        """
        norm_stack, norm_bonuses = self.normalize_stack(stack, bonuses)
        if not norm_stack:
            raise InvalidStackError()

        key = self.stack_key(norm_stack, norm_bonuses)
        named = self._named.get(key)

        move = await self._store.get_or_create(
            key,
            name=named.name if named else self.synth_name(norm_stack, norm_bonuses),
            stack_effects=norm_stack,
            stack_bonuses=norm_bonuses,
            power=named.power if named else None,
            accuracy=named.accuracy if named else None,
            priority=named.priority if named else 0,
        )
        self._moves[move.id] = move
        return move

    async def move_by_id(self, move_id: int) -> Optional[Move]:
        found = await self.moves_by_ids([move_id])
        return found.get(int(move_id))

    async def moves_by_ids(self, move_ids: Iterable[int]) -> Dict[int, Move]:
        wanted = {int(m) for m in move_ids}
        missing = [m for m in wanted if m not in self._moves]
        if missing:
            for move in await self._store.by_ids(missing):
                self._moves[move.id] = move
        return {m: self._moves[m] for m in wanted if m in self._moves}

    def max_pp_for_stack(self, stack: Sequence[str]) -> int:
        if not stack:
            return FALLBACK_MAX_PP
        eff = self._effects.get(stack[0])
        if eff is None or not eff.base_pp:
            return FALLBACK_MAX_PP
        return int(eff.base_pp)


# ──────────────────────────────────────────────
# GLOBAL
# ──────────────────────────────────────────────

_registry: Optional[ContentRegistry] = None


def set_registry(registry: ContentRegistry) -> None:
    global _registry
    _registry = registry
    logger.info(
        "content: registry ready effects={} bonuses={}",
        len(registry.effect_codes()),
        len(registry.bonus_codes()),
    )


def get_registry() -> ContentRegistry:
    if _registry is None:
        raise RuntimeError("content registry is not loaded")
    return _registry
