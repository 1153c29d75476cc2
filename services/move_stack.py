# services/move_stack.py
from __future__ import annotations

from typing import List, Sequence, Tuple

from core.errors import InvalidStackError
from services.content.registry import ContentRegistry


def validate_stack(
    registry: ContentRegistry,
    effects: Sequence[str],
    bonuses: Sequence[str] = (),
) -> Tuple[List[str], List[str]]:
    """
    Санітизація стеку з редактора мувів:
      1) невідомі та повторні коди викидаємо;
      2) база має бути рівно одна: нуль -> InvalidStackError,
         кілька -> лишаємо першу, решту баз викидаємо;
      3) база першою, решта у вихідному порядку.
    """
    clean_effects: List[str] = []
    for code in effects:
        code = (code or "").strip()
        if code and code not in clean_effects and registry.effect_by_code(code) is not None:
            clean_effects.append(code)

    clean_bonuses: List[str] = []
    for code in bonuses:
        code = (code or "").strip()
        if code and code not in clean_bonuses and registry.bonus_by_code(code) is not None:
            clean_bonuses.append(code)

    base = next((c for c in clean_effects if registry.is_base(c)), None)
    if base is None:
        raise InvalidStackError()

    rest = [c for c in clean_effects if not registry.is_base(c)]
    return [base, *rest], clean_bonuses


def clamp_pp(current_pp: int, max_pp: int) -> int:
    # PP тільки вниз; відновлюється лише хілом
    return max(0, min(int(current_pp), int(max_pp)))
