# services/battle/models.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from models.monster import Monster, MoveSlot

SIDES = ("you", "enemy")


def _empty_mods() -> Dict[str, Dict[str, float]]:
    return {side: {} for side in SIDES}


class Combatant(BaseModel):
    """
    Знімок монстра на час бою. Для "you" hp/pp синхронізуються назад у party.
    """

    side: Literal["you", "enemy"]
    monster_id: Optional[int] = None
    species_id: int
    species_name: str
    nickname: Optional[str] = None
    level: int
    hp: int
    max_hp: int
    base: Dict[str, int]
    growth: Dict[str, float] = Field(default_factory=dict)
    status: str = "none"
    moves: List[MoveSlot] = Field(default_factory=list)

    @property
    def fainted(self) -> bool:
        return self.hp <= 0


class BattleSession(BaseModel):
    player_id: int
    state: str = "active"
    turn: int = 1
    biome: str = "grassland"

    you: Combatant
    you_index: int = 0
    enemy: Combatant

    # тимчасові ±частки статів, лише до кінця бою
    mods: Dict[str, Dict[str, float]] = Field(default_factory=_empty_mods)

    allow_capture: bool = False
    require_switch: bool = False
    log: List[str] = Field(default_factory=list)


class TurnRequest(BaseModel):
    action: Literal["move", "switch", "run"]
    index: Optional[int] = None


class MoveView(BaseModel):
    index: int
    move_id: int
    name: str
    current_pp: int
    max_pp: int
    stack_effects: List[str] = Field(default_factory=list)
    stack_bonuses: List[str] = Field(default_factory=list)


class BattleView(BaseModel):
    you: Combatant
    you_index: int
    enemy: Combatant
    pp: List[MoveView]
    mods: Dict[str, Dict[str, float]]
    allow_capture: bool
    require_switch: bool
    turn: int
    log: List[str]


class BattleResponse(BaseModel):
    result: str
    battle: Optional[BattleView] = None
    log: List[str] = Field(default_factory=list)
    captured: Optional[Monster] = None
