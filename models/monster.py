# models/monster.py
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

STAT_KEYS = ("HP", "PHY", "MAG", "DEF", "RES", "SPD", "ACC", "EVA")
MAX_MOVE_SLOTS = 4


class Species(BaseModel):
    id: int
    name: str
    base: Dict[str, int]
    biomes: List[str] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)
    spawn_rate: float = 0.0


class MoveSlot(BaseModel):
    move_id: int
    current_pp: int
    name_custom: Optional[str] = None


class LearnedPool(BaseModel):
    effects: List[str] = Field(default_factory=list)
    bonuses: List[str] = Field(default_factory=list)


class LearnList(BaseModel):
    # code -> відсоток 0..100
    effects: Dict[str, int] = Field(default_factory=dict)
    bonuses: Dict[str, int] = Field(default_factory=dict)


class Monster(BaseModel):
    id: int
    owner_id: int
    slot: int = 0
    species_id: int
    nickname: Optional[str] = None
    level: int = 1
    xp: int = 0
    hp: int
    max_hp: int
    growth: Dict[str, float] = Field(default_factory=dict)
    moves: List[MoveSlot] = Field(default_factory=list)
    learned_pool: LearnedPool = Field(default_factory=LearnedPool)
    learn_list: LearnList = Field(default_factory=LearnList)

    @property
    def alive(self) -> bool:
        return self.hp > 0


class PartyListResponse(BaseModel):
    party: List[Monster]


class StarterRequest(BaseModel):
    species_id: int
    nickname: Optional[str] = None


class MoveSlotEditRequest(BaseModel):
    effects: List[str]
    bonuses: List[str] = Field(default_factory=list)
    name_custom: Optional[str] = None
