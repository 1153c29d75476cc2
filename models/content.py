# models/content.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Effect(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: Optional[str] = None
    target: str = "target"  # "self" | "target"
    accuracy: Optional[float] = None
    effect_type: str = "damage"  # "damage" | "status" | "stat_change"
    stat: Optional[str] = None
    amount: Optional[float] = None
    base_flag_eligible: bool = False
    base_pp: Optional[int] = None


class Bonus(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: Optional[str] = None
    value_type: str = "tag"  # "flat" | "percent" | "tag"
    value: Optional[float] = None


class Move(BaseModel):
    """
    Канонічний мув: одна комбінація (stack_effects, stack_bonuses) -> один id.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    stack_effects: List[str] = Field(default_factory=list)
    stack_bonuses: List[str] = Field(default_factory=list)
    power: Optional[float] = None
    accuracy: Optional[float] = None
    priority: int = 0


class NamedMove(BaseModel):
    name: str
    stack_effects: List[str]
    stack_bonuses: List[str] = Field(default_factory=list)
    power: Optional[float] = None
    accuracy: Optional[float] = None
    priority: int = 0


class ContentPool(BaseModel):
    effects: List[str]
    bonuses: List[str]
    version: int
