# routers/content.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter

from models.content import Bonus, ContentPool, Effect
from services.content.registry import get_registry

router = APIRouter(prefix="/content", tags=["content"])


@router.get("", response_model=ContentPool)
async def content_pool() -> ContentPool:
    # пул для редактора мувів + version для cache-bust
    return get_registry().content_pool()


@router.get("/effects", response_model=List[Effect])
async def content_effects() -> List[Effect]:
    return get_registry().effects()


@router.get("/bonuses", response_model=List[Bonus])
async def content_bonuses() -> List[Bonus]:
    return get_registry().bonuses()
