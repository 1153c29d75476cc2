# routers/battle.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from core.auth import get_current_player_id
from services.battle.deps import get_battle_service
from services.battle.models import BattleResponse, TurnRequest
from services.battle.service import BattleService

router = APIRouter(prefix="/battle", tags=["battle"])


# ===========================
# BATTLE START
# ===========================
@router.post("/start", response_model=BattleResponse)
async def battle_start(
    player_id: int = Depends(get_current_player_id),
    service: BattleService = Depends(get_battle_service),
) -> BattleResponse:
    return await service.start(player_id)


# ===========================
# CURRENT STATE
# ===========================
@router.get("", response_model=BattleResponse)
async def battle_state(
    player_id: int = Depends(get_current_player_id),
    service: BattleService = Depends(get_battle_service),
) -> BattleResponse:
    return await service.current(player_id)


# ===========================
# TURN (move | switch | run)
# ===========================
@router.post("/turn", response_model=BattleResponse)
async def battle_turn(
    payload: TurnRequest,
    player_id: int = Depends(get_current_player_id),
    service: BattleService = Depends(get_battle_service),
) -> BattleResponse:
    return await service.turn(player_id, payload)


# ===========================
# CAPTURE
# ===========================
@router.post("/capture", response_model=BattleResponse)
async def battle_capture(
    player_id: int = Depends(get_current_player_id),
    service: BattleService = Depends(get_battle_service),
) -> BattleResponse:
    return await service.capture(player_id)


# ===========================
# FINISH
# ===========================
@router.post("/finish", response_model=BattleResponse)
async def battle_finish(
    player_id: int = Depends(get_current_player_id),
    service: BattleService = Depends(get_battle_service),
) -> BattleResponse:
    return await service.finish(player_id)
