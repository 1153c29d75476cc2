# routers/party.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from core.auth import get_current_player_id
from models.monster import Monster, MoveSlotEditRequest, PartyListResponse, StarterRequest
from services.battle.deps import get_party_service
from services.party.service import PartyService

router = APIRouter(prefix="/party", tags=["party"])


@router.get("", response_model=PartyListResponse)
async def party_list(
    player_id: int = Depends(get_current_player_id),
    service: PartyService = Depends(get_party_service),
) -> PartyListResponse:
    return PartyListResponse(party=await service.list_party(player_id))


@router.post("/starter", response_model=Monster)
async def party_starter(
    payload: StarterRequest,
    player_id: int = Depends(get_current_player_id),
    service: PartyService = Depends(get_party_service),
) -> Monster:
    return await service.grant_starter(player_id, payload.species_id, payload.nickname)


@router.put("/{monster_id}/moves/{slot_index}", response_model=Monster)
async def party_edit_move(
    monster_id: int,
    slot_index: int,
    payload: MoveSlotEditRequest,
    player_id: int = Depends(get_current_player_id),
    service: PartyService = Depends(get_party_service),
) -> Monster:
    return await service.edit_move_slot(player_id, monster_id, slot_index, payload)


@router.post("/heal", response_model=PartyListResponse)
async def party_heal(
    player_id: int = Depends(get_current_player_id),
    service: PartyService = Depends(get_party_service),
) -> PartyListResponse:
    return PartyListResponse(party=await service.heal_party(player_id))


@router.delete("/{monster_id}")
async def party_release(
    monster_id: int,
    player_id: int = Depends(get_current_player_id),
    service: PartyService = Depends(get_party_service),
) -> dict:
    await service.release(player_id, monster_id)
    return {"ok": True}
