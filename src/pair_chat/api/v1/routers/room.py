from __future__ import annotations

from fastapi import APIRouter

from pair_chat.api.deps import CurrentPrincipal, ResolverDep
from pair_chat.api.v1.schemas.room import RoomContextResponse

router = APIRouter(prefix="/api/v1/room", tags=["room"])


@router.get("", response_model=RoomContextResponse)
async def get_room(principal: CurrentPrincipal, resolver: ResolverDep) -> RoomContextResponse:
    context = await resolver.resolve(principal)
    return RoomContextResponse.model_validate(context, from_attributes=True)
