from __future__ import annotations

from fastapi import APIRouter

from pair_chat.api.deps import PromptsDep
from pair_chat.api.v1.schemas.prompt import PromptSetResponse

router = APIRouter(prefix="/api/v1/prompts", tags=["prompts"])


@router.get("", response_model=list[PromptSetResponse])
async def list_prompt_sets(catalog: PromptsDep) -> list[PromptSetResponse]:
    return [PromptSetResponse.model_validate(s, from_attributes=True) for s in catalog.sets]
