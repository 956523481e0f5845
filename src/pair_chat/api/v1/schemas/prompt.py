from __future__ import annotations

from pydantic import BaseModel


class PromptResponse(BaseModel):
    label: str
    text: str

    model_config = {"from_attributes": True}


class PromptSetResponse(BaseModel):
    key: str
    label: str
    categories: list[str]
    prompts: list[PromptResponse]

    model_config = {"from_attributes": True}
