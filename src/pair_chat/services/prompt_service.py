"""Static prompt catalog for the games sheet.

Categories are authored either as a flat list of prompts or as a mapping
keyed by position (``{"1": ..., "2": ...}``). Both shapes are flattened
here into ordered ``(label, text)`` pairs so callers never branch on shape.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


@dataclass(frozen=True, slots=True)
class Prompt:
    label: str
    text: str


@dataclass(frozen=True, slots=True)
class PromptSet:
    key: str
    label: str
    prompts: tuple[Prompt, ...]

    @property
    def categories(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for prompt in self.prompts:
            seen.setdefault(prompt.label, None)
        return tuple(seen)


PROMPT_SETS: dict[str, dict[str, Any]] = {
    "truth": {
        "label": "Truth or Dare",
        "categories": {
            "Friend": [
                "Truth (friend): What is one memory with me you'll never forget?",
                "Truth (friend): What is something you wish we did more together?",
            ],
            "Crush": [
                "Truth (crush): When did you first start liking me?",
                "Truth (crush): What's one small thing I do that you secretly love?",
            ],
            "Partner": [
                "Truth (partner): What's something you're scared to tell me but want to?",
                "Truth (partner): When do you feel closest to me?",
            ],
        },
    },
    "dare": {
        "label": "Dare prompts",
        "categories": {
            "Friend": {
                "1": "Dare (friend): Send me your most unfiltered selfie right now.",
                "2": "Dare (friend): Voice note a random story from today.",
            },
            "Crush": {
                "1": "Dare (crush): Send a 10-second voice note describing me without using my name.",
                "2": "Dare (crush): Change my name in your phone to something sweet and send a screenshot.",
            },
            "Partner": {
                "1": "Dare (partner): Send a voice note telling me 3 things you love about us.",
                "2": "Dare (partner): Plan a tiny date idea and send it as a message.",
            },
        },
    },
    "wyr": {
        "label": "Would you rather",
        "categories": {
            "Friend": [
                "Would you rather: movie night in or late walk outside?",
                "Would you rather: unlimited trips with friends or unlimited gadgets?",
            ],
            "Crush": [
                "Would you rather: endless late-night calls or surprise dates?",
                "Would you rather: hold hands in public or cuddle indoors?",
            ],
            "Partner": [
                "Would you rather: travel the world together or build a home together?",
                "Would you rather: always be honest even if it hurts or keep small secrets to protect feelings?",
            ],
        },
    },
}


def _position(key: Any) -> tuple[int, str]:
    try:
        return (int(key), "")
    except (TypeError, ValueError):
        return (2**31, str(key))


def normalize_category(label: str, raw: Sequence[str] | Mapping[Any, str]) -> tuple[Prompt, ...]:
    if isinstance(raw, Mapping):
        items = [raw[key] for key in sorted(raw, key=_position)]
    elif isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        raise TypeError(f"category {label!r} must be a list or a numbered mapping")
    return tuple(Prompt(label=label, text=str(text).strip()) for text in items if str(text).strip())


def normalize_set(key: str, raw: Mapping[str, Any]) -> PromptSet:
    prompts: list[Prompt] = []
    for label, category in raw.get("categories", {}).items():
        prompts.extend(normalize_category(label, category))
    return PromptSet(key=key, label=raw.get("label", key), prompts=tuple(prompts))


class PromptCatalog:
    def __init__(self, raw: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        source = PROMPT_SETS if raw is None else raw
        self._sets = tuple(normalize_set(key, value) for key, value in source.items())

    @property
    def sets(self) -> tuple[PromptSet, ...]:
        return self._sets

    def get(self, key: str) -> PromptSet | None:
        return next((s for s in self._sets if s.key == key), None)

    def contains(self, text: str) -> bool:
        return any(p.text == text for s in self._sets for p in s.prompts)
