from __future__ import annotations

from enum import Enum


PARAGRAPH_BREAK = "\r"


class ShapeKind(str, Enum):
    AUTOSHAPE = "autoshape"
    GROUP = "group"
    CHART = "chart"
    PICTURE = "picture"
    TEXT_BOX = "text_box"
    PLACEHOLDER = "placeholder"
    OTHER = "other"


class TriggerType(str, Enum):
    ON_CLICK = "on_click"
    WITH_PREVIOUS = "with_previous"
    AFTER_PREVIOUS = "after_previous"


class EffectClass(str, Enum):
    ENTRANCE = "entr"
    EXIT = "exit"
    EMPHASIS = "emph"
    PATH = "path"
    OTHER = "other"

    @classmethod
    def from_preset(cls, value: str | None) -> "EffectClass":
        for member in cls:
            if member.value == (value or ""):
                return member
        return cls.OTHER
