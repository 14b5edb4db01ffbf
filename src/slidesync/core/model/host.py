"""Capability surface the algorithms expect from a document engine.

Both engines (`slidesync.core.model.document` and `slidesync.core.pptx`)
implement these protocols. Handles are cheap views that re-resolve their
shape/slide on every access, so they stay valid across copy, paste and
delete calls as long as the object itself still exists.

Conventions:
- geometry in points
- z-order positions are 1-based, larger is further forward
- timelines are 0-indexed Python sequences; inserting shifts later entries
"""

from __future__ import annotations

from typing import Iterator, Protocol, Sequence

from slidesync.core.model.text_buffer import TextRange
from slidesync.core.model.types import EffectClass, ShapeKind, TriggerType


class TransitionHandle(Protocol):
    advance_on_click: bool
    advance_on_time: bool
    advance_time: float


class EffectHandle(Protocol):
    trigger: TriggerType
    delay: float
    exit: bool

    @property
    def shape(self) -> "ShapeHandle": ...

    @property
    def effect_class(self) -> EffectClass: ...

    @property
    def duration(self) -> float: ...


class TimelineHandle(Protocol):
    def __len__(self) -> int: ...

    def __getitem__(self, index: int) -> EffectHandle: ...

    def __iter__(self) -> Iterator[EffectHandle]: ...

    def add_effect(
        self,
        shape: "ShapeHandle",
        *,
        index: int | None = None,
        trigger: TriggerType = TriggerType.WITH_PREVIOUS,
        exit: bool = False,
        duration: float = 0.0,
        delay: float = 0.0,
    ) -> EffectHandle: ...


class ShapeHandle(Protocol):
    name: str
    left: float
    top: float
    width: float
    height: float
    rotation: float
    lock_aspect_ratio: bool

    @property
    def kind(self) -> ShapeKind: ...

    @property
    def auto_shape_type(self) -> str | None: ...

    @property
    def visible(self) -> bool: ...

    @property
    def exists(self) -> bool: ...

    @property
    def z_order_position(self) -> int: ...

    @property
    def has_text_frame(self) -> bool: ...

    @property
    def text_range(self) -> TextRange: ...

    @property
    def slide(self) -> "SlideHandle": ...

    def bring_forward(self) -> int: ...

    def send_backward(self) -> int: ...

    def pick_up(self) -> None: ...

    def apply(self) -> None: ...

    def copy(self) -> None: ...

    def cut(self) -> None: ...

    def delete(self) -> None: ...

    def duplicate(self) -> "ShapeHandle": ...


class SlideHandle(Protocol):
    @property
    def index(self) -> int: ...

    @property
    def shapes(self) -> list[ShapeHandle]: ...

    @property
    def timeline(self) -> TimelineHandle: ...

    @property
    def transition(self) -> TransitionHandle: ...

    def shape(self, name: str) -> ShapeHandle | None: ...

    def paste(self) -> list[ShapeHandle]: ...

    def import_shapes(self, shapes: Sequence[ShapeHandle]) -> list[ShapeHandle]: ...

    def send_to_back(self, shapes: Sequence[ShapeHandle]) -> None: ...

    def delete_indicator(self, prefix: str) -> int: ...

    def has_entry_animation(self, shape: ShapeHandle) -> bool: ...

    def has_exit_animation(self, shape: ShapeHandle) -> bool: ...

    def delete(self) -> None: ...
