"""In-memory document engine.

An arena of slide and shape records addressed by generated ids. Handles
(`Slide`, `Shape`, `Effect`) never cache records; every access looks the
record up again and raises `StaleHandleError` once it is gone.

The engine mimics the host behaviours the algorithms depend on:
- setting width or height on an aspect-locked shape scales the other side
- z-order moves one step at a time and reports the resulting position
- groups and charts reject the format painter
- text ranges follow `text_buffer` paste/merge semantics
"""

from __future__ import annotations

import copy
import itertools
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from slidesync.core.errors import (
    HostArgumentError,
    HostPermissionError,
    HostPlatformError,
    StaleHandleError,
)
from slidesync.core.model.text_buffer import Clipboard, Paragraph, TextRange
from slidesync.core.model.types import PARAGRAPH_BREAK, EffectClass, ShapeKind, TriggerType


logger = logging.getLogger(__name__)


_DEFAULT_LABELS: dict[ShapeKind, str] = {
    ShapeKind.AUTOSHAPE: "Rectangle",
    ShapeKind.GROUP: "Group",
    ShapeKind.CHART: "Chart",
    ShapeKind.PICTURE: "Picture",
    ShapeKind.TEXT_BOX: "TextBox",
    ShapeKind.PLACEHOLDER: "Placeholder",
    ShapeKind.OTHER: "Shape",
}


@dataclass(eq=False)
class ShapeRecord:
    shape_id: int
    name: str
    kind: ShapeKind
    auto_shape_type: str | None = None
    left: float = 0.0
    top: float = 0.0
    width: float = 100.0
    height: float = 50.0
    rotation: float = 0.0
    lock_aspect_ratio: bool = False
    visible: bool = True
    paragraphs: list[Paragraph] | None = None
    fill: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class EffectRecord:
    shape_id: int
    trigger: TriggerType = TriggerType.WITH_PREVIOUS
    delay: float = 0.0
    effect_class: EffectClass = EffectClass.ENTRANCE
    duration: float = 0.0


@dataclass(eq=False)
class Transition:
    advance_on_click: bool = True
    advance_on_time: bool = False
    advance_time: float = 0.0


@dataclass(eq=False)
class SlideRecord:
    slide_id: int
    shapes: list[ShapeRecord] = field(default_factory=list)
    effects: list[EffectRecord] = field(default_factory=list)
    transition: Transition = field(default_factory=Transition)


class Document:
    def __init__(self, slide_width: float = 960.0, slide_height: float = 540.0) -> None:
        self.slide_width = slide_width
        self.slide_height = slide_height
        self.clipboard = Clipboard()
        self._records: list[SlideRecord] = []
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    def add_slide(self, transition: Transition | None = None) -> "Slide":
        rec = SlideRecord(slide_id=self.next_id(), transition=transition or Transition())
        self._records.append(rec)
        return Slide(self, rec.slide_id)

    @property
    def slides(self) -> list["Slide"]:
        return [Slide(self, rec.slide_id) for rec in self._records]

    def slide_record(self, slide_id: int) -> SlideRecord:
        for rec in self._records:
            if rec.slide_id == slide_id:
                return rec
        raise StaleHandleError(f"slide {slide_id} no longer exists")

    def remove_slide(self, slide_id: int) -> None:
        self._records.remove(self.slide_record(slide_id))


def _default_name(kind: ShapeKind, shape_id: int) -> str:
    return f"{_DEFAULT_LABELS[kind]} {shape_id}"


def _has_default_name(rec: ShapeRecord) -> bool:
    return re.fullmatch(rf"{re.escape(_DEFAULT_LABELS[rec.kind])} \d+", rec.name) is not None


class Slide:
    def __init__(self, doc: Document, slide_id: int) -> None:
        self._doc = doc
        self.slide_id = slide_id

    @property
    def _rec(self) -> SlideRecord:
        return self._doc.slide_record(self.slide_id)

    @property
    def document(self) -> Document:
        return self._doc

    @property
    def index(self) -> int:
        return [s.slide_id for s in self._doc.slides].index(self.slide_id) + 1

    @property
    def exists(self) -> bool:
        try:
            self._rec
        except StaleHandleError:
            return False
        return True

    def add_shape(
        self,
        name: str | None = None,
        kind: ShapeKind = ShapeKind.AUTOSHAPE,
        *,
        left: float = 0.0,
        top: float = 0.0,
        width: float = 100.0,
        height: float = 50.0,
        rotation: float = 0.0,
        auto_shape_type: str | None = None,
        text: str | Sequence[str] | None = None,
        formats: Sequence[Any] | None = None,
        lock_aspect_ratio: bool = False,
        visible: bool = True,
        fill: dict[str, Any] | None = None,
    ) -> "Shape":
        shape_id = self._doc.next_id()
        if kind is ShapeKind.AUTOSHAPE and auto_shape_type is None:
            auto_shape_type = "rect"
        paragraphs = None
        if text is not None:
            lines = text.split(PARAGRAPH_BREAK) if isinstance(text, str) else list(text)
            fmts = list(formats or [None])
            paragraphs = [
                Paragraph(line, fmts[min(i, len(fmts) - 1)]) for i, line in enumerate(lines)
            ] or [Paragraph("", fmts[0])]
        elif kind in (ShapeKind.AUTOSHAPE, ShapeKind.TEXT_BOX, ShapeKind.PLACEHOLDER):
            paragraphs = [Paragraph("")]
        rec = ShapeRecord(
            shape_id=shape_id,
            name=name or _default_name(kind, shape_id),
            kind=kind,
            auto_shape_type=auto_shape_type if kind is ShapeKind.AUTOSHAPE else None,
            left=left,
            top=top,
            width=width,
            height=height,
            rotation=rotation,
            lock_aspect_ratio=lock_aspect_ratio,
            visible=visible,
            paragraphs=paragraphs,
            fill=dict(fill or {}),
        )
        self._rec.shapes.append(rec)
        return Shape(self._doc, self.slide_id, shape_id)

    @property
    def shapes(self) -> list["Shape"]:
        """Shapes from back to front."""
        return [Shape(self._doc, self.slide_id, r.shape_id) for r in self._rec.shapes]

    def shape(self, name: str) -> "Shape | None":
        for rec in self._rec.shapes:
            if rec.name == name:
                return Shape(self._doc, self.slide_id, rec.shape_id)
        return None

    @property
    def timeline(self) -> "Timeline":
        return Timeline(self)

    @property
    def transition(self) -> Transition:
        return self._rec.transition

    def _insert_copies(self, records: Sequence[ShapeRecord]) -> list["Shape"]:
        out: list[Shape] = []
        for src in records:
            rec = copy.deepcopy(src)
            rec.shape_id = self._doc.next_id()
            self._rec.shapes.append(rec)
            out.append(Shape(self._doc, self.slide_id, rec.shape_id))
        return out

    def paste(self) -> list["Shape"]:
        records = self._doc.clipboard.shapes
        if not records:
            raise HostArgumentError("clipboard holds no shapes")
        return self._insert_copies(records)

    def import_shapes(self, shapes: Sequence["Shape"]) -> list["Shape"]:
        """Copy shapes (from any slide) onto this slide, in front of everything."""
        return self._insert_copies([s._rec for s in shapes])

    def send_to_back(self, shapes: Sequence["Shape"]) -> None:
        ids = [s.shape_id for s in shapes]
        records = self._rec.shapes
        moved = [r for r in records if r.shape_id in ids]
        moved.sort(key=lambda r: ids.index(r.shape_id))
        records[:] = moved + [r for r in records if r.shape_id not in ids]

    def delete_indicator(self, prefix: str) -> int:
        doomed = [s for s in self.shapes if s.name.startswith(prefix)]
        for s in doomed:
            s.delete()
        return len(doomed)

    def _effects_for(self, shape: "Shape") -> list[EffectRecord]:
        return [e for e in self._rec.effects if e.shape_id == shape.shape_id]

    def has_entry_animation(self, shape: "Shape") -> bool:
        return any(e.effect_class is EffectClass.ENTRANCE for e in self._effects_for(shape))

    def has_exit_animation(self, shape: "Shape") -> bool:
        return any(e.effect_class is EffectClass.EXIT for e in self._effects_for(shape))

    def delete(self) -> None:
        self._doc.remove_slide(self.slide_id)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Slide) and other._doc is self._doc and other.slide_id == self.slide_id

    def __hash__(self) -> int:
        return hash(self.slide_id)

    def __repr__(self) -> str:
        return f"Slide(id={self.slide_id})"


class Shape:
    def __init__(self, doc: Document, slide_id: int, shape_id: int) -> None:
        self._doc = doc
        self.slide_id = slide_id
        self.shape_id = shape_id

    @property
    def _rec(self) -> ShapeRecord:
        for rec in self._doc.slide_record(self.slide_id).shapes:
            if rec.shape_id == self.shape_id:
                return rec
        raise StaleHandleError(f"shape {self.shape_id} no longer exists")

    @property
    def exists(self) -> bool:
        try:
            self._rec
        except StaleHandleError:
            return False
        return True

    @property
    def slide(self) -> Slide:
        return Slide(self._doc, self.slide_id)

    # -- identity / type
    @property
    def name(self) -> str:
        return self._rec.name

    @name.setter
    def name(self, value: str) -> None:
        self._rec.name = value

    @property
    def kind(self) -> ShapeKind:
        return self._rec.kind

    @property
    def auto_shape_type(self) -> str | None:
        return self._rec.auto_shape_type

    @property
    def visible(self) -> bool:
        return self._rec.visible

    @property
    def fill(self) -> dict[str, Any]:
        return dict(self._rec.fill)

    # -- geometry
    @property
    def left(self) -> float:
        return self._rec.left

    @left.setter
    def left(self, value: float) -> None:
        self._rec.left = float(value)

    @property
    def top(self) -> float:
        return self._rec.top

    @top.setter
    def top(self, value: float) -> None:
        self._rec.top = float(value)

    @property
    def width(self) -> float:
        return self._rec.width

    @width.setter
    def width(self, value: float) -> None:
        rec = self._rec
        if rec.lock_aspect_ratio and rec.width:
            rec.height = rec.height * float(value) / rec.width
        rec.width = float(value)

    @property
    def height(self) -> float:
        return self._rec.height

    @height.setter
    def height(self, value: float) -> None:
        rec = self._rec
        if rec.lock_aspect_ratio and rec.height:
            rec.width = rec.width * float(value) / rec.height
        rec.height = float(value)

    @property
    def rotation(self) -> float:
        return self._rec.rotation

    @rotation.setter
    def rotation(self, value: float) -> None:
        self._rec.rotation = float(value) % 360.0

    @property
    def lock_aspect_ratio(self) -> bool:
        return self._rec.lock_aspect_ratio

    @lock_aspect_ratio.setter
    def lock_aspect_ratio(self, value: bool) -> None:
        self._rec.lock_aspect_ratio = bool(value)

    # -- z-order
    @property
    def z_order_position(self) -> int:
        return self._siblings().index(self._rec) + 1

    def _siblings(self) -> list[ShapeRecord]:
        return self._doc.slide_record(self.slide_id).shapes

    def _step(self, offset: int) -> int:
        records = self._siblings()
        i = records.index(self._rec)
        j = i + offset
        if 0 <= j < len(records):
            records[i], records[j] = records[j], records[i]
        return self.z_order_position

    def bring_forward(self) -> int:
        return self._step(1)

    def send_backward(self) -> int:
        return self._step(-1)

    # -- format painter
    def _check_format_access(self) -> None:
        kind = self._rec.kind
        if kind is ShapeKind.GROUP:
            raise HostPermissionError(f"{self.name}: group shapes do not expose a shape format")
        if kind is ShapeKind.CHART:
            raise HostPlatformError(f"{self.name}: chart frames do not expose a shape format")

    def pick_up(self) -> None:
        self._check_format_access()
        self._doc.clipboard.shape_format = dict(self._rec.fill)

    def apply(self) -> None:
        self._check_format_access()
        fmt = self._doc.clipboard.shape_format
        if fmt is None:
            raise HostArgumentError("no shape format was picked up")
        self._rec.fill = dict(fmt)

    # -- clipboard / lifecycle
    def copy(self) -> None:
        self._doc.clipboard.shapes = [copy.deepcopy(self._rec)]

    def cut(self) -> None:
        self.copy()
        self.delete()

    def delete(self) -> None:
        slide = self._doc.slide_record(self.slide_id)
        rec = self._rec
        slide.effects[:] = [e for e in slide.effects if e.shape_id != rec.shape_id]
        slide.shapes.remove(rec)

    def duplicate(self) -> "Shape":
        src = self._rec
        dup = copy.deepcopy(src)
        dup.shape_id = self._doc.next_id()
        if _has_default_name(src):
            dup.name = _default_name(src.kind, dup.shape_id)
        self._siblings().append(dup)
        return Shape(self._doc, self.slide_id, dup.shape_id)

    # -- text
    @property
    def has_text_frame(self) -> bool:
        return self._rec.paragraphs is not None

    @property
    def text_range(self) -> TextRange:
        if not self.has_text_frame:
            raise HostArgumentError(f"{self.name}: shape has no text frame")
        return TextRange(self)

    @property
    def clipboard(self) -> Clipboard:
        return self._doc.clipboard

    def read_paragraphs(self) -> list[Paragraph]:
        paragraphs = self._rec.paragraphs
        if paragraphs is None:
            raise HostArgumentError(f"{self.name}: shape has no text frame")
        return list(paragraphs)

    def write_paragraphs(self, paragraphs: list[Paragraph]) -> None:
        self._rec.paragraphs = list(paragraphs)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Shape) and other._doc is self._doc and other.shape_id == self.shape_id

    def __hash__(self) -> int:
        return hash(self.shape_id)

    def __repr__(self) -> str:
        return f"Shape(id={self.shape_id}, slide={self.slide_id})"


class Effect:
    def __init__(self, slide: Slide, record: EffectRecord) -> None:
        self._slide = slide
        self._record = record

    @property
    def shape(self) -> Shape:
        return Shape(self._slide.document, self._slide.slide_id, self._record.shape_id)

    @property
    def index(self) -> int:
        return self._slide._rec.effects.index(self._record)

    @property
    def trigger(self) -> TriggerType:
        return self._record.trigger

    @trigger.setter
    def trigger(self, value: TriggerType) -> None:
        self._record.trigger = TriggerType(value)

    @property
    def delay(self) -> float:
        return self._record.delay

    @delay.setter
    def delay(self, value: float) -> None:
        self._record.delay = float(value)

    @property
    def effect_class(self) -> EffectClass:
        return self._record.effect_class

    @property
    def exit(self) -> bool:
        return self._record.effect_class is EffectClass.EXIT

    @exit.setter
    def exit(self, value: bool) -> None:
        self._record.effect_class = EffectClass.EXIT if value else EffectClass.ENTRANCE

    @property
    def duration(self) -> float:
        return self._record.duration

    def __repr__(self) -> str:
        r = self._record
        return f"Effect(shape={r.shape_id}, {r.effect_class.value}, {r.trigger.value}, delay={r.delay})"


class Timeline:
    def __init__(self, slide: Slide) -> None:
        self._slide = slide

    @property
    def _effects(self) -> list[EffectRecord]:
        return self._slide._rec.effects

    def __len__(self) -> int:
        return len(self._effects)

    def __getitem__(self, index: int) -> Effect:
        return Effect(self._slide, self._effects[index])

    def __iter__(self) -> Iterator[Effect]:
        return (Effect(self._slide, rec) for rec in list(self._effects))

    def add_effect(
        self,
        shape: Shape,
        *,
        index: int | None = None,
        trigger: TriggerType = TriggerType.WITH_PREVIOUS,
        exit: bool = False,
        duration: float = 0.0,
        delay: float = 0.0,
        effect_class: EffectClass | None = None,
    ) -> Effect:
        if shape.slide_id != self._slide.slide_id or not shape.exists:
            raise HostArgumentError(f"{shape!r} is not on {self._slide!r}")
        effects = self._effects
        if index is None:
            index = len(effects)
        if not 0 <= index <= len(effects):
            raise HostArgumentError(f"effect index {index} out of range 0..{len(effects)}")
        if effect_class is None:
            effect_class = EffectClass.EXIT if exit else EffectClass.ENTRANCE
        rec = EffectRecord(
            shape_id=shape.shape_id,
            trigger=TriggerType(trigger),
            delay=float(delay),
            effect_class=effect_class,
            duration=float(duration),
        )
        effects.insert(index, rec)
        logger.debug("effect %s inserted at %d", rec, index)
        return Effect(self._slide, rec)
