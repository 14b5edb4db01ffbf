from __future__ import annotations

import logging
from typing import Iterable

from slidesync.core.model.host import EffectHandle, ShapeHandle, SlideHandle
from slidesync.core.model.types import TriggerType


logger = logging.getLogger(__name__)


def add_appear(shape: ShapeHandle, slide: SlideHandle, index: int) -> EffectHandle | None:
    """Insert a zero-duration appear effect at `index` unless the shape already has an entrance."""
    if slide.has_entry_animation(shape):
        return None
    return slide.timeline.add_effect(
        shape, index=index, trigger=TriggerType.WITH_PREVIOUS, exit=False, duration=0.0
    )


def add_disappear(shape: ShapeHandle, slide: SlideHandle, index: int) -> EffectHandle | None:
    """Insert a zero-duration disappear effect at `index` unless the shape already has an exit."""
    if slide.has_exit_animation(shape):
        return None
    return slide.timeline.add_effect(
        shape, index=index, trigger=TriggerType.WITH_PREVIOUS, exit=True, duration=0.0
    )


def make_shape_view_time_invisible(shapes: ShapeHandle | Iterable[ShapeHandle], slide: SlideHandle) -> None:
    """Make shapes appear and vanish at the very start of the slide show.

    Each shape gets an appear effect at index 0 followed by a disappear
    effect at index 1, both with-previous and zero duration.
    """
    if not isinstance(shapes, Iterable):
        shapes = [shapes]
    for shape in shapes:
        timeline = slide.timeline
        timeline.add_effect(shape, index=0, trigger=TriggerType.WITH_PREVIOUS, exit=False)
        timeline.add_effect(shape, index=1, trigger=TriggerType.WITH_PREVIOUS, exit=True)
        logger.debug("%r hidden during the show", shape.name)
