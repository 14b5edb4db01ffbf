"""Merge a run of animated slides into the first one.

Each later slide's shapes are copied onto the first slide behind the
existing content. Its arrival is re-expressed as one group of effects
inserted at the end of the first slide's timeline: the new shapes appear
and the shapes of the previous step disappear. The group is triggered the
way the previous slide used to advance (on click, or after a delay).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from slidesync.core.animation.splicer import add_appear, add_disappear
from slidesync.core.model.host import EffectHandle, ShapeHandle, SlideHandle
from slidesync.core.model.types import TriggerType


logger = logging.getLogger(__name__)


DEFAULT_INDICATOR_PREFIX = "SlideSyncIndicator"


@dataclass(frozen=True)
class EffectTransition:
    """How a slide advanced, as a trigger for the effect that replaces it."""

    trigger: TriggerType = TriggerType.ON_CLICK
    delay: float = 0.0

    @classmethod
    def from_slide(cls, slide: SlideHandle) -> "EffectTransition":
        # only the trigger is carried over, not the visual transition
        transition = slide.transition
        if transition.advance_on_time:
            return cls(TriggerType.AFTER_PREVIOUS, float(transition.advance_time))
        return cls(TriggerType.ON_CLICK, 0.0)

    def apply(self, effect: EffectHandle) -> None:
        effect.trigger = self.trigger
        effect.delay = self.delay


def squash_slides(
    slides: Iterable[SlideHandle], indicator_prefix: str = DEFAULT_INDICATOR_PREFIX
) -> SlideHandle | None:
    """Merge `slides` into the first of them and delete the rest.

    Not atomic: an engine failure part way leaves the deck partially merged.
    Returns the first slide, or None for an empty input.
    """
    first = None
    previous_shapes: list[ShapeHandle] = []
    pending = EffectTransition()

    for slide in slides:
        if first is None:
            first = slide
            pending = EffectTransition.from_slide(slide)
            first.transition.advance_on_click = True
            first.transition.advance_on_time = False
            previous_shapes = list(first.shapes)
            continue

        timeline = first.timeline
        start = len(timeline)

        slide.delete_indicator(indicator_prefix)
        new_shapes = first.import_shapes(slide.shapes)
        first.send_to_back(new_shapes)

        for shape in new_shapes:
            add_appear(shape, first, start)
        for shape in previous_shapes:
            add_disappear(shape, first, start)

        if start < len(timeline):
            pending.apply(timeline[start])
        else:
            logger.warning("slide %d added no effects; its transition is dropped", slide.index)

        logger.debug(
            "merged slide %d: %d shapes in, %d out, trigger %s",
            slide.index,
            len(new_shapes),
            len(previous_shapes),
            pending.trigger.value,
        )
        previous_shapes = new_shapes
        pending = EffectTransition.from_slide(slide)
        slide.delete()

    if first is not None:
        logger.info("squashed slides into slide %d (%d effects)", first.index, len(first.timeline))
    return first


def sort_by_index(slides: Iterable[SlideHandle]) -> list[SlideHandle]:
    return sorted(slides, key=lambda s: s.index)
