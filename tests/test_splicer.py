from __future__ import annotations

from slidesync.core.animation.splicer import add_appear, add_disappear, make_shape_view_time_invisible
from slidesync.core.model.types import EffectClass, TriggerType


def test_add_appear_inserts_at_index(slide):
    a = slide.add_shape("A")
    b = slide.add_shape("B")
    slide.timeline.add_effect(a, trigger=TriggerType.ON_CLICK, exit=True)

    effect = add_appear(b, slide, 0)

    assert effect.index == 0
    assert effect.effect_class is EffectClass.ENTRANCE
    assert effect.trigger is TriggerType.WITH_PREVIOUS
    assert effect.duration == 0
    assert [e.shape.name for e in slide.timeline] == ["B", "A"]


def test_existing_entrance_is_not_duplicated(slide):
    a = slide.add_shape("A")
    slide.timeline.add_effect(a)
    assert add_appear(a, slide, 0) is None
    assert len(slide.timeline) == 1


def test_existing_exit_is_not_duplicated(slide):
    a = slide.add_shape("A")
    slide.timeline.add_effect(a, exit=True)
    assert add_disappear(a, slide, 1) is None
    assert add_appear(a, slide, 1) is not None


def test_make_shape_view_time_invisible(slide):
    a = slide.add_shape("A")
    note = slide.add_shape("Note")
    slide.timeline.add_effect(a, trigger=TriggerType.ON_CLICK)

    make_shape_view_time_invisible(note, slide)

    effects = list(slide.timeline)
    assert [(e.shape.name, e.effect_class) for e in effects] == [
        ("Note", EffectClass.ENTRANCE),
        ("Note", EffectClass.EXIT),
        ("A", EffectClass.ENTRANCE),
    ]
    assert effects[0].trigger is TriggerType.WITH_PREVIOUS
    assert effects[1].trigger is TriggerType.WITH_PREVIOUS
