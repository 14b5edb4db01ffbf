from __future__ import annotations

from slidesync.core.animation.squash import EffectTransition, sort_by_index, squash_slides
from slidesync.core.model.document import Transition
from slidesync.core.model.types import EffectClass, TriggerType


def test_squash_timed_slide(doc):
    a = doc.add_slide(Transition(advance_on_click=False, advance_on_time=True, advance_time=2.0))
    a1 = a.add_shape("a1")
    a2 = a.add_shape("a2")
    b = doc.add_slide()
    b.add_shape("b1")
    b.add_shape("SlideSyncIndicator 7")
    b.add_shape("b2")

    first = squash_slides([a, b])

    assert first == a
    assert doc.slides == [a]
    assert [s.name for s in a.shapes] == ["b1", "b2", "a1", "a2"]

    effects = list(a.timeline)
    assert len(effects) == 4
    assert effects[0].trigger is TriggerType.AFTER_PREVIOUS
    assert effects[0].delay == 2.0
    assert all(e.trigger is TriggerType.WITH_PREVIOUS for e in effects[1:])
    assert {e.shape for e in effects if e.effect_class is EffectClass.EXIT} == {a1, a2}
    assert {e.shape.name for e in effects if e.effect_class is EffectClass.ENTRANCE} == {"b1", "b2"}

    assert a.transition.advance_on_click
    assert not a.transition.advance_on_time


def test_squash_three_click_slides(doc):
    a, b, c = doc.add_slide(), doc.add_slide(), doc.add_slide()
    a.add_shape("a")
    b.add_shape("b")
    c.add_shape("c1")
    c.add_shape("c2")

    squash_slides([a, b, c])

    effects = list(a.timeline)
    assert len(effects) == 5
    # one click per merged slide
    assert [i for i, e in enumerate(effects) if e.trigger is TriggerType.ON_CLICK] == [0, 2]
    assert [e.shape.name for e in effects[2:] if e.effect_class is EffectClass.EXIT] == ["b"]
    assert [s.name for s in a.shapes] == ["c1", "c2", "b", "a"]


def test_each_copied_shape_gets_one_entrance(doc):
    a = doc.add_slide()
    a.add_shape("a")
    b = doc.add_slide()
    b.add_shape("b")

    squash_slides([a, b])
    copied = a.shape("b")

    assert len([e for e in a.timeline if e.shape == copied]) == 1


def test_empty_input():
    assert squash_slides([]) is None


def test_single_slide_only_normalizes_transition(doc):
    a = doc.add_slide(Transition(advance_on_click=False, advance_on_time=True, advance_time=1.0))
    a.add_shape("a")
    assert squash_slides([a]) == a
    assert len(a.timeline) == 0
    assert a.transition.advance_on_click and not a.transition.advance_on_time


def test_effect_transition_from_slide(doc):
    timed = doc.add_slide(Transition(advance_on_time=True, advance_time=3.5))
    assert EffectTransition.from_slide(timed) == EffectTransition(TriggerType.AFTER_PREVIOUS, 3.5)
    assert EffectTransition.from_slide(doc.add_slide()) == EffectTransition(TriggerType.ON_CLICK, 0.0)


def test_sort_by_index(doc):
    a, b, c = doc.add_slide(), doc.add_slide(), doc.add_slide()
    assert sort_by_index([c, a, b]) == [a, b, c]
