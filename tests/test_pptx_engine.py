from __future__ import annotations

import pytest
from pptx.enum.shapes import MSO_SHAPE
from pptx.oxml.ns import qn
from pptx.util import Pt

from slidesync.core.animation.squash import squash_slides
from slidesync.core.errors import HostPermissionError, StaleHandleError
from slidesync.core.model.types import EffectClass, ShapeKind, TriggerType
from slidesync.core.pptx.engine import PptxDocument
from slidesync.core.shapes.utils import corruption_correction, has_default_name, is_corrupted
from slidesync.core.shapes.zorder import move_to_just_behind
from slidesync.core.sync.shape_sync import sync_shape, sync_whole_shape
from slidesync.core.sync.text_sync import set_text


@pytest.fixture
def deck(deck_path) -> PptxDocument:
    return PptxDocument.open(deck_path)


def _names(slide):
    return [s.name for s in slide.shapes]


def _reopen(deck, tmp_path) -> PptxDocument:
    out = tmp_path / "out" / "saved.pptx"
    deck.save(out)
    return PptxDocument.open(out)


def test_slide_size_in_points(deck):
    assert (deck.slide_width, deck.slide_height) == (720, 540)


def test_shapes_and_kinds(deck):
    s1 = deck.slide_at(1)
    assert _names(s1) == ["A", "B", "C"]
    a, c = s1.shape("A"), s1.shape("C")
    assert a.kind is ShapeKind.AUTOSHAPE
    assert a.auto_shape_type == "rect"
    assert c.auto_shape_type == "ellipse"
    assert s1.shape("missing") is None


def test_geometry_round_trips_in_points(deck):
    a = deck.slide_at(1).shape("A")
    assert (a.left, a.top, a.width, a.height) == (10, 20, 100, 50)

    a.width = 123.5
    a.rotation = 30
    assert a.width == 123.5
    assert a.rotation == 30


def test_aspect_lock_is_written_to_shape_locks(deck):
    a = deck.slide_at(1).shape("A")
    assert not a.lock_aspect_ratio

    a.lock_aspect_ratio = True
    assert a.lock_aspect_ratio
    assert a.element.find(qn("p:nvSpPr")).find(qn("p:cNvSpPr")).find(qn("a:spLocks")) is not None

    a.lock_aspect_ratio = False
    assert not a.lock_aspect_ratio
    assert a.element.find(qn("p:nvSpPr")).find(qn("p:cNvSpPr")).find(qn("a:spLocks")) is None


def test_zorder_follows_sptree_order(deck, tmp_path):
    s1 = deck.slide_at(1)
    move_to_just_behind(s1.shape("C"), s1.shape("A"))
    assert _names(s1) == ["C", "A", "B"]
    assert _names(_reopen(deck, tmp_path).slide_at(1)) == ["C", "A", "B"]


def test_set_text_keeps_run_format(deck):
    b = deck.slide_at(1).shape("B")
    b.native.text_frame.paragraphs[0].runs[0].font.bold = True

    set_text(b, "zwei", "drei")

    tf = b.native.text_frame
    assert tf.text == "zwei\ndrei"
    assert b.text_range.paragraph_count == 2
    assert tf.paragraphs[0].runs[0].font.bold is True


def test_sync_shape_across_slides(deck):
    ref = deck.slide_at(1).shape("A")
    ref.native.text_frame.paragraphs[0].runs[0].font.bold = True
    candidate = deck.slide_at(2).shape("A")

    sync_shape(ref, candidate)

    assert (candidate.left, candidate.top) == (10, 20)
    assert candidate.text_range.text == "one"
    assert candidate.native.text_frame.paragraphs[0].runs[0].font.bold is True


def test_timeline_insert_and_retrigger(deck):
    s1 = deck.slide_at(1)
    a, b = s1.shape("A"), s1.shape("B")
    assert len(s1.timeline) == 0

    effect = s1.timeline.add_effect(a)
    assert s1.element.find(qn("p:timing")) is not None
    assert effect.trigger is TriggerType.WITH_PREVIOUS
    assert effect.effect_class is EffectClass.ENTRANCE

    effect.trigger = TriggerType.ON_CLICK
    effect.exit = True
    s1.timeline.add_effect(b, index=0, trigger=TriggerType.AFTER_PREVIOUS, delay=1.5)

    effects = list(s1.timeline)
    assert [e.shape for e in effects] == [b, a]
    assert effects[0].delay == 1.5
    assert effects[0].trigger is TriggerType.AFTER_PREVIOUS
    assert effects[1].trigger is TriggerType.ON_CLICK
    assert effects[1].effect_class is EffectClass.EXIT
    assert s1.has_exit_animation(a)
    assert not s1.has_entry_animation(a)


def test_timeline_survives_save(deck, tmp_path):
    s1 = deck.slide_at(1)
    s1.timeline.add_effect(s1.shape("A"), trigger=TriggerType.ON_CLICK)
    s1.timeline.add_effect(s1.shape("B"), exit=True)

    reloaded = _reopen(deck, tmp_path).slide_at(1)
    effects = list(reloaded.timeline)
    assert [(e.shape.name, e.effect_class, e.trigger) for e in effects] == [
        ("A", EffectClass.ENTRANCE, TriggerType.ON_CLICK),
        ("B", EffectClass.EXIT, TriggerType.WITH_PREVIOUS),
    ]


def test_deleting_shape_drops_its_effects(deck):
    s1 = deck.slide_at(1)
    a = s1.shape("A")
    s1.timeline.add_effect(a)

    a.delete()

    assert len(s1.timeline) == 0
    assert s1.element.find(qn("p:timing")) is None
    with pytest.raises(StaleHandleError):
        a.name


def test_transition_advance_settings(deck):
    t = deck.slide_at(1).transition
    assert t.advance_on_click
    assert not t.advance_on_time

    t.advance_time = 2.0
    t.advance_on_click = False

    assert t.advance_on_time
    assert t.advance_time == 2.0
    el = deck.slide_at(1).element.find(qn("p:transition"))
    assert el.get("advTm") == "2000"
    assert el.get("advClick") == "0"

    t.advance_on_time = False
    assert not t.advance_on_time


def test_has_default_name(deck):
    s2 = deck.slide_at(2)
    s2.native.shapes.add_shape(MSO_SHAPE.RECTANGLE, Pt(0), Pt(0), Pt(10), Pt(10))
    generated = s2.shapes[-1]

    assert has_default_name(generated)
    assert not has_default_name(s2.shape("A"))
    assert len(s2.shapes) == 3


def test_group_is_recreated_with_candidate_name(deck):
    s1, s2 = deck.slide_at(1), deck.slide_at(2)
    for slide, name in ((s1, "Logo"), (s2, "Logo old")):
        grp = slide.native.shapes.add_group_shape()
        grp.shapes.add_shape(MSO_SHAPE.RECTANGLE, Pt(5), Pt(5), Pt(40), Pt(40))
        grp.name = name
    ref, candidate = s1.shape("Logo"), s2.shape("Logo old")
    assert ref.kind is ShapeKind.GROUP

    with pytest.raises(HostPermissionError):
        ref.pick_up()

    result = sync_whole_shape(ref, candidate, s2)

    assert result.recreated
    assert not candidate.exists
    assert result.shape.name == "Logo old"
    assert _names(s2) == ["A", "B", "Logo old"]


def test_squash_end_to_end(deck, tmp_path):
    s2, s3 = deck.slide_at(2), deck.slide_at(3)
    s2.transition.advance_time = 2.0

    first = squash_slides([s2, s3])

    assert first == s2
    assert len(deck.slides) == 2
    assert _names(s2) == ["D", "E", "A", "B"]
    assert not s2.transition.advance_on_time

    effects = list(s2.timeline)
    assert len(effects) == 4
    assert effects[0].trigger is TriggerType.AFTER_PREVIOUS
    assert effects[0].delay == 2.0
    exits = {e.shape.name for e in effects if e.effect_class is EffectClass.EXIT}
    assert exits == {"A", "B"}

    reloaded = _reopen(deck, tmp_path)
    assert len(reloaded.slides) == 2
    assert len(reloaded.slide_at(2).timeline) == 4
    assert reloaded.slide_at(2).shape("D").text_range.text == "dee"


def test_deleted_slide_handle_is_stale(deck):
    s3 = deck.slide_at(3)
    s3.delete()
    assert not s3.exists
    with pytest.raises(StaleHandleError):
        s3.shapes


def test_pasted_copy_does_not_revive_deleted_handle(deck):
    s1 = deck.slide_at(1)
    c = s1.shape("C")
    c.copy()
    c.delete()

    (pasted,) = s1.paste()

    assert pasted.shape_id != c.shape_id
    assert not c.exists
    with pytest.raises(StaleHandleError):
        c.name


def test_corruption_correction_hands_out_fresh_id(deck):
    s1 = deck.slide_at(1)
    old = s1.shape("C")

    fresh = corruption_correction(old, s1)

    assert fresh.shape_id != old.shape_id
    assert is_corrupted(old)
    assert not is_corrupted(fresh)
    assert fresh.name == "C"
    assert _names(s1) == ["A", "B", "C"]
