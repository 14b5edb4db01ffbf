from __future__ import annotations

from slidesync.core.model.types import ShapeKind
from slidesync.core.sync.shape_sync import sync_shape, sync_whole_shape, try_sync_shape


def _state(shape):
    paragraphs = shape.read_paragraphs() if shape.has_text_frame else []
    return (
        shape.left,
        shape.top,
        shape.width,
        shape.height,
        shape.rotation,
        shape.fill,
        [(p.text, p.fmt) for p in paragraphs],
    )


def _pair(doc):
    ref = doc.add_slide().add_shape(
        "Title",
        left=10,
        top=20,
        width=300,
        height=60,
        rotation=15,
        text=["T1", "T2"],
        formats=["a", "b"],
        fill={"color": 0x0000FF},
    )
    target = doc.add_slide()
    candidate = target.add_shape("Title", left=40, top=90, text="x", formats=["c"], fill={"color": 0})
    return ref, candidate, target


def test_full_sync_makes_candidate_equal(doc):
    ref, candidate, _ = _pair(doc)

    sync_shape(ref, candidate)

    assert _state(candidate) == _state(ref)


def test_sync_is_idempotent(doc):
    ref, candidate, _ = _pair(doc)
    sync_shape(ref, candidate)
    once = _state(candidate)
    sync_shape(ref, candidate)
    assert _state(candidate) == once


def test_extra_candidate_paragraphs_reuse_last_reference_format(doc):
    ref, _, target = _pair(doc)
    candidate = target.add_shape("Body", text=["p", "q", "r"], formats=["x", "y", "z"])

    sync_shape(ref, candidate, sync_content=False)

    assert candidate.text_range.text == "p\rq\rr"
    assert [p.fmt for p in candidate.read_paragraphs()] == ["a", "b", "b"]


def test_flags_off_leave_candidate_untouched(doc):
    ref, candidate, _ = _pair(doc)
    before = _state(candidate)

    sync_shape(ref, candidate, sync_basic=False, sync_format=False, sync_content=False, sync_text_format=False)

    assert _state(candidate) == before


def test_group_fails_structurally(doc):
    ref = doc.add_slide().add_shape("G", ShapeKind.GROUP)
    candidate = doc.add_slide().add_shape("G", ShapeKind.GROUP)

    failure = try_sync_shape(ref, candidate)

    assert failure is not None
    assert failure.reason == "HostPermissionError"


def test_chart_fails_structurally(doc):
    ref = doc.add_slide().add_shape("Chart", ShapeKind.CHART)
    candidate = doc.add_slide().add_shape("Chart", ShapeKind.CHART)
    assert try_sync_shape(ref, candidate).reason == "HostPlatformError"


def test_whole_sync_recreates_group_with_candidate_name(doc):
    ref = doc.add_slide().add_shape("Logo", ShapeKind.GROUP, left=5, top=5, width=80, height=80)
    target = doc.add_slide()
    target.add_shape("Back")
    candidate = target.add_shape("Logo (old)", ShapeKind.GROUP, left=300, top=300)

    result = sync_whole_shape(ref, candidate, target)

    assert result.recreated
    assert not candidate.exists
    assert result.shape.name == "Logo (old)"
    assert result.shape.kind is ShapeKind.GROUP
    assert (result.shape.left, result.shape.width) == (5, 80)
    assert [s.name for s in target.shapes] == ["Back", "Logo (old)"]


def test_whole_sync_direct_path_keeps_handle(doc):
    ref, candidate, target = _pair(doc)
    result = sync_whole_shape(ref, candidate, target)
    assert not result.recreated
    assert result.shape == candidate
    assert result.failure is None
