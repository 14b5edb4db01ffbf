from __future__ import annotations

import logging
from dataclasses import dataclass

from slidesync.core.errors import STRUCTURAL_ERRORS, StructuralSyncFailure
from slidesync.core.model.host import ShapeHandle, SlideHandle
from slidesync.core.shapes.geometry import copy_basic_geometry
from slidesync.core.sync.text_sync import sync_text_range


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of `sync_whole_shape`. Both paths count as success.

    `shape` is the handle to use from now on; it differs from the candidate
    passed in when the shape had to be recreated.
    """

    shape: ShapeHandle
    recreated: bool = False
    failure: StructuralSyncFailure | None = None


def sync_shape(
    ref: ShapeHandle,
    candidate: ShapeHandle,
    sync_basic: bool = True,
    sync_format: bool = True,
    sync_content: bool = True,
    sync_text_format: bool = True,
) -> None:
    """Copy geometry, shape format and text from `ref` onto `candidate`.

    Text is synced paragraph by paragraph. Candidate paragraphs beyond the
    reference's count reuse the last reference paragraph. Groups, charts and
    other shapes the engine refuses raise one of `STRUCTURAL_ERRORS`.
    """
    if sync_basic:
        copy_basic_geometry(ref, candidate)

    if sync_format:
        ref.pick_up()
        candidate.apply()

    if not (sync_content or sync_text_format):
        return
    if not (ref.has_text_frame and candidate.has_text_frame):
        return

    if sync_content:
        candidate.text_range.text = ref.text_range.text

    ref_count = ref.text_range.paragraph_count
    candidate_count = candidate.text_range.paragraph_count
    if ref_count == 0:
        return

    if sync_text_format:
        # base format for the whole frame comes from the last reference paragraph
        original = candidate.text_range.text
        sync_text_range(ref.text_range.paragraphs[ref_count - 1], candidate.text_range)
        candidate.text_range.text = original

    for i in range(candidate_count):
        candidate_paragraphs = candidate.text_range.paragraphs
        if i >= len(candidate_paragraphs):
            break
        ref_paragraph = ref.text_range.paragraphs[min(i, ref_count - 1)]
        sync_text_range(ref_paragraph, candidate_paragraphs[i], sync_content, sync_text_format)


def try_sync_shape(ref: ShapeHandle, candidate: ShapeHandle, **flags: bool) -> StructuralSyncFailure | None:
    """Run `sync_shape`, turning any structural engine failure into a value."""
    try:
        sync_shape(ref, candidate, **flags)
    except STRUCTURAL_ERRORS as exc:
        return StructuralSyncFailure.from_error(exc)
    return None


def sync_whole_shape(ref: ShapeHandle, candidate: ShapeHandle, candidate_slide: SlideHandle) -> SyncResult:
    """Full sync that also works for groups and charts.

    When the direct sync is rejected the candidate is deleted and replaced
    by a copy of `ref` on `candidate_slide` carrying the candidate's name.
    """
    failure = try_sync_shape(ref, candidate)
    if failure is None:
        return SyncResult(shape=candidate)

    name = candidate.name
    logger.info("direct sync of %r rejected (%s); recreating from %r", name, failure.reason, ref.name)
    candidate.delete()
    ref.copy()
    replacement = candidate_slide.paste()[0]
    replacement.name = name
    return SyncResult(shape=replacement, recreated=True, failure=failure)
