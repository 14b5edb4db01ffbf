"""Job files: a deck, an output path and an ordered list of operations.

    {
      "schema_version": "0.1",
      "input": "deck.pptx",
      "output": "out/deck.pptx",
      "operations": [
        {"op": "sync_shape", "slide": 1, "ref": "Title", "to_slides": [2, 3]},
        {"op": "squash", "slides": [2, 3, 4]}
      ]
    }

Relative paths are resolved against the job file's directory. Slide numbers
are 1-based and refer to the deck as it is when the operation runs, so an
earlier `squash` shifts the numbers seen by later operations.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

from slidesync.core.animation.splicer import make_shape_view_time_invisible
from slidesync.core.animation.squash import sort_by_index, squash_slides
from slidesync.core.config import SyncSettings
from slidesync.core.errors import HostError, JobError
from slidesync.core.pptx.engine import PptxDocument, PptxShape, PptxSlide
from slidesync.core.shapes.matcher import sync_shape_range
from slidesync.core.shapes.zorder import move_to_just_behind, move_to_just_in_front
from slidesync.core.sync.shape_sync import sync_shape, sync_whole_shape
from slidesync.core.utils.schema_validate import load_json, schema_path, validate_instance


logger = logging.getLogger(__name__)


def validate_job(job: Any) -> list[str]:
    return validate_instance(load_json(schema_path("job")), job)


def load_job(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise JobError(f"job file not found: {path}")
    try:
        job = load_json(path)
    except json.JSONDecodeError as e:
        raise JobError(f"invalid json: {path}: {e}") from e
    errors = validate_job(job)
    if errors:
        raise JobError(f"{path} does not conform to the job schema:\n" + "\n".join(f"  - {e}" for e in errors))
    return job


def _slide(doc: PptxDocument, number: int) -> PptxSlide:
    try:
        return doc.slide_at(number)
    except HostError as e:
        raise JobError(str(e)) from e


def _shape(slide: PptxSlide, name: str) -> PptxShape:
    shape = slide.shape(name)
    if shape is None:
        raise JobError(f"slide {slide.index}: no shape named {name!r}")
    return shape


def op_squash(doc: PptxDocument, op: dict[str, Any], settings: SyncSettings) -> str:
    slides = sort_by_index({_slide(doc, n) for n in op["slides"]})
    first = squash_slides(slides, settings.indicator_prefix)
    return f"squashed {len(slides)} slides into slide {first.index}"


def op_sync_shape(doc: PptxDocument, op: dict[str, Any], settings: SyncSettings) -> str:
    source = _slide(doc, op["slide"])
    ref = _shape(source, op["ref"])
    candidate_name = op.get("candidate", op["ref"])
    recreated = 0
    targets = [_slide(doc, n) for n in op["to_slides"]]
    for slide in targets:
        candidate = _shape(slide, candidate_name)
        if op.get("whole", False):
            recreated += sync_whole_shape(ref, candidate, slide).recreated
            continue
        sync_shape(
            ref,
            candidate,
            sync_basic=op.get("basic", True),
            sync_format=op.get("format", True),
            sync_content=op.get("content", True),
            sync_text_format=op.get("text_format", True),
        )
    return f"synced {op['ref']!r} onto {len(targets)} slides ({recreated} recreated)"


def op_sync_names(doc: PptxDocument, op: dict[str, Any], settings: SyncSettings) -> str:
    references = _slide(doc, op["slide"]).shapes
    renamed = 0
    for n in op["to_slides"]:
        renamed += sync_shape_range(references, _slide(doc, n).shapes, blur=settings.match_blur)
    return f"renamed {renamed} shapes"


def op_zorder(doc: PptxDocument, op: dict[str, Any], settings: SyncSettings) -> str:
    slide = _slide(doc, op["slide"])
    shift = _shape(slide, op["shape"])
    anchor = _shape(slide, op["anchor"])
    if op["position"] == "behind":
        move_to_just_behind(shift, anchor)
    else:
        move_to_just_in_front(shift, anchor)
    return f"{op['shape']!r} now at z-order {shift.z_order_position}"


def op_hide_in_show(doc: PptxDocument, op: dict[str, Any], settings: SyncSettings) -> str:
    slide = _slide(doc, op["slide"])
    shapes = [_shape(slide, name) for name in op["shapes"]]
    make_shape_view_time_invisible(shapes, slide)
    return f"{len(shapes)} shapes hidden during the show"


OPERATIONS: dict[str, Callable[[PptxDocument, dict[str, Any], SyncSettings], str]] = {
    "squash": op_squash,
    "sync_shape": op_sync_shape,
    "sync_names": op_sync_names,
    "zorder": op_zorder,
    "hide_in_show": op_hide_in_show,
}


def run_operations(doc: PptxDocument, operations: list[dict[str, Any]], settings: SyncSettings) -> list[str]:
    results: list[str] = []
    for i, op in enumerate(operations, 1):
        logger.debug("operation %d: %s", i, op)
        try:
            results.append(OPERATIONS[op["op"]](doc, op, settings))
        except HostError as e:
            raise JobError(f"operation {i} ({op['op']}) failed: {e}") from e
        logger.info("operation %d (%s): %s", i, op["op"], results[-1])
    return results


def run_job(job_path: Path, out: Path | None = None) -> tuple[Path, list[str]]:
    """Validate and execute a job file. Returns the written deck and one summary per operation."""
    job = load_job(job_path)
    base = job_path.resolve().parent
    in_path = base / job["input"]
    if out is None:
        out = base / job["output"] if "output" in job else in_path
    if not in_path.exists():
        raise JobError(f"input not found: {in_path}")

    settings = SyncSettings.from_dict(job.get("settings"))
    doc = PptxDocument.open(in_path)
    results = run_operations(doc, job["operations"], settings)
    doc.save(out)
    return out, results
