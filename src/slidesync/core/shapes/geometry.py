from __future__ import annotations

import sys
from typing import Any

from slidesync.core.model.types import ShapeKind


# Smallest positive float; with a strict `<` this means exact equality.
EPSILON = sys.float_info.min


def same_position(ref: Any, candidate: Any, exact: bool = True, blur: float = EPSILON) -> bool:
    if exact:
        blur = EPSILON
    return (
        ref is not None
        and candidate is not None
        and abs(ref.left - candidate.left) < blur
        and abs(ref.top - candidate.top) < blur
    )


def same_size(ref: Any, candidate: Any, exact: bool = True, blur: float = EPSILON) -> bool:
    if exact:
        blur = EPSILON
    return (
        ref is not None
        and candidate is not None
        and abs(ref.width - candidate.width) < blur
        and abs(ref.height - candidate.height) < blur
    )


def same_type(ref: Any, candidate: Any) -> bool:
    """Same shape kind, and for autoshapes the same preset geometry."""
    return (
        ref is not None
        and candidate is not None
        and ref.kind == candidate.kind
        and (ref.kind != ShapeKind.AUTOSHAPE or ref.auto_shape_type == candidate.auto_shape_type)
    )


def copy_rotation(ref: Any, candidate: Any) -> None:
    candidate.rotation = ref.rotation


def copy_size(ref: Any, candidate: Any) -> None:
    # An aspect lock would rescale the height while the width is written.
    locked = candidate.lock_aspect_ratio
    candidate.lock_aspect_ratio = False
    candidate.width = ref.width
    candidate.height = ref.height
    candidate.lock_aspect_ratio = locked


def copy_location(ref: Any, candidate: Any) -> None:
    candidate.left = ref.left
    candidate.top = ref.top


def copy_basic_geometry(ref: Any, candidate: Any) -> None:
    """Copy rotation, then size, then location from `ref` onto `candidate`."""
    copy_rotation(ref, candidate)
    copy_size(ref, candidate)
    copy_location(ref, candidate)


def fit_shape_to_slide(shape: Any, slide_width: float, slide_height: float) -> None:
    shape.lock_aspect_ratio = False
    shape.left = 0.0
    shape.top = 0.0
    shape.width = slide_width
    shape.height = slide_height
