"""Shape synchronization, z-order moves and slide squashing for presentations.

Public API (engine-agnostic algorithms):

    from slidesync import sync_shape, squash_slides, move_to_just_behind

Engines:
- `slidesync.core.model.document.Document`: in-memory document
- `slidesync.core.pptx.engine.PptxDocument`: `.pptx` files via python-pptx
"""

from __future__ import annotations

from .core.animation.splicer import add_appear, add_disappear, make_shape_view_time_invisible
from .core.animation.squash import EffectTransition, sort_by_index, squash_slides
from .core.config import SyncSettings
from .core.errors import (
    HostArgumentError,
    HostError,
    HostPermissionError,
    HostPlatformError,
    JobError,
    SlideSyncError,
    StaleHandleError,
    StructuralSyncFailure,
)
from .core.shapes.geometry import (
    copy_basic_geometry,
    copy_location,
    copy_rotation,
    copy_size,
    fit_shape_to_slide,
    same_position,
    same_size,
    same_type,
)
from .core.shapes.matcher import find_best_match, sync_shape_range
from .core.shapes.zorder import (
    move_to_just_behind,
    move_to_just_in_front,
    move_until_behind,
    move_until_in_front,
    sort_by_z_order,
)
from .core.sync.shape_sync import SyncResult, sync_shape, sync_whole_shape, try_sync_shape
from .core.sync.text_sync import get_paragraphs, set_text, sync_text_range
from .core.utils.color import convert_color_to_rgb, convert_rgb_to_color

__all__ = [
    "EffectTransition",
    "HostArgumentError",
    "HostError",
    "HostPermissionError",
    "HostPlatformError",
    "JobError",
    "SlideSyncError",
    "StaleHandleError",
    "StructuralSyncFailure",
    "SyncResult",
    "SyncSettings",
    "add_appear",
    "add_disappear",
    "copy_basic_geometry",
    "copy_location",
    "copy_rotation",
    "convert_color_to_rgb",
    "convert_rgb_to_color",
    "copy_size",
    "find_best_match",
    "fit_shape_to_slide",
    "get_paragraphs",
    "make_shape_view_time_invisible",
    "move_to_just_behind",
    "move_to_just_in_front",
    "move_until_behind",
    "move_until_in_front",
    "same_position",
    "same_size",
    "same_type",
    "set_text",
    "sort_by_index",
    "sort_by_z_order",
    "squash_slides",
    "sync_shape",
    "sync_shape_range",
    "sync_text_range",
    "sync_whole_shape",
    "try_sync_shape",
]
