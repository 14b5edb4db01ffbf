from __future__ import annotations

from typing import Any

from slidesync.core.errors import HostError


def is_hidden(shape: Any) -> bool:
    return not shape.visible


def is_corrupted(shape: Any) -> bool:
    """True when the handle no longer resolves to a live shape."""
    try:
        return not shape.exists
    except HostError:
        return True


def has_default_name(shape: Any) -> bool:
    """Engines rename a duplicate only when the original carried a generated name."""
    copy = shape.duplicate()
    try:
        return copy.name != shape.name
    finally:
        copy.delete()


def corruption_correction(shape: Any, slide: Any) -> Any:
    """Cut the shape and paste it back onto `slide`; returns the fresh handle."""
    shape.cut()
    return slide.paste()[0]
