"""Relative z-order moves.

The engines only offer one-step moves (`bring_forward` / `send_backward`),
each returning the shape's new 1-based position (larger is further
forward). Reaching an exact position relative to another shape therefore
takes two passes: overshoot past the destination, then step back until the
relation flips again.
"""

from __future__ import annotations

import logging
from typing import Iterable

from slidesync.core.model.host import ShapeHandle


logger = logging.getLogger(__name__)


def move_until_behind(shift: ShapeHandle, destination: ShapeHandle) -> None:
    """Bring `shift` forward while it sits behind `destination`.

    Ends with `shift` just in front of `destination`. Does nothing if it
    already is in front.
    """
    while shift.z_order_position < destination.z_order_position:
        current = shift.z_order_position
        if shift.bring_forward() == current:
            # no change; the shape is at the front already
            logger.debug("bring_forward made no progress at position %d", current)
            break


def move_until_in_front(shift: ShapeHandle, destination: ShapeHandle) -> None:
    """Send `shift` backward while it sits in front of `destination`.

    Ends with `shift` just behind `destination`. Does nothing if it already
    is behind.
    """
    while shift.z_order_position > destination.z_order_position:
        current = shift.z_order_position
        if shift.send_backward() == current:
            logger.debug("send_backward made no progress at position %d", current)
            break


def move_to_just_behind(shift: ShapeHandle, destination: ShapeHandle) -> None:
    # forward until it overshoots, then backward until it overshoots
    move_until_behind(shift, destination)
    move_until_in_front(shift, destination)


def move_to_just_in_front(shift: ShapeHandle, destination: ShapeHandle) -> None:
    move_until_in_front(shift, destination)
    move_until_behind(shift, destination)


def sort_by_z_order(shapes: Iterable[ShapeHandle]) -> list[ShapeHandle]:
    """Front to back."""
    return sorted(shapes, key=lambda s: s.z_order_position, reverse=True)
