from __future__ import annotations

import logging
from typing import Any, Sequence

from slidesync.core.shapes.geometry import same_position, same_size, same_type


logger = logging.getLogger(__name__)


DEFAULT_MATCH_BLUR = 15.0


def find_best_match(candidate: Any, references: Sequence[Any], blur: float = DEFAULT_MATCH_BLUR) -> Any | None:
    """First reference of the same type, roughly the same position and exactly the same size."""
    if candidate is None:
        return None
    for ref in references:
        if (
            same_type(ref, candidate)
            and same_position(ref, candidate, exact=False, blur=blur)
            and same_size(ref, candidate)
        ):
            return ref
    return None


def sync_shape_range(
    references: Sequence[Any], candidates: Sequence[Any], blur: float = DEFAULT_MATCH_BLUR
) -> int:
    """Give each candidate the name of its matching reference.

    Both ranges are expected to be copies of the same content, e.g. after a
    bulk copy that generated new names. Ranges of different sizes are left
    alone. Returns the number of renamed shapes.
    """
    if len(references) != len(candidates):
        logger.debug(
            "sync_shape_range skipped: %d references vs %d candidates", len(references), len(candidates)
        )
        return 0

    renamed = 0
    for candidate in candidates:
        ref = find_best_match(candidate, references, blur=blur)
        if ref is None:
            continue
        candidate.name = ref.name
        renamed += 1
    return renamed
