from __future__ import annotations

from typing import Any, Iterable

from slidesync.core.model.text_buffer import TextRange
from slidesync.core.model.types import PARAGRAPH_BREAK


def sync_text_range(
    ref: TextRange,
    candidate: TextRange,
    copy_content: bool = True,
    copy_format: bool = True,
) -> None:
    """Copy text and/or formatting of `ref` onto `candidate`.

    Rich formatting can only travel through copy and native paste. Pasting a
    range that does not end in a paragraph break over one that does drops
    the break, so a format-only sync writes the original text back, break
    included, over whatever the paste produced. The write happens whether
    or not the break survived, which leaves the content unchanged either way.
    """
    original = candidate.text
    had_break = original.endswith(PARAGRAPH_BREAK)
    stripped = original[: -len(PARAGRAPH_BREAK)] if had_break else original

    if copy_format:
        ref.copy()
        candidate.paste_native()

    if copy_content:
        candidate.text = ref.text
    elif copy_format:
        candidate.text = stripped + (PARAGRAPH_BREAK if had_break else "")


def get_paragraphs(shape: Any) -> list[TextRange]:
    """Paragraph ranges of the shape, 0-indexed."""
    return shape.text_range.paragraphs


def set_text(shape: Any, *lines: str | Iterable[str]) -> None:
    if len(lines) == 1 and not isinstance(lines[0], str):
        lines = tuple(lines[0])
    shape.text_range.text = PARAGRAPH_BREAK.join(lines)  # type: ignore[arg-type]
