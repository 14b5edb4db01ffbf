from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Protocol, Sequence

from slidesync.core.errors import HostArgumentError
from slidesync.core.model.types import PARAGRAPH_BREAK


logger = logging.getLogger(__name__)


@dataclass
class Paragraph:
    """One paragraph of a text frame. `fmt` is opaque to the algorithms."""

    text: str
    fmt: Any = None


class TextStore(Protocol):
    """Where a text range reads and writes its shape's paragraphs."""

    clipboard: "Clipboard"

    def read_paragraphs(self) -> list[Paragraph]: ...

    def write_paragraphs(self, paragraphs: list[Paragraph]) -> None: ...


class Clipboard:
    """Document-wide clipboard shared by shape copy, text copy and the format painter."""

    def __init__(self) -> None:
        self.shapes: Any = None
        self.shape_format: Any = None
        self._text: tuple[str, list[Any]] | None = None

    def put_text(self, text: str, fmts: list[Any]) -> None:
        self._text = (text, list(fmts))

    def get_text(self) -> tuple[str, list[Any]]:
        if self._text is None:
            raise HostArgumentError("clipboard holds no text")
        return self._text


def join_text(paragraphs: Sequence[Paragraph]) -> str:
    return PARAGRAPH_BREAK.join(p.text for p in paragraphs)


def paragraph_spans(paragraphs: Sequence[Paragraph]) -> list[tuple[int, int]]:
    """Return (start, length) per paragraph; the terminator belongs to its paragraph.

    An empty text frame has no paragraphs.
    """
    if len(paragraphs) == 1 and paragraphs[0].text == "":
        return []
    spans: list[tuple[int, int]] = []
    pos = 0
    last = len(paragraphs) - 1
    for i, p in enumerate(paragraphs):
        length = len(p.text) + (0 if i == last else 1)
        spans.append((pos, length))
        pos += length
    return spans


def _paragraph_index(full: str, pos: int) -> int:
    return full[:pos].count(PARAGRAPH_BREAK)


def replace_span(
    paragraphs: Sequence[Paragraph],
    start: int,
    length: int,
    new_text: str,
    fmts: Sequence[Any] | None = None,
) -> list[Paragraph]:
    """Replace characters [start, start+length) of the joined text with `new_text`.

    Paragraphs fully before or after the span are kept as they are. The
    paragraphs produced from the span take `fmts` positionally (the last one
    repeats) or, without `fmts`, the format of the paragraph the span starts
    in. When the span starts mid-paragraph that paragraph keeps its format,
    and text left after a written break keeps the format it had.
    A span that swallows a paragraph break without writing one back merges
    the neighbouring paragraphs.
    """
    if not paragraphs:
        paragraphs = [Paragraph("")]
    full = join_text(paragraphs)
    start = max(0, min(start, len(full)))
    end = max(start, min(start + length, len(full)))

    before, after = full[:start], full[end:]
    k = _paragraph_index(full, start)
    m = _paragraph_index(full, end)

    head = before.rsplit(PARAGRAPH_BREAK, 1)[-1]
    tail = after.split(PARAGRAPH_BREAK, 1)[0]
    base_fmt = paragraphs[k].fmt

    pieces = (head + new_text + tail).split(PARAGRAPH_BREAK)
    last = len(pieces) - 1
    middle: list[Paragraph] = []
    for j, text in enumerate(pieces):
        if j == 0 and head:
            fmt = base_fmt
        elif j == last and j > 0 and new_text.endswith(PARAGRAPH_BREAK):
            # only old text follows the written break
            fmt = paragraphs[m].fmt
        elif fmts:
            fmt = fmts[min(j, len(fmts) - 1)]
        else:
            fmt = base_fmt
        middle.append(Paragraph(text, fmt))

    kept_before = [replace(p) for p in paragraphs[:k]]
    kept_after = [replace(p) for p in paragraphs[m + 1 :]]
    return kept_before + middle + kept_after


class TextRange:
    """A character range over a shape's text.

    `length=None` means the whole text, re-measured on every access. A fixed
    range is re-pointed at whatever text was last written or pasted into it,
    the way the host's range objects behave.
    """

    def __init__(self, store: TextStore, start: int = 0, length: int | None = None) -> None:
        self._store = store
        self._start = start
        self._length = length

    @property
    def is_whole(self) -> bool:
        return self._length is None

    def _span(self, paragraphs: Sequence[Paragraph]) -> tuple[int, int]:
        full_len = len(join_text(paragraphs))
        if self._length is None:
            return 0, full_len
        start = min(self._start, full_len)
        return start, min(self._length, full_len - start)

    @property
    def text(self) -> str:
        paragraphs = self._store.read_paragraphs()
        start, length = self._span(paragraphs)
        return join_text(paragraphs)[start : start + length]

    @text.setter
    def text(self, value: str) -> None:
        self._write(value, None)

    def _write(self, value: str, fmts: Sequence[Any] | None) -> None:
        paragraphs = self._store.read_paragraphs()
        start, length = self._span(paragraphs)
        self._store.write_paragraphs(replace_span(paragraphs, start, length, value, fmts))
        if self._length is not None:
            self._start, self._length = start, len(value)

    @property
    def paragraphs(self) -> list["TextRange"]:
        """Paragraph ranges inside this range, 0-indexed."""
        paragraphs = self._store.read_paragraphs()
        start, length = self._span(paragraphs)
        end = start + length
        return [
            TextRange(self._store, s, n)
            for s, n in paragraph_spans(paragraphs)
            if s >= start and s + n <= end
        ]

    @property
    def paragraph_count(self) -> int:
        return len(self.paragraphs)

    def _formats(self, paragraphs: Sequence[Paragraph]) -> list[Any]:
        full = join_text(paragraphs)
        start, length = self._span(paragraphs)
        k = _paragraph_index(full, start)
        m = _paragraph_index(full, start + length)
        return [p.fmt for p in paragraphs[k : m + 1]]

    @property
    def format(self) -> Any:
        return self._formats(self._store.read_paragraphs())[0]

    def copy(self) -> None:
        paragraphs = self._store.read_paragraphs()
        start, length = self._span(paragraphs)
        text = join_text(paragraphs)[start : start + length]
        self._store.clipboard.put_text(text, self._formats(paragraphs))

    def paste_native(self) -> None:
        """Replace this range with the clipboard text, keeping the copied formats."""
        text, fmts = self._store.clipboard.get_text()
        logger.debug("paste %d chars over range (%s, %s)", len(text), self._start, self._length)
        self._write(text, fmts)

    def __repr__(self) -> str:
        return f"TextRange(start={self._start}, length={self._length})"
