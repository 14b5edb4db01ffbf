from __future__ import annotations

from slidesync.core.sync.text_sync import get_paragraphs, set_text, sync_text_range


def test_content_and_format(slide):
    ref = slide.add_shape(text="Hello", formats=["bold"])
    candidate = slide.add_shape(text="x", formats=["plain"])

    sync_text_range(ref.text_range, candidate.text_range)

    assert candidate.text_range.text == "Hello"
    assert candidate.text_range.format == "bold"


def test_format_only_keeps_content_and_trailing_break(slide):
    ref = slide.add_shape(text=["R"], formats=["r"])
    candidate = slide.add_shape(text=["one", "two"], formats=["p", "q"])

    first = get_paragraphs(candidate)[0]
    sync_text_range(get_paragraphs(ref)[0], first, copy_content=False)

    assert candidate.text_range.text == "one\rtwo"
    assert first.text == "one\r"
    assert get_paragraphs(candidate)[0].format == "r"


def test_format_only_on_last_paragraph(slide):
    ref = slide.add_shape(text=["R ", "S"], formats=["r", "s"])
    candidate = slide.add_shape(text=["one", "two"], formats=["p", "q"])

    sync_text_range(get_paragraphs(ref)[1], get_paragraphs(candidate)[1], copy_content=False)

    assert candidate.text_range.text == "one\rtwo"
    assert [p.format for p in get_paragraphs(candidate)] == ["p", "s"]


def test_content_only_keeps_format(slide):
    ref = slide.add_shape(text="new", formats=["r"])
    candidate = slide.add_shape(text="old", formats=["c"])

    sync_text_range(ref.text_range, candidate.text_range, copy_format=False)

    assert candidate.text_range.text == "new"
    assert candidate.text_range.format == "c"


def test_set_text_and_get_paragraphs(slide):
    s = slide.add_shape()
    set_text(s, "a", "b", "c")
    assert [p.text for p in get_paragraphs(s)] == ["a\r", "b\r", "c"]

    set_text(s, ["only"])
    assert s.text_range.text == "only"
    assert len(get_paragraphs(s)) == 1
