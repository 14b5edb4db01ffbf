from __future__ import annotations

from pathlib import Path

import pytest
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE
from pptx.util import Pt

from slidesync.core.model.document import Document


BLANK_LAYOUT = 6


@pytest.fixture
def doc() -> Document:
    return Document()


@pytest.fixture
def slide(doc: Document):
    return doc.add_slide()


def _rect(slide, name: str, left: float, top: float, text: str | None = None, shape=MSO_SHAPE.RECTANGLE):
    s = slide.shapes.add_shape(shape, Pt(left), Pt(top), Pt(100), Pt(50))
    s.name = name
    if text is not None:
        s.text_frame.text = text
    return s


@pytest.fixture
def deck_path(tmp_path: Path) -> Path:
    """Three blank slides.

    1: A ("one"), B ("two"), C (oval)
    2: A ("x", moved), B
    3: D, E, SlideSyncIndicator marker
    """
    prs = Presentation()
    layout = prs.slide_layouts[BLANK_LAYOUT]

    s1 = prs.slides.add_slide(layout)
    _rect(s1, "A", 10, 20, "one")
    _rect(s1, "B", 200, 20, "two")
    _rect(s1, "C", 400, 20, shape=MSO_SHAPE.OVAL)

    s2 = prs.slides.add_slide(layout)
    _rect(s2, "A", 50, 80, "x")
    _rect(s2, "B", 200, 20)

    s3 = prs.slides.add_slide(layout)
    _rect(s3, "D", 10, 300, "dee")
    _rect(s3, "E", 300, 300)
    _rect(s3, "SlideSyncIndicator 1", 0, 0)

    path = tmp_path / "deck.pptx"
    prs.save(str(path))
    return path
