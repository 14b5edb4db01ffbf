"""Document engine over a python-pptx `Presentation`.

Handles address slides by slide id and shapes by `cNvPr/@id`, and look the
XML up again on every access. Z-order is the order of shape elements in the
slide's `p:spTree` (first is backmost). Copies are deep copies of the shape
XML with fresh ids and their relationships re-created on the target slide.
"""

from __future__ import annotations

import copy
import logging
import re
from pathlib import Path
from typing import Any, Iterator, Sequence

from lxml import etree
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Emu, Pt

from slidesync.core.errors import (
    HostArgumentError,
    HostPermissionError,
    HostPlatformError,
    StaleHandleError,
)
from slidesync.core.model.text_buffer import Clipboard, Paragraph, TextRange
from slidesync.core.model.types import EffectClass, ShapeKind, TriggerType
from slidesync.core.pptx import timing


logger = logging.getLogger(__name__)


_R_NS_PREFIX = "{http://schemas.openxmlformats.org/officeDocument/2006/relationships}"

_LOCK_TAGS = {
    qn("p:sp"): "a:spLocks",
    qn("p:pic"): "a:picLocks",
    qn("p:graphicFrame"): "a:graphicFrameLocks",
    qn("p:grpSp"): "a:grpSpLocks",
    qn("p:cxnSp"): "a:cxnSpLocks",
}

# spPr children carried by the format painter
_FORMAT_TAGS = tuple(
    qn(t)
    for t in (
        "a:noFill",
        "a:solidFill",
        "a:gradFill",
        "a:blipFill",
        "a:pattFill",
        "a:grpFill",
        "a:ln",
        "a:effectLst",
        "a:effectDag",
        "a:scene3d",
        "a:sp3d",
    )
)
_GEOMETRY_TAGS = (qn("a:xfrm"), qn("a:custGeom"), qn("a:prstGeom"))

_KINDS = {
    MSO_SHAPE_TYPE.AUTO_SHAPE: ShapeKind.AUTOSHAPE,
    MSO_SHAPE_TYPE.GROUP: ShapeKind.GROUP,
    MSO_SHAPE_TYPE.CHART: ShapeKind.CHART,
    MSO_SHAPE_TYPE.PICTURE: ShapeKind.PICTURE,
    MSO_SHAPE_TYPE.LINKED_PICTURE: ShapeKind.PICTURE,
    MSO_SHAPE_TYPE.TEXT_BOX: ShapeKind.TEXT_BOX,
    MSO_SHAPE_TYPE.PLACEHOLDER: ShapeKind.PLACEHOLDER,
}

_DEFAULT_NAME = re.compile(
    r"^(Rectangle|Rounded Rectangle|Oval|TextBox|Text Box|Picture|Group|Chart|Table|Freeform"
    r"|Connector|Straight Connector|Title|Subtitle|Content Placeholder|Text Placeholder|Shape) \d+$"
)

_BREAK_RE = re.compile(r"[\v\n]")


def _pt(length: Any) -> float:
    if length is None:
        return 0.0
    return float(Emu(int(length)).pt)


def _cnv_pr(el: Any) -> Any:
    # nvXxPr is the first child of every shape element, cNvPr its first child
    return el[0][0]


def _shape_id(el: Any) -> int:
    return int(_cnv_pr(el).get("id"))


def _paragraph_text(p: Any) -> str:
    parts: list[str] = []
    for child in p:
        if child.tag in (qn("a:r"), qn("a:fld")):
            t = child.find(qn("a:t"))
            parts.append((t.text or "") if t is not None else "")
        elif child.tag == qn("a:br"):
            parts.append("\v")
    return "".join(parts)


def _build_paragraph(paragraph: Paragraph) -> Any:
    template = paragraph.fmt
    p = copy.deepcopy(template) if template is not None else OxmlElement("a:p")
    if template is not None and _paragraph_text(p) == paragraph.text:
        return p

    first_run = p.find(qn("a:r"))
    rpr = first_run.find(qn("a:rPr")) if first_run is not None else None
    for child in list(p):
        if child.tag in (qn("a:r"), qn("a:br"), qn("a:fld")):
            p.remove(child)

    content: list[Any] = []
    for i, segment in enumerate(_BREAK_RE.split(paragraph.text)):
        if i:
            content.append(OxmlElement("a:br"))
        if not segment:
            continue
        r = OxmlElement("a:r")
        if rpr is not None:
            r.append(copy.deepcopy(rpr))
        t = OxmlElement("a:t")
        t.text = segment
        r.append(t)
        content.append(r)

    end = p.find(qn("a:endParaRPr"))
    for child in content:
        if end is not None:
            end.addprevious(child)
        else:
            p.append(child)
    return p


def _import_rels(element: Any, source_part: Any, target_part: Any) -> None:
    """Re-create the relationships `element` refers to on `target_part`."""
    if source_part is None or source_part is target_part:
        return
    mapping: dict[str, str] = {}
    for el in element.iter(etree.Element):
        for name, value in list(el.attrib.items()):
            if not name.startswith(_R_NS_PREFIX):
                continue
            if value not in mapping:
                rel = source_part.rels.get(value)
                if rel is None:
                    continue
                if rel.is_external:
                    mapping[value] = target_part.relate_to(rel.target_ref, rel.reltype, is_external=True)
                else:
                    mapping[value] = target_part.relate_to(rel.target_part, rel.reltype)
            el.set(name, mapping[value])


class PptxDocument:
    def __init__(self, prs: Any) -> None:
        self.prs = prs
        self.clipboard = Clipboard()
        # highest shape id handed out per slide; never lowered on delete
        self._shape_id_marks: dict[int, int] = {}

    @classmethod
    def open(cls, path: str | Path) -> "PptxDocument":
        return cls(Presentation(str(path)))

    def save(self, path: str | Path) -> None:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        self.prs.save(str(out))

    @property
    def slide_width(self) -> float:
        return _pt(self.prs.slide_width)

    @property
    def slide_height(self) -> float:
        return _pt(self.prs.slide_height)

    @property
    def slides(self) -> list["PptxSlide"]:
        return [PptxSlide(self, s.slide_id) for s in self.prs.slides]

    def slide_at(self, number: int) -> "PptxSlide":
        """Slide by 1-based position."""
        slides = self.slides
        if not 1 <= number <= len(slides):
            raise HostArgumentError(f"slide {number} out of range 1..{len(slides)}")
        return slides[number - 1]

    def allocate_shape_id(self, slide_id: int, sp_tree: Any) -> int:
        live = [int(c.get("id")) for c in sp_tree.iter(qn("p:cNvPr")) if (c.get("id") or "").isdigit()]
        mark = max(self._shape_id_marks.get(slide_id, 0), max(live, default=0)) + 1
        self._shape_id_marks[slide_id] = mark
        return mark

    def native_slide(self, slide_id: int) -> Any:
        slide = self.prs.slides.get(slide_id)
        if slide is None:
            raise StaleHandleError(f"slide {slide_id} no longer exists")
        return slide


class PptxSlide:
    def __init__(self, doc: PptxDocument, slide_id: int) -> None:
        self._doc = doc
        self.slide_id = slide_id

    @property
    def document(self) -> PptxDocument:
        return self._doc

    @property
    def native(self) -> Any:
        return self._doc.native_slide(self.slide_id)

    @property
    def element(self) -> Any:
        return self.native._element

    @property
    def _sp_tree(self) -> Any:
        return self.native.shapes._spTree

    @property
    def index(self) -> int:
        return self._doc.prs.slides.index(self.native) + 1

    @property
    def exists(self) -> bool:
        return self._doc.prs.slides.get(self.slide_id) is not None

    def shape_elements(self) -> list[Any]:
        return list(self._sp_tree.iter_shape_elms())

    def shape_element(self, shape_id: int) -> Any:
        for el in self.shape_elements():
            if _shape_id(el) == shape_id:
                return el
        raise StaleHandleError(f"shape {shape_id} is not on slide {self.slide_id}")

    @property
    def shapes(self) -> list["PptxShape"]:
        """Shapes from back to front."""
        return [PptxShape(self, _shape_id(el)) for el in self.shape_elements()]

    def shape(self, name: str) -> "PptxShape | None":
        for el in self.shape_elements():
            if _cnv_pr(el).get("name") == name:
                return PptxShape(self, _shape_id(el))
        return None

    @property
    def timeline(self) -> "PptxTimeline":
        return PptxTimeline(self)

    @property
    def transition(self) -> "PptxTransition":
        return PptxTransition(self)

    def insert_copy(self, element: Any, source_part: Any) -> "PptxShape":
        new = copy.deepcopy(element)
        for cnv in new.iter(qn("p:cNvPr")):
            cnv.set("id", str(self._doc.allocate_shape_id(self.slide_id, self._sp_tree)))
        try:
            _import_rels(new, source_part, self.native.part)
        except KeyError as exc:
            raise HostPlatformError(f"cannot re-create relationship {exc} on slide {self.slide_id}") from exc
        self._sp_tree.insert_element_before(new, "p:extLst")
        return PptxShape(self, _shape_id(new))

    def paste(self) -> list["PptxShape"]:
        payload = self._doc.clipboard.shapes
        if not payload:
            raise HostArgumentError("clipboard holds no shapes")
        elements, source_part = payload
        return [self.insert_copy(el, source_part) for el in elements]

    def import_shapes(self, shapes: Sequence["PptxShape"]) -> list["PptxShape"]:
        """Copy shapes (from any slide) onto this slide, in front of everything."""
        sources = [(s.element, s.slide.native.part) for s in shapes]
        return [self.insert_copy(el, part) for el, part in sources]

    def send_to_back(self, shapes: Sequence["PptxShape"]) -> None:
        elements = [s.element for s in shapes]
        for el in reversed(elements):
            first = self.shape_elements()[0]
            if first is not el:
                first.addprevious(el)

    def delete_indicator(self, prefix: str) -> int:
        doomed = [s for s in self.shapes if s.name.startswith(prefix)]
        for s in doomed:
            s.delete()
        return len(doomed)

    def _has_effect(self, shape: "PptxShape", cls: EffectClass) -> bool:
        return any(
            timing.effect_spid(par) == shape.shape_id and timing.effect_class(par) is cls
            for par in timing.read_main_sequence(self.element)
        )

    def has_entry_animation(self, shape: "PptxShape") -> bool:
        return self._has_effect(shape, EffectClass.ENTRANCE)

    def has_exit_animation(self, shape: "PptxShape") -> bool:
        return self._has_effect(shape, EffectClass.EXIT)

    def delete(self) -> None:
        prs = self._doc.prs
        sld_id_lst = prs.slides._sldIdLst
        for sld_id in list(sld_id_lst):
            if int(sld_id.get("id")) != self.slide_id:
                continue
            prs.part.drop_rel(sld_id.get(qn("r:id")))
            sld_id_lst.remove(sld_id)
            return
        raise StaleHandleError(f"slide {self.slide_id} no longer exists")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PptxSlide) and other._doc is self._doc and other.slide_id == self.slide_id

    def __hash__(self) -> int:
        return hash(self.slide_id)

    def __repr__(self) -> str:
        return f"PptxSlide(id={self.slide_id})"


class PptxShape:
    def __init__(self, slide: PptxSlide, shape_id: int) -> None:
        self._slide = slide
        self.shape_id = shape_id

    @property
    def slide(self) -> PptxSlide:
        return self._slide

    @property
    def slide_id(self) -> int:
        return self._slide.slide_id

    @property
    def element(self) -> Any:
        return self._slide.shape_element(self.shape_id)

    @property
    def native(self) -> Any:
        for shape in self._slide.native.shapes:
            if shape.shape_id == self.shape_id:
                return shape
        raise StaleHandleError(f"shape {self.shape_id} no longer exists")

    @property
    def exists(self) -> bool:
        try:
            self.element
        except StaleHandleError:
            return False
        return True

    # -- identity / type
    @property
    def name(self) -> str:
        return _cnv_pr(self.element).get("name", "")

    @name.setter
    def name(self, value: str) -> None:
        _cnv_pr(self.element).set("name", value)

    @property
    def kind(self) -> ShapeKind:
        try:
            shape_type = self.native.shape_type
        except NotImplementedError:
            return ShapeKind.OTHER
        return _KINDS.get(shape_type, ShapeKind.OTHER)

    @property
    def auto_shape_type(self) -> str | None:
        if self.kind is not ShapeKind.AUTOSHAPE:
            return None
        sp_pr = self.element.find(qn("p:spPr"))
        geom = sp_pr.find(qn("a:prstGeom")) if sp_pr is not None else None
        return geom.get("prst") if geom is not None else None

    @property
    def visible(self) -> bool:
        return _cnv_pr(self.element).get("hidden") not in ("1", "true")

    # -- geometry
    def _set_length(self, attr: str, value: float) -> None:
        try:
            setattr(self.native, attr, Pt(value))
        except (AttributeError, ValueError, TypeError) as exc:
            raise HostArgumentError(f"{self.name}: cannot set {attr}: {exc}") from exc

    @property
    def left(self) -> float:
        return _pt(self.native.left)

    @left.setter
    def left(self, value: float) -> None:
        self._set_length("left", value)

    @property
    def top(self) -> float:
        return _pt(self.native.top)

    @top.setter
    def top(self, value: float) -> None:
        self._set_length("top", value)

    @property
    def width(self) -> float:
        return _pt(self.native.width)

    @width.setter
    def width(self, value: float) -> None:
        self._set_length("width", value)

    @property
    def height(self) -> float:
        return _pt(self.native.height)

    @height.setter
    def height(self, value: float) -> None:
        self._set_length("height", value)

    @property
    def rotation(self) -> float:
        return float(self.native.rotation)

    @rotation.setter
    def rotation(self, value: float) -> None:
        try:
            self.native.rotation = float(value)
        except (AttributeError, ValueError, TypeError) as exc:
            raise HostArgumentError(f"{self.name}: cannot rotate: {exc}") from exc

    def _locks(self, create: bool = False) -> Any | None:
        el = self.element
        tag = _LOCK_TAGS.get(el.tag)
        if tag is None:
            return None
        cnv_xx_pr = el[0][1]
        locks = cnv_xx_pr.find(qn(tag))
        if locks is None and create:
            locks = OxmlElement(tag)
            cnv_xx_pr.insert(0, locks)
        return locks

    @property
    def lock_aspect_ratio(self) -> bool:
        locks = self._locks()
        return locks is not None and locks.get("noChangeAspect") in ("1", "true")

    @lock_aspect_ratio.setter
    def lock_aspect_ratio(self, value: bool) -> None:
        if value:
            locks = self._locks(create=True)
            if locks is None:
                raise HostArgumentError(f"{self.name}: shape has no lock settings")
            locks.set("noChangeAspect", "1")
            return
        locks = self._locks()
        if locks is None:
            return
        locks.attrib.pop("noChangeAspect", None)
        if not locks.attrib and len(locks) == 0:
            locks.getparent().remove(locks)

    # -- z-order
    @property
    def z_order_position(self) -> int:
        el = self.element
        return next(i for i, e in enumerate(self._slide.shape_elements(), 1) if e is el)

    def bring_forward(self) -> int:
        el = self.element
        elements = self._slide.shape_elements()
        i = next(i for i, e in enumerate(elements) if e is el)
        if i + 1 < len(elements):
            elements[i + 1].addnext(el)
        return self.z_order_position

    def send_backward(self) -> int:
        el = self.element
        elements = self._slide.shape_elements()
        i = next(i for i, e in enumerate(elements) if e is el)
        if i > 0:
            elements[i - 1].addprevious(el)
        return self.z_order_position

    # -- format painter
    def _sp_pr(self) -> Any:
        el = self.element
        if el.tag == qn("p:grpSp"):
            raise HostPermissionError(f"{self.name}: group shapes do not expose a shape format")
        if el.tag == qn("p:graphicFrame"):
            raise HostPlatformError(f"{self.name}: graphic frames do not expose a shape format")
        sp_pr = el.find(qn("p:spPr"))
        if sp_pr is None:
            raise HostArgumentError(f"{self.name}: shape has no shape properties")
        return sp_pr

    def pick_up(self) -> None:
        sp_pr = self._sp_pr()
        style = self.element.find(qn("p:style"))
        self._slide.document.clipboard.shape_format = (
            [copy.deepcopy(c) for c in sp_pr if c.tag in _FORMAT_TAGS],
            copy.deepcopy(style) if style is not None else None,
            self._slide.native.part,
        )

    def apply(self) -> None:
        sp_pr = self._sp_pr()
        painted = self._slide.document.clipboard.shape_format
        if painted is None:
            raise HostArgumentError("no shape format was picked up")
        children, style, source_part = painted

        head = [c for c in sp_pr if c.tag in _GEOMETRY_TAGS]
        rest = [c for c in sp_pr if c.tag not in _GEOMETRY_TAGS and c.tag not in _FORMAT_TAGS]
        for c in list(sp_pr):
            sp_pr.remove(c)
        fresh = [copy.deepcopy(c) for c in children]
        for c in head + fresh + rest:
            sp_pr.append(c)
        part = self._slide.native.part
        for c in fresh:
            _import_rels(c, source_part, part)

        old_style = self.element.find(qn("p:style"))
        if old_style is not None:
            old_style.getparent().remove(old_style)
        if style is not None:
            sp_pr.addnext(copy.deepcopy(style))

    # -- clipboard / lifecycle
    def copy(self) -> None:
        self._slide.document.clipboard.shapes = ([copy.deepcopy(self.element)], self._slide.native.part)

    def cut(self) -> None:
        self.copy()
        self.delete()

    def delete(self) -> None:
        el = self.element
        timing.remove_shape_effects(self._slide.element, self.shape_id)
        el.getparent().remove(el)

    def duplicate(self) -> "PptxShape":
        dup = self._slide.insert_copy(self.element, None)
        match = _DEFAULT_NAME.match(self.name)
        if match:
            dup.name = f"{match.group(1)} {dup.shape_id - 1}"
        return dup

    # -- text
    @property
    def has_text_frame(self) -> bool:
        return bool(getattr(self.native, "has_text_frame", False))

    @property
    def text_range(self) -> TextRange:
        if not self.has_text_frame:
            raise HostArgumentError(f"{self.name}: shape has no text frame")
        return TextRange(self)

    @property
    def clipboard(self) -> Clipboard:
        return self._slide.document.clipboard

    def _tx_body(self) -> Any:
        if not self.has_text_frame:
            raise HostArgumentError(f"{self.name}: shape has no text frame")
        return self.native.text_frame._txBody

    def read_paragraphs(self) -> list[Paragraph]:
        return [Paragraph(_paragraph_text(p), p) for p in self._tx_body().findall(qn("a:p"))]

    def write_paragraphs(self, paragraphs: list[Paragraph]) -> None:
        tx_body = self._tx_body()
        built = [_build_paragraph(p) for p in paragraphs] or [OxmlElement("a:p")]
        for old in tx_body.findall(qn("a:p")):
            tx_body.remove(old)
        for p in built:
            tx_body.append(p)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, PptxShape)
            and other._slide == self._slide
            and other.shape_id == self.shape_id
        )

    def __hash__(self) -> int:
        return hash((self._slide.slide_id, self.shape_id))

    def __repr__(self) -> str:
        return f"PptxShape(id={self.shape_id}, slide={self._slide.slide_id})"


class PptxEffect:
    def __init__(self, slide: PptxSlide, par: Any) -> None:
        self._slide = slide
        self._par = par

    def _live(self) -> Any:
        if not any(p is self._par for p in timing.read_main_sequence(self._slide.element)):
            raise StaleHandleError("effect is no longer in the main sequence")
        return self._par

    def _regroup(self) -> None:
        sld = self._slide.element
        timing.write_main_sequence(sld, timing.read_main_sequence(sld))

    @property
    def shape(self) -> PptxShape:
        return PptxShape(self._slide, timing.effect_spid(self._live()))

    @property
    def index(self) -> int:
        return next(i for i, p in enumerate(timing.read_main_sequence(self._slide.element)) if p is self._par)

    @property
    def trigger(self) -> TriggerType:
        return timing.effect_trigger(self._live())

    @trigger.setter
    def trigger(self, value: TriggerType) -> None:
        timing.set_effect_trigger(self._live(), value)
        self._regroup()

    @property
    def delay(self) -> float:
        return timing.effect_delay_ms(self._live()) / 1000.0

    @delay.setter
    def delay(self, value: float) -> None:
        timing.set_effect_delay_ms(self._live(), round(float(value) * 1000))
        self._regroup()

    @property
    def effect_class(self) -> EffectClass:
        return timing.effect_class(self._live())

    @property
    def exit(self) -> bool:
        return self.effect_class is EffectClass.EXIT

    @exit.setter
    def exit(self, value: bool) -> None:
        timing.set_effect_exit(self._live(), bool(value))

    @property
    def duration(self) -> float:
        return timing.effect_duration_ms(self._live()) / 1000.0

    def __repr__(self) -> str:
        return f"PptxEffect(shape={timing.effect_spid(self._par)}, {timing.effect_trigger(self._par).value})"


class PptxTimeline:
    def __init__(self, slide: PptxSlide) -> None:
        self._slide = slide

    def _pars(self) -> list[Any]:
        return timing.read_main_sequence(self._slide.element)

    def __len__(self) -> int:
        return len(self._pars())

    def __getitem__(self, index: int) -> PptxEffect:
        return PptxEffect(self._slide, self._pars()[index])

    def __iter__(self) -> Iterator[PptxEffect]:
        return (PptxEffect(self._slide, par) for par in self._pars())

    def add_effect(
        self,
        shape: PptxShape,
        *,
        index: int | None = None,
        trigger: TriggerType = TriggerType.WITH_PREVIOUS,
        exit: bool = False,
        duration: float = 0.0,
        delay: float = 0.0,
    ) -> PptxEffect:
        if shape.slide_id != self._slide.slide_id or not shape.exists:
            raise HostArgumentError(f"{shape!r} is not on {self._slide!r}")
        pars = self._pars()
        if index is None:
            index = len(pars)
        if not 0 <= index <= len(pars):
            raise HostArgumentError(f"effect index {index} out of range 0..{len(pars)}")
        par = timing.new_appear_effect(
            shape.shape_id,
            exit=exit,
            trigger=trigger,
            delay_ms=round(delay * 1000),
            duration_ms=round(duration * 1000),
        )
        pars.insert(index, par)
        timing.write_main_sequence(self._slide.element, pars)
        return PptxEffect(self._slide, par)


class PptxTransition:
    """Advance settings of a slide (`p:transition/@advClick`, `@advTm`)."""

    def __init__(self, slide: PptxSlide) -> None:
        self._slide = slide

    def _elements(self, create: bool = False) -> list[Any]:
        sld = self._slide.element
        found = list(sld.iter(qn("p:transition")))
        if found or not create:
            return found
        transition = OxmlElement("p:transition")
        anchor = sld.find(qn("p:timing"))
        if anchor is None:
            anchor = sld.find(qn("p:extLst"))
        if anchor is not None:
            anchor.addprevious(transition)
        else:
            sld.append(transition)
        return [transition]

    @property
    def advance_on_click(self) -> bool:
        found = self._elements()
        return not found or found[0].get("advClick") not in ("0", "false")

    @advance_on_click.setter
    def advance_on_click(self, value: bool) -> None:
        for el in self._elements(create=not value):
            if value:
                el.attrib.pop("advClick", None)
            else:
                el.set("advClick", "0")

    @property
    def advance_on_time(self) -> bool:
        found = self._elements()
        return bool(found) and found[0].get("advTm") is not None

    @advance_on_time.setter
    def advance_on_time(self, value: bool) -> None:
        if value:
            ms = str(round(self.advance_time * 1000))
            for el in self._elements(create=True):
                el.set("advTm", ms)
            return
        for el in self._elements():
            el.attrib.pop("advTm", None)

    @property
    def advance_time(self) -> float:
        found = self._elements()
        value = found[0].get("advTm") if found else None
        return int(value) / 1000.0 if value and value.isdigit() else 0.0

    @advance_time.setter
    def advance_time(self, value: float) -> None:
        # writing a time switches timed advance on
        for el in self._elements(create=True):
            el.set("advTm", str(round(float(value) * 1000)))
