"""Main animation sequence of a slide (`p:timing`) as a flat effect list.

PowerPoint stores the main sequence as click groups, each holding time
groups, each holding effect `p:par` elements:

    mainSeq / click group (starts on click) / time group (starts after previous) / effect

Readers flatten that tree into the ordered list of effect `p:par` elements;
the writer regroups a list from each effect's `nodeType`. Effect elements are
moved, never copied, so authored effects survive a rewrite untouched apart
from their trigger attributes, and callers may hold on to them.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from pptx.oxml import parse_xml
from pptx.oxml.ns import nsdecls, qn
from pptx.oxml.xmlchemy import OxmlElement

from slidesync.core.model.types import EffectClass, TriggerType


logger = logging.getLogger(__name__)


_NODE_TYPES = {
    TriggerType.ON_CLICK: "clickEffect",
    TriggerType.WITH_PREVIOUS: "withEffect",
    TriggerType.AFTER_PREVIOUS: "afterEffect",
}
_TRIGGERS = {v: k for k, v in _NODE_TYPES.items()}

_TIMING_SKELETON = (
    "<p:timing %s><p:tnLst><p:par>"
    '<p:cTn id="1" dur="indefinite" restart="never" nodeType="tmRoot"><p:childTnLst/></p:cTn>'
    "</p:par></p:tnLst></p:timing>"
)

_MAIN_SEQ = (
    '<p:seq %s concurrent="1" nextAc="seek">'
    '<p:cTn id="2" dur="indefinite" nodeType="mainSeq"><p:childTnLst/></p:cTn>'
    '<p:prevCondLst><p:cond evt="onPrev" delay="0"><p:tgtEl><p:sldTgt/></p:tgtEl></p:cond></p:prevCondLst>'
    '<p:nextCondLst><p:cond evt="onNext" delay="0"><p:tgtEl><p:sldTgt/></p:tgtEl></p:cond></p:nextCondLst>'
    "</p:seq>"
)

_APPEAR_EFFECT = (
    "<p:par %s>"
    '<p:cTn id="0" presetID="1" presetClass="%s" presetSubtype="0" fill="hold" grpId="0" nodeType="%s">'
    '<p:stCondLst><p:cond delay="%d"/></p:stCondLst>'
    "<p:childTnLst><p:set><p:cBhvr>"
    '<p:cTn id="0" dur="%d" fill="hold"><p:stCondLst><p:cond delay="0"/></p:stCondLst></p:cTn>'
    '<p:tgtEl><p:spTgt spid="%d"/></p:tgtEl>'
    "<p:attrNameLst><p:attrName>style.visibility</p:attrName></p:attrNameLst>"
    '</p:cBhvr><p:to><p:strVal val="%s"/></p:to></p:set></p:childTnLst>'
    "</p:cTn></p:par>"
)


# -- single effect accessors


def effect_ctn(par: Any) -> Any:
    return par.find(qn("p:cTn"))


def _start_cond(ctn: Any) -> Any:
    st = ctn.find(qn("p:stCondLst"))
    if st is None:
        st = OxmlElement("p:stCondLst")
        ctn.insert(0, st)
    cond = st.find(qn("p:cond"))
    if cond is None:
        cond = OxmlElement("p:cond")
        st.append(cond)
    return cond


def _int_attr(el: Any, name: str) -> int:
    value = el.get(name) if el is not None else None
    if value is None or not value.isdigit():
        return 0
    return int(value)


def effect_trigger(par: Any) -> TriggerType:
    return _TRIGGERS.get(effect_ctn(par).get("nodeType") or "", TriggerType.WITH_PREVIOUS)


def set_effect_trigger(par: Any, trigger: TriggerType) -> None:
    effect_ctn(par).set("nodeType", _NODE_TYPES[TriggerType(trigger)])


def effect_delay_ms(par: Any) -> int:
    st = effect_ctn(par).find(qn("p:stCondLst"))
    return _int_attr(st.find(qn("p:cond")) if st is not None else None, "delay")


def set_effect_delay_ms(par: Any, delay_ms: int) -> None:
    _start_cond(effect_ctn(par)).set("delay", str(max(0, int(delay_ms))))


def effect_class(par: Any) -> EffectClass:
    return EffectClass.from_preset(effect_ctn(par).get("presetClass"))


def set_effect_exit(par: Any, exit: bool) -> None:
    effect_ctn(par).set("presetClass", EffectClass.EXIT.value if exit else EffectClass.ENTRANCE.value)
    for s in par.iter(qn("p:set")):
        names = [n.text for n in s.iter(qn("p:attrName"))]
        if "style.visibility" not in names:
            continue
        for val in s.iter(qn("p:strVal")):
            val.set("val", "hidden" if exit else "visible")


def effect_spid(par: Any) -> int | None:
    for tgt in par.iter(qn("p:spTgt")):
        spid = tgt.get("spid")
        if spid and spid.isdigit():
            return int(spid)
    return None


def effect_duration_ms(par: Any) -> int:
    ctn = effect_ctn(par)
    return max((_int_attr(c, "dur") for c in par.iter(qn("p:cTn")) if c is not ctn), default=0)


def new_appear_effect(
    spid: int,
    *,
    exit: bool = False,
    trigger: TriggerType = TriggerType.WITH_PREVIOUS,
    delay_ms: int = 0,
    duration_ms: int = 0,
) -> Any:
    """Zero-length Appear (or Disappear) effect for one shape."""
    return parse_xml(
        _APPEAR_EFFECT
        % (
            nsdecls("p"),
            EffectClass.EXIT.value if exit else EffectClass.ENTRANCE.value,
            _NODE_TYPES[TriggerType(trigger)],
            max(0, int(delay_ms)),
            max(1, int(duration_ms)),
            spid,
            "hidden" if exit else "visible",
        )
    )


# -- sequence


def _main_seq_ctn(sld: Any) -> Any | None:
    timing = sld.find(qn("p:timing"))
    if timing is None:
        return None
    for ctn in timing.iter(qn("p:cTn")):
        if ctn.get("nodeType") == "mainSeq":
            return ctn
    return None


def _children(ctn: Any) -> list[Any]:
    lst = ctn.find(qn("p:childTnLst")) if ctn is not None else None
    return [] if lst is None else lst.findall(qn("p:par"))


def read_main_sequence(sld: Any) -> list[Any]:
    """Effect `p:par` elements of the main sequence, in play order."""
    effects: list[Any] = []
    for click_par in _children(_main_seq_ctn(sld)):
        for time_par in _children(click_par.find(qn("p:cTn"))):
            effects.extend(_children(time_par.find(qn("p:cTn"))))
    return effects


def _ensure_main_seq(sld: Any) -> Any:
    timing = sld.find(qn("p:timing"))
    if timing is None:
        timing = parse_xml(_TIMING_SKELETON % nsdecls("p"))
        ext = sld.find(qn("p:extLst"))
        if ext is not None:
            ext.addprevious(timing)
        else:
            sld.append(timing)
    ctn = _main_seq_ctn(sld)
    if ctn is not None:
        return ctn
    root_ctn = timing.find(qn("p:tnLst")).find(qn("p:par")).find(qn("p:cTn"))
    root_list = root_ctn.find(qn("p:childTnLst"))
    root_list.insert(0, parse_xml(_MAIN_SEQ % nsdecls("p")))
    return _main_seq_ctn(sld)


def _group_par(delay: str) -> tuple[Any, Any]:
    par = OxmlElement("p:par")
    ctn = OxmlElement("p:cTn")
    ctn.set("id", "0")
    ctn.set("fill", "hold")
    st = OxmlElement("p:stCondLst")
    cond = OxmlElement("p:cond")
    cond.set("delay", delay)
    st.append(cond)
    ctn.append(st)
    ctn.append(OxmlElement("p:childTnLst"))
    par.append(ctn)
    return par, ctn


def _group(effects: Iterable[Any]) -> list[list[list[Any]]]:
    groups: list[list[list[Any]]] = []
    for par in effects:
        trigger = effect_trigger(par)
        if trigger is TriggerType.ON_CLICK or not groups:
            groups.append([[par]])
        elif trigger is TriggerType.AFTER_PREVIOUS:
            groups[-1].append([par])
        else:
            groups[-1][-1].append(par)
    return groups


def _renumber(timing: Any) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for n, ctn in enumerate(timing.iter(qn("p:cTn")), 1):
        old = ctn.get("id")
        if old is not None and old != "0":
            mapping.setdefault(old, str(n))
        ctn.set("id", str(n))
    for tn in timing.iter(qn("p:tn")):
        val = tn.get("val")
        if val in mapping:
            tn.set("val", mapping[val])
    return mapping


def _sync_build_list(sld: Any, timing: Any) -> None:
    animated = {
        int(t.get("spid")) for t in timing.iter(qn("p:spTgt")) if (t.get("spid") or "").isdigit()
    }
    text_shape_ids: set[int] = set()
    for sp in sld.iter(qn("p:sp")):
        cnv = sp.find(qn("p:nvSpPr")).find(qn("p:cNvPr"))
        text_shape_ids.add(int(cnv.get("id")))

    bld = timing.find(qn("p:bldLst"))
    if bld is None:
        bld = OxmlElement("p:bldLst")
        timing.find(qn("p:tnLst")).addnext(bld)
    listed: set[int] = set()
    for bp in list(bld):
        spid = bp.get("spid")
        if not spid or not spid.isdigit() or int(spid) not in animated:
            bld.remove(bp)
            continue
        listed.add(int(spid))
    for spid in sorted((animated & text_shape_ids) - listed):
        bp = OxmlElement("p:bldP")
        bp.set("spid", str(spid))
        bp.set("grpId", "0")
        bp.set("animBg", "1")
        bld.append(bp)
    if len(bld) == 0:
        timing.remove(bld)


def write_main_sequence(sld: Any, effects: list[Any]) -> None:
    """Replace the main sequence with `effects`, regrouped by trigger."""
    effects = list(effects)
    if not effects:
        _drop_main_sequence(sld)
        return

    main_ctn = _ensure_main_seq(sld)
    child_list = main_ctn.find(qn("p:childTnLst"))
    for old in list(child_list):
        child_list.remove(old)

    for g, click_group in enumerate(_group(effects)):
        click_par, click_ctn = _group_par("indefinite")
        if g == 0 and effect_trigger(click_group[0][0]) is not TriggerType.ON_CLICK:
            begin = OxmlElement("p:cond")
            begin.set("evt", "onBegin")
            begin.set("delay", "0")
            tn = OxmlElement("p:tn")
            tn.set("val", "mainSeq")
            begin.append(tn)
            click_ctn.find(qn("p:stCondLst")).append(begin)
        offset = 0
        for time_group in click_group:
            time_par, time_ctn = _group_par(str(offset))
            span = 0
            for par in time_group:
                time_ctn.find(qn("p:childTnLst")).append(par)
                span = max(span, effect_delay_ms(par) + effect_duration_ms(par))
            click_ctn.find(qn("p:childTnLst")).append(time_par)
            offset += span
        child_list.append(click_par)

    timing = sld.find(qn("p:timing"))
    _renumber(timing)
    main_id = main_ctn.get("id")
    for tn in timing.iter(qn("p:tn")):
        if tn.get("val") == "mainSeq":
            tn.set("val", main_id)
    _sync_build_list(sld, timing)
    logger.debug("main sequence rewritten: %d effects", len(effects))


def _drop_main_sequence(sld: Any) -> None:
    timing = sld.find(qn("p:timing"))
    ctn = _main_seq_ctn(sld)
    if timing is None or ctn is None:
        return
    seq = ctn.getparent()
    root_list = seq.getparent()
    root_list.remove(seq)
    if len(root_list) == 0:
        sld.remove(timing)
        return
    _renumber(timing)
    _sync_build_list(sld, timing)


def remove_shape_effects(sld: Any, spid: int) -> int:
    effects = read_main_sequence(sld)
    kept = [par for par in effects if effect_spid(par) != spid]
    if len(kept) != len(effects):
        write_main_sequence(sld, kept)
    return len(effects) - len(kept)
