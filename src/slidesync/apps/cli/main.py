from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

import orjson
from pptx.enum.dml import MSO_FILL

from slidesync.core.animation.squash import DEFAULT_INDICATOR_PREFIX, sort_by_index, squash_slides
from slidesync.core.errors import HostError, JobError
from slidesync.core.jobs import run_job
from slidesync.core.pptx.engine import PptxDocument, PptxShape, PptxSlide
from slidesync.core.sync.shape_sync import sync_shape, sync_whole_shape
from slidesync.core.utils.color import convert_color_to_rgb
from slidesync.core.utils.schema_validate import SCHEMA_DIR, schema_path, validate_json_against_schema


def _project_root() -> Path:
    # .../src/slidesync/apps/cli/main.py -> .../src/slidesync -> .../src -> project root
    return Path(__file__).resolve().parents[4]


def _print_errors(errs: list[str]) -> None:
    for m in errs[:30]:
        print(f"  - {m}")
    if len(errs) > 30:
        print(f"  ... ({len(errs)} errors)")


def _open_deck(path: Path) -> PptxDocument | None:
    if not path.exists():
        print(f"[NG] input not found: {path}")
        return None
    if path.suffix.lower() != ".pptx":
        print(f"[NG] unsupported input type: {path.suffix} (use .pptx)")
        return None
    return PptxDocument.open(path)


def _parse_slides(value: str) -> list[int]:
    try:
        numbers = [int(v) for v in value.split(",") if v.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected comma separated slide numbers, got {value!r}") from e
    if not numbers or min(numbers) < 1:
        raise argparse.ArgumentTypeError("slide numbers start at 1")
    return numbers


def cmd_paths(_: argparse.Namespace) -> int:
    print(f"project_root: {_project_root()}")
    print(f"schemas: {SCHEMA_DIR}")
    print(f"schema.job: {schema_path('job')}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    job_path = Path(args.job).resolve()
    errs = validate_json_against_schema(schema_path("job"), job_path)
    if errs and errs[0].startswith("[ERR]"):
        print(f"[NG] {errs[0]}")
        return 2
    if errs:
        print(f"[NG] job: {job_path.as_posix()}")
        _print_errors(errs)
        return 2
    print(f"[OK] job: {job_path.as_posix()}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    job_path = Path(args.job).resolve()
    out = Path(args.out).resolve() if args.out else None
    try:
        written, results = run_job(job_path, out)
    except JobError as e:
        print("[NG] job failed")
        print(f"      detail: {e}")
        return 2
    for i, r in enumerate(results, 1):
        print(f"[OK] {i}. {r}")
    print(f"[OK] written: {written}")
    return 0


def cmd_squash(args: argparse.Namespace) -> int:
    doc = _open_deck(Path(args.input).resolve())
    if doc is None:
        return 2
    out_path = Path(args.out).resolve()
    count = len(doc.slides)
    bad = [n for n in args.slides if n > count]
    if bad:
        print(f"[NG] slides out of range 1..{count}: {bad}")
        return 2

    slides = sort_by_index({doc.slide_at(n) for n in args.slides})
    try:
        first = squash_slides(slides, args.indicator_prefix)
    except HostError as e:
        print("[NG] squash failed")
        print(f"      detail: {e}")
        return 2
    doc.save(out_path)
    print(f"[OK] squashed {len(slides)} slides into slide {first.index}: {out_path}")
    return 0


def cmd_sync_shape(args: argparse.Namespace) -> int:
    doc = _open_deck(Path(args.input).resolve())
    if doc is None:
        return 2
    out_path = Path(args.out).resolve()

    try:
        source = doc.slide_at(args.slide)
        target = doc.slide_at(args.to_slide)
    except HostError as e:
        print(f"[NG] {e}")
        return 2
    ref = source.shape(args.ref)
    candidate = target.shape(args.candidate or args.ref)
    if ref is None or candidate is None:
        missing = args.ref if ref is None else (args.candidate or args.ref)
        print(f"[NG] shape not found: {missing!r}")
        return 2

    try:
        if args.whole:
            result = sync_whole_shape(ref, candidate, target)
            note = " (recreated)" if result.recreated else ""
        else:
            sync_shape(
                ref,
                candidate,
                sync_basic=not args.no_basic,
                sync_format=not args.no_format,
                sync_content=not args.no_text,
                sync_text_format=not args.no_text_format,
            )
            note = ""
    except HostError as e:
        print("[NG] sync failed")
        print(f"      detail: {type(e).__name__}: {e}")
        return 2
    doc.save(out_path)
    print(f"[OK] synced {args.ref!r} -> slide {args.to_slide}{note}: {out_path}")
    return 0


def _solid_fill(shape: PptxShape) -> int | None:
    """Packed BGR value of a solid RGB fill, None for anything else."""
    try:
        fill = shape.native.fill
        if fill.type != MSO_FILL.SOLID:
            return None
        return convert_color_to_rgb(fill.fore_color.rgb)
    except AttributeError:
        # groups, pictures and frames have no fill; theme colours have no rgb
        return None


def _describe_slide(slide: PptxSlide) -> dict[str, Any]:
    shapes = []
    for s in slide.shapes:
        shapes.append(
            {
                "z": s.z_order_position,
                "id": s.shape_id,
                "name": s.name,
                "kind": s.kind.value,
                "auto_shape_type": s.auto_shape_type,
                "visible": s.visible,
                "box": [round(s.left, 2), round(s.top, 2), round(s.width, 2), round(s.height, 2)],
                "rotation": s.rotation,
                "fill": _solid_fill(s),
                "text": s.text_range.text if s.has_text_frame else None,
            }
        )
    timeline = [
        {
            "shape": e.shape.shape_id,
            "class": e.effect_class.value,
            "trigger": e.trigger.value,
            "delay": e.delay,
        }
        for e in slide.timeline
    ]
    t = slide.transition
    return {
        "index": slide.index,
        "slide_id": slide.slide_id,
        "shapes": shapes,
        "timeline": timeline,
        "transition": {
            "advance_on_click": t.advance_on_click,
            "advance_on_time": t.advance_on_time,
            "advance_time": t.advance_time,
        },
    }


def cmd_inspect(args: argparse.Namespace) -> int:
    doc = _open_deck(Path(args.input).resolve())
    if doc is None:
        return 2
    data = {
        "slide_width": doc.slide_width,
        "slide_height": doc.slide_height,
        "slides": [_describe_slide(s) for s in doc.slides],
    }
    if args.json:
        print(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return 0

    print(f"deck: {args.input} ({data['slide_width']:g} x {data['slide_height']:g} pt)")
    for s in data["slides"]:
        t = s["transition"]
        advance = f"after {t['advance_time']:g}s" if t["advance_on_time"] else "on click"
        print(f"slide {s['index']} (id={s['slide_id']}, advance {advance})")
        for sh in reversed(s["shapes"]):
            print(f"  [{sh['z']}] {sh['name']} ({sh['kind']}) box={sh['box']}")
        for i, e in enumerate(s["timeline"]):
            print(f"  #{i} shape={e['shape']} {e['class']} {e['trigger']} delay={e['delay']:g}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(prog="slidesync")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_paths = sub.add_parser("paths", help="show important project paths")
    p_paths.set_defaults(func=cmd_paths)

    p_val = sub.add_parser("validate", help="validate a job file against its schema")
    p_val.add_argument("--job", required=True, help="job json (e.g., jobs/sync.json)")
    p_val.set_defaults(func=cmd_validate)

    p_run = sub.add_parser("run", help="validate and execute a job file")
    p_run.add_argument("--job", required=True, help="job json (e.g., jobs/sync.json)")
    p_run.add_argument("--out", default=None, help="output .pptx path (overrides job output)")
    p_run.set_defaults(func=cmd_run)

    p_sq = sub.add_parser("squash", help="merge slides into the first one as animation steps")
    p_sq.add_argument("input", help="path to input .pptx")
    p_sq.add_argument("--slides", required=True, type=_parse_slides, help="slide numbers, e.g. 2,3,4")
    p_sq.add_argument("--indicator-prefix", default=DEFAULT_INDICATOR_PREFIX, help="name prefix of marker shapes to drop")
    p_sq.add_argument("--out", required=True, help="output .pptx path")
    p_sq.set_defaults(func=cmd_squash)

    p_sync = sub.add_parser("sync-shape", help="copy a shape's geometry, format and text onto another slide")
    p_sync.add_argument("input", help="path to input .pptx")
    p_sync.add_argument("--slide", required=True, type=int, help="slide holding the reference shape")
    p_sync.add_argument("--ref", required=True, help="reference shape name")
    p_sync.add_argument("--to-slide", required=True, type=int, help="slide holding the candidate shape")
    p_sync.add_argument("--candidate", default=None, help="candidate shape name (default: same as --ref)")
    p_sync.add_argument("--out", required=True, help="output .pptx path")
    p_sync.add_argument("--no-basic", action="store_true", help="skip geometry")
    p_sync.add_argument("--no-format", action="store_true", help="skip shape format")
    p_sync.add_argument("--no-text", action="store_true", help="skip text content")
    p_sync.add_argument("--no-text-format", action="store_true", help="skip text format")
    p_sync.add_argument("--whole", action="store_true", help="full sync, recreating groups and charts")
    p_sync.set_defaults(func=cmd_sync_shape)

    p_ins = sub.add_parser("inspect", help="print slides, shapes in z-order, timelines and transitions")
    p_ins.add_argument("input", help="path to input .pptx")
    p_ins.add_argument("--json", action="store_true", help="print json")
    p_ins.set_defaults(func=cmd_inspect)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    raise SystemExit(args.func(args))


if __name__ == "__main__":
    main()
