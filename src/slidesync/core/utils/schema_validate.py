from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator


SCHEMA_DIR = Path(__file__).resolve().parents[1] / "schemas"


def load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def schema_path(name: str) -> Path:
    return SCHEMA_DIR / f"{name}.schema.json"


def validate_instance(schema: Any, inst: Any) -> list[str]:
    """Validate an already loaded instance; returns "<jsonpath>: <message>" strings."""
    v = Draft202012Validator(schema)
    errors = sorted(v.iter_errors(inst), key=lambda e: list(e.path))
    result: list[str] = []
    for e in errors:
        path = "$"
        for p in e.path:
            path += f"[{p!r}]" if isinstance(p, str) else f"[{p}]"
        result.append(f"{path}: {e.message}")
    return result


def validate_json_against_schema(schema_path: Path, instance_path: Path) -> list[str]:
    """
    Validate a JSON file against a JSON schema file.
    Returns a list of human-readable error strings (empty if valid).
    Missing files are reported as a single "[ERR] ..." entry.
    """
    if not schema_path.exists():
        return [f"[ERR] schema not found: {schema_path}"]
    if not instance_path.exists():
        return [f"[ERR] instance not found: {instance_path}"]
    try:
        inst = load_json(instance_path)
    except json.JSONDecodeError as e:
        return [f"[ERR] invalid json: {instance_path}: {e}"]
    return validate_instance(load_json(schema_path), inst)


def main() -> int:
    ap = argparse.ArgumentParser(prog="schema_validate")
    ap.add_argument("--schema", default=str(schema_path("job")), help="path to *.schema.json")
    ap.add_argument("--instance", required=True, help="path to json to validate")
    args = ap.parse_args()

    schema = Path(args.schema)
    instance = Path(args.instance)

    errors = validate_json_against_schema(schema, instance)
    if not errors:
        print(f"[OK] {instance} conforms to {schema}")
        return 0
    if errors[0].startswith("[ERR]"):
        print(errors[0])
        return 2
    print(f"[NG] {instance} does NOT conform to {schema}")
    for err in errors:
        print(f"- {err}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
