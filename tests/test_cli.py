from __future__ import annotations

import json
import sys

import orjson
import pytest
from pptx.dml.color import RGBColor

from slidesync.apps.cli.main import main
from slidesync.core.pptx.engine import PptxDocument


def _run(monkeypatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["slidesync", *argv])
    with pytest.raises(SystemExit) as exc:
        main()
    return exc.value.code


def test_paths(monkeypatch, capsys):
    assert _run(monkeypatch, "paths") == 0
    assert "schema.job:" in capsys.readouterr().out


def test_validate_ok_and_ng(monkeypatch, capsys, tmp_path):
    good = tmp_path / "good.json"
    good.write_text(
        json.dumps({"schema_version": "0.1", "input": "d.pptx", "operations": [{"op": "squash", "slides": [1]}]}),
        encoding="utf-8",
    )
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"input": "d.pptx"}), encoding="utf-8")

    assert _run(monkeypatch, "validate", "--job", str(good)) == 0
    assert "[OK]" in capsys.readouterr().out
    assert _run(monkeypatch, "validate", "--job", str(bad)) == 2
    assert "[NG]" in capsys.readouterr().out


def test_inspect_json(monkeypatch, capsys, deck_path):
    assert _run(monkeypatch, "inspect", str(deck_path), "--json") == 0
    data = orjson.loads(capsys.readouterr().out)
    assert len(data["slides"]) == 3
    assert [s["name"] for s in data["slides"][0]["shapes"]] == ["A", "B", "C"]


def test_squash_command(monkeypatch, capsys, deck_path, tmp_path):
    out = tmp_path / "squashed.pptx"
    assert _run(monkeypatch, "squash", str(deck_path), "--slides", "2,3", "--out", str(out)) == 0
    assert out.exists()
    assert "[OK] squashed 2 slides into slide 2" in capsys.readouterr().out


def test_squash_rejects_out_of_range(monkeypatch, capsys, deck_path, tmp_path):
    out = tmp_path / "squashed.pptx"
    assert _run(monkeypatch, "squash", str(deck_path), "--slides", "2,7", "--out", str(out)) == 2
    assert not out.exists()


def test_sync_shape_command(monkeypatch, capsys, deck_path, tmp_path):
    out = tmp_path / "synced.pptx"
    code = _run(
        monkeypatch, "sync-shape", str(deck_path), "--slide", "1", "--ref", "A", "--to-slide", "2", "--out", str(out)
    )
    assert code == 0
    assert "[OK] synced 'A' -> slide 2" in capsys.readouterr().out


def test_missing_input(monkeypatch, capsys, tmp_path):
    assert _run(monkeypatch, "inspect", str(tmp_path / "none.pptx")) == 2
    assert "[NG] input not found" in capsys.readouterr().out


def test_run_reports_malformed_job(monkeypatch, capsys, tmp_path):
    job = tmp_path / "bad.json"
    job.write_text("{not json", encoding="utf-8")
    assert _run(monkeypatch, "run", "--job", str(job)) == 2
    out = capsys.readouterr().out
    assert "[NG] job failed" in out
    assert "invalid json" in out


def test_inspect_json_reports_solid_fill(monkeypatch, capsys, deck_path):
    deck = PptxDocument.open(deck_path)
    a = deck.slide_at(1).shape("A")
    a.native.fill.solid()
    a.native.fill.fore_color.rgb = RGBColor(0x12, 0x34, 0x56)
    deck.save(deck_path)

    assert _run(monkeypatch, "inspect", str(deck_path), "--json") == 0
    shapes = orjson.loads(capsys.readouterr().out)["slides"][0]["shapes"]
    assert shapes[0]["fill"] == 0x563412
    assert shapes[1]["fill"] is None
