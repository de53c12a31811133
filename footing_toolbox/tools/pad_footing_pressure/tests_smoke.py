from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import load_workbook

from footing_toolbox.core.loader import discover_tools
from footing_toolbox.core.paths import HOME_ENV, user_data_dir

from .models import FootingInputs
from .paths import TOOL_ID, create_run_dir, footing_input_hash, runs_dir
from .tool import TOOL


@pytest.fixture(autouse=True)
def _local_appdata(tmp_path, monkeypatch):
    # force outputs to temp
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    monkeypatch.delenv(HOME_ENV, raising=False)
    return tmp_path


def _assert_exists(p: Path) -> None:
    assert p.exists(), f"Missing: {p}"


def _check_outputs(run_dir: Path) -> None:
    _assert_exists(run_dir / "footing_pressure_results.csv")
    _assert_exists(run_dir / "results.xlsx")
    _assert_exists(run_dir / "calc_trace.json")
    _assert_exists(run_dir / "results.json")
    _assert_exists(run_dir / "report.pdf")
    _assert_exists(run_dir / "run.log")


def test_smoke_case_a():
    res = TOOL.run_batch(TOOL.default_inputs())
    assert res["ok"] is True
    assert res["case"] == "Case A: e < ek"
    assert res["qmax_display"] == "23.9 kN/m²"
    run_dir = Path(res["run_dir"])
    _check_outputs(run_dir)

    lines = (run_dir / "footing_pressure_results.csv").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[1].endswith(",3,10,1.2,1.5,0.1,23.9,Case A: e < ek")

    results = json.loads((run_dir / "results.json").read_text(encoding="utf-8"))
    assert results["case"] == "Case A: e < ek"

    wb = load_workbook(run_dir / "results.xlsx")
    assert wb.sheetnames == ["Results", "Inputs", "Calcs"]
    assert wb["Results"].cell(row=2, column=7).value == "23.9"


def test_smoke_case_c():
    inputs = TOOL.default_inputs()
    inputs.update({"P": "100", "M": "5", "B": "2", "D": "2", "e": "0.5"})
    res = TOOL.run_batch(inputs)
    assert res["ok"] is True
    assert res["case"] == "Case C: e > ek"
    assert res["qmax"] == pytest.approx(100 / 1.5)
    _check_outputs(Path(res["run_dir"]))

    trace = json.loads((Path(res["run_dir"]) / "calc_trace.json").read_text(encoding="utf-8"))
    assert [s["id"] for s in trace["steps"]] == ["S1", "S2"]


def test_smoke_invalid_inputs(_local_appdata):
    inputs = TOOL.default_inputs()
    inputs["M"] = "-1"
    res = TOOL.run_batch(inputs)
    assert res == {
        "ok": False,
        "error": "Please enter valid positive numbers for all fields",
        "fields": ["M"],
    }
    assert not (_local_appdata / "FootingToolbox" / TOOL_ID / "runs").exists()


def test_tool_is_discovered():
    ids = [t.meta.id for t in discover_tools()]
    assert TOOL_ID in ids


def test_ui_thread_flag_lives_on_the_tool():
    from . import tool as tool_module

    assert TOOL.RUNS_ON_UI_THREAD is True
    assert "RUNS_ON_UI_THREAD" not in vars(tool_module)


def test_tool_discovery_skips_broken_and_duplicate_packages(tmp_path, monkeypatch):
    root = tmp_path / "plugins" / "fixture_tools"
    tool_src = (
        "from types import SimpleNamespace\n"
        "from footing_toolbox.core.tool_base import ToolMeta\n"
        "TOOL = SimpleNamespace(meta=ToolMeta({id!r}, {name!r}, {cat!r}, '1.0', ''))\n"
    )
    packages = {
        "a_walls": tool_src.format(id="wall", name="Wall", cat="Walls"),
        "b_pads": tool_src.format(id="pad", name="Pad", cat="Foundations"),
        "c_pads_again": tool_src.format(id="pad", name="Pad copy", cat="Foundations"),
        "d_broken": "raise RuntimeError('boom')\n",
        "e_no_tool": "",
    }
    for name, src in packages.items():
        (root / name).mkdir(parents=True)
        (root / name / "__init__.py").write_text(src, encoding="utf-8")
    (root / "__init__.py").write_text("", encoding="utf-8")
    (root / "loose_module.py").write_text("TOOL = None\n", encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path / "plugins"))

    tools = discover_tools("fixture_tools")
    assert [t.meta.name for t in tools] == ["Pad", "Wall"]


def test_run_dirs_named_from_inputs_and_never_reused():
    h = footing_input_hash(FootingInputs.example())
    now = datetime(2026, 3, 14, 9, 26, 53)
    first = create_run_dir(h, now=now)
    second = create_run_dir(h, now=now)
    assert first.parent == second.parent == runs_dir()
    assert first.name == f"20260314_092653_{h[:8]}"
    assert second.name == f"{first.name}-2"


def test_home_override(tmp_path, monkeypatch):
    monkeypatch.setenv(HOME_ENV, str(tmp_path / "shared"))
    assert user_data_dir() == tmp_path / "shared"
    assert runs_dir() == tmp_path / "shared" / TOOL_ID / "runs"
