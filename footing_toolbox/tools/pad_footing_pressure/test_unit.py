from __future__ import annotations

import math
from datetime import datetime

import pytest

from .calc_trace import build_trace
from .calculator import (
    DEFAULT_ERROR_MESSAGE,
    InputValidationError,
    LoadCase,
    compute,
    compute_from_raw,
    critical_eccentricity,
    parse_inputs,
)
from .formatting import format_number
from .models import EXAMPLE_VALUES, TIMESTAMP_FORMAT, CalculationResult, FootingInputs
from .paths import footing_input_hash
from .result_log import CSV_FILENAME, CSV_HEADER, CSV_MIME, ResultLog
from .session import FootingSession

NOW = datetime(2026, 3, 14, 9, 26, 53)


def _full_contact(P, M, B, D):
    return P / (B * D) + 6 * M / (B * D**2)


# ----- calculator -----

def test_worked_example_case_a() -> None:
    res = compute(3, 10, 1.2, 1.5, 0.1)
    assert res.case is LoadCase.CASE_A
    assert res.ek == pytest.approx(10 / 3)
    assert res.qmax == pytest.approx(3 / 1.8 + 60 / 2.7)
    assert format_number(res.qmax) == "23.9"


@pytest.mark.parametrize(
    "P,M,B,D,e",
    [
        (100.0, 50.0, 2.0, 3.0, 0.1),
        (250.0, 40.0, 1.5, 2.5, 0.05),
        (1.0, 1.0, 1.0, 1.0, 0.5),
    ],
)
def test_case_a_formula(P, M, B, D, e) -> None:
    res = compute(P, M, B, D, e)
    assert res.case is LoadCase.CASE_A
    assert res.qmax == pytest.approx(_full_contact(P, M, B, D))


@pytest.mark.parametrize(
    "P,M,B,D,e",
    [
        (100.0, 5.0, 2.0, 2.0, 0.5),
        (300.0, 30.0, 1.8, 2.4, 0.3),
    ],
)
def test_case_c_formula(P, M, B, D, e) -> None:
    res = compute(P, M, B, D, e)
    assert res.case is LoadCase.CASE_C
    assert res.qmax == pytest.approx(P / (1.5 * B * (D / 2 - e)))


def test_case_b_exact_boundary_uses_case_a_formula() -> None:
    res = compute(4.0, 2.0, 1.0, 2.0, 0.5)
    assert res.ek == 0.5
    assert res.case is LoadCase.CASE_B
    assert res.qmax == pytest.approx(_full_contact(4.0, 2.0, 1.0, 2.0))
    assert res.qmax == pytest.approx(5.0)


def test_boundary_tolerance_is_opt_in() -> None:
    e = 0.3333333
    assert compute(3.0, 1.0, 1.0, 2.0, e).case is LoadCase.CASE_A
    assert compute(3.0, 1.0, 1.0, 2.0, e, boundary_rel_tol=1e-6).case is LoadCase.CASE_B


def test_case_c_at_half_width_is_infinite() -> None:
    res = compute(10.0, 1.0, 1.0, 2.0, 1.0)
    assert res.case is LoadCase.CASE_C
    assert math.isinf(res.qmax) and res.qmax > 0


def test_case_c_beyond_half_width_is_negative() -> None:
    res = compute(10.0, 1.0, 1.0, 2.0, 1.5)
    assert res.case is LoadCase.CASE_C
    assert res.qmax == pytest.approx(10.0 / (1.5 * (1.0 - 1.5)))
    assert res.qmax < 0


def test_critical_eccentricity_fallback() -> None:
    assert critical_eccentricity(4.0, 2.0, 3.0) == 0.5
    assert critical_eccentricity(0.0, 2.0, 3.0) == 0.5


@pytest.mark.parametrize(
    "args,bad",
    [
        ((0, 10, 1.2, 1.5, 0.1), ("P",)),
        ((3, -10, 1.2, 1.5, 0.1), ("M",)),
        ((3, 10, 1.2, 1.5, float("nan")), ("e",)),
        ((3, 10, float("inf"), 0, 0.1), ("B", "D")),
    ],
)
def test_compute_rejects_non_positive_or_non_finite(args, bad) -> None:
    with pytest.raises(InputValidationError) as exc:
        compute(*args)
    assert exc.value.fields == bad
    assert str(exc.value) == DEFAULT_ERROR_MESSAGE


def test_parse_inputs_accepts_form_text() -> None:
    inputs = parse_inputs({"P": " 3 ", "M": "10", "B": "1.2", "D": "1.5", "e": "1e-1"})
    assert inputs.as_tuple() == (3.0, 10.0, 1.2, 1.5, 0.1)


@pytest.mark.parametrize("value", ["", "   ", "abc", "0", "-2", "inf", "nan", None, True])
def test_parse_inputs_rejects_bad_text(value) -> None:
    raw = dict(EXAMPLE_VALUES)
    raw["B"] = value
    with pytest.raises(InputValidationError) as exc:
        parse_inputs(raw)
    assert exc.value.fields == ("B",)


def test_parse_inputs_missing_field() -> None:
    raw = dict(EXAMPLE_VALUES)
    del raw["e"]
    with pytest.raises(InputValidationError) as exc:
        compute_from_raw(raw)
    assert "e" in exc.value.fields


# ----- formatting -----

@pytest.mark.parametrize(
    "value,expected",
    [
        (1.2345, "1.23"),
        (100.0, "100"),
        (0.001234, "0.00123"),
        (1.20, "1.2"),
        (23.8888889, "23.9"),
        (123456.0, "123000"),
        (999.6, "1000"),
        (0.0, "0"),
        (-0.0, "0"),
        (-13.3333, "-13.3"),
        (1.2e-7, "1.2e-7"),
        (1e21, "1e+21"),
        (float("inf"), "Infinity"),
        (float("-inf"), "-Infinity"),
        (float("nan"), "NaN"),
        (1.125, "1.13"),
        (100.5, "101"),
        (12.25, "12.3"),
        (0.3125, "0.313"),
        (-1.125, "-1.13"),
        (2.675, "2.67"),
        (1.005, "1"),
        (9.996e-7, "0.000001"),
    ],
)
def test_format_number(value, expected) -> None:
    assert format_number(value) == expected


# ----- result log -----

def _saved(raw=None, now=NOW) -> CalculationResult:
    inputs = FootingInputs.model_validate(raw or EXAMPLE_VALUES)
    res = compute(*inputs.as_tuple())
    return CalculationResult.create(inputs, res, now=now)


def test_calculation_result_is_immutable() -> None:
    r = _saved()
    assert r.case is LoadCase.CASE_A
    assert r.qmax == compute(*FootingInputs.example().as_tuple()).qmax
    assert r.timestamp == NOW.strftime(TIMESTAMP_FORMAT)
    assert "," not in r.timestamp
    with pytest.raises(Exception):
        r.qmax = 1.0  # type: ignore[misc]


def test_empty_log_serializes_to_nothing() -> None:
    log = ResultLog()
    assert log.serialize() == ""
    assert log.to_csv_export() is None


def test_log_serialize_rows_in_append_order() -> None:
    log = ResultLog()
    log.append(_saved())
    log.append(_saved({"P": "100", "M": "5", "B": "2", "D": "2", "e": "0.5"}))
    log.append(_saved())

    lines = log.serialize().splitlines()
    assert len(lines) == 4
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[0] == "Timestamp,P (kN),M (kN·m),B (m),D (m),e (m),qmax (kN/m²),Case"

    stamp = NOW.strftime(TIMESTAMP_FORMAT)
    assert lines[1] == f"{stamp},3,10,1.2,1.5,0.1,23.9,Case A: e < ek"
    assert lines[2] == f"{stamp},100,5,2,2,0.5,66.7,Case C: e > ek"
    assert lines[3] == lines[1]


def test_log_export_metadata_and_write(tmp_path) -> None:
    log = ResultLog()
    log.append(_saved())
    export = log.to_csv_export()
    assert export is not None
    assert export.filename == CSV_FILENAME == "footing_pressure_results.csv"
    assert export.mime == CSV_MIME == "text/csv"

    p = log.write_csv(tmp_path)
    assert p == tmp_path / CSV_FILENAME
    assert p.read_text(encoding="utf-8") == export.content


def test_log_rows_round_ties_up() -> None:
    log = ResultLog()
    log.append(_saved({"P": "100.5", "M": "12.25", "B": "1.125", "D": "2", "e": "0.3125"}))
    row = log.rows()[0]
    assert row[1:6] == ["101", "12.3", "1.13", "2", "0.313"]
    assert ",101,12.3,1.13,2,0.313," in log.serialize().splitlines()[1]


def test_csv_export_write_to_chosen_name(tmp_path) -> None:
    log = ResultLog()
    log.append(_saved())
    export = log.to_csv_export()
    assert export is not None

    p = export.write(tmp_path / "picked", "site_a.csv")
    assert p == tmp_path / "picked" / "site_a.csv"
    assert p.read_bytes() == export.content.encode("utf-8")
    assert b"\r\n" not in p.read_bytes()


def test_log_keeps_raw_values() -> None:
    log = ResultLog()
    r = _saved()
    log.append(r)
    assert log.results[0].qmax == r.qmax
    assert log.results[0].qmax != 23.9
    log.clear()
    assert len(log) == 0


# ----- session -----

def test_session_starts_from_example() -> None:
    s = FootingSession()
    assert s.case is LoadCase.CASE_A
    assert s.display_qmax == "23.9 kN/m²"
    assert s.error == ""
    assert s.can_save and not s.can_export


def test_session_invalid_input_clears_result() -> None:
    s = FootingSession()
    assert s.set_input("D", "abc") is None
    assert s.qmax is None and s.case is None
    assert s.error == DEFAULT_ERROR_MESSAGE
    assert s.save_result(now=NOW) is None
    assert len(s.log) == 0

    s.set_input("D", "1.5")
    assert s.error == ""
    assert s.qmax == pytest.approx(3 / 1.8 + 60 / 2.7)


def test_session_recalculate_is_idempotent() -> None:
    s = FootingSession()
    first = s.recalculate()
    assert s.recalculate() == first
    assert len(s.log) == 0


def test_session_save_and_export(tmp_path) -> None:
    s = FootingSession()
    s.save_result(now=NOW)
    s.update_inputs({"P": "100", "M": "5", "B": "2", "D": "2", "e": "0.5"})
    saved = s.save_result(now=NOW)
    assert saved is not None and saved.case is LoadCase.CASE_C
    assert s.can_export

    export = s.export_csv()
    assert export is not None
    assert len(export.content.splitlines()) == 3

    p = s.write_csv(tmp_path)
    assert p is not None and p.exists()

    s.clear_log()
    assert s.export_csv() is None
    assert s.write_csv(tmp_path / "empty") is None


def test_session_unknown_field() -> None:
    s = FootingSession()
    with pytest.raises(KeyError):
        s.set_input("Q", "1")
    with pytest.raises(KeyError):
        s.update_inputs({"P": "2", "Q": "1"})
    assert s.raw["P"] == EXAMPLE_VALUES["P"]


def test_session_reset_to_examples() -> None:
    s = FootingSession(raw={"P": "", "M": "1"})
    assert s.error
    s.reset_to_examples()
    assert s.raw == EXAMPLE_VALUES
    assert s.case is LoadCase.CASE_A


# ----- calc trace -----

def test_trace_steps() -> None:
    inputs = FootingInputs.example()
    res = compute(*inputs.as_tuple())
    tr = build_trace(inputs, res, tool_id="pad_footing_pressure", tool_version="test")

    assert [s.id for s in tr.steps] == ["S1", "S2"]
    s1 = tr.step("S1")
    assert s1.result_unrounded.value == pytest.approx(10 / 3)
    assert s1.substitution_latex == r"\frac{10\,\mathrm{kN·m}}{3\,\mathrm{kN}}"
    s2 = tr.step("S2")
    assert s2.result_rounded.value == pytest.approx(23.9)
    assert tr.summary["case"] == LoadCase.CASE_A.value
    assert [i.id for i in tr.inputs] == ["P", "M", "B", "D", "e"]


def test_trace_flags_non_finite_pressure() -> None:
    inputs = FootingInputs(P=10.0, M=1.0, B=1.0, D=2.0, e=1.0)
    res = compute(*inputs.as_tuple())
    tr = build_trace(inputs, res, tool_id="pad_footing_pressure", tool_version="test")
    assert tr.step("S2").warnings


def test_input_hash_tracks_values_not_text() -> None:
    a = FootingInputs.example()
    b = parse_inputs({"P": " 3.0 ", "M": "1e1", "B": "1.20", "D": "1.5", "e": ".1"})
    assert footing_input_hash(a) == footing_input_hash(b)
    assert len(footing_input_hash(a)) == 12

    c = parse_inputs({**EXAMPLE_VALUES, "e": "0.11"})
    assert footing_input_hash(c) != footing_input_hash(a)


def test_host_schema_validation_message() -> None:
    from footing_toolbox.core.schema_utils import validate_inputs

    ok, err = validate_inputs(FootingInputs, dict(EXAMPLE_VALUES))
    assert err is None and ok["e"] == 0.1

    raw = dict(EXAMPLE_VALUES)
    raw["B"] = "-1"
    out, err = validate_inputs(FootingInputs, raw)
    assert out == {}
    assert err is not None and err.startswith("B: ")
