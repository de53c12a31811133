from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .calculator import PressureResult, pressure_full_contact, pressure_partial_contact
from .formatting import round_sig
from .models import INPUT_FIELDS, TOOLTIPS, UNITS, FootingInputs, LoadCase
from .paths import footing_input_hash

REPORT_VERSION = "1.0"
UNITS_SYSTEM = "SI (kN, m)"


@dataclass(frozen=True)
class TraceMeta:
    tool_id: str
    tool_version: str
    report_version: str
    timestamp: str
    units_system: str
    input_hash: str


@dataclass(frozen=True)
class TraceInput:
    id: str
    label: str
    value: Any
    units: str
    source: str  # user/default
    notes: str = ""


@dataclass(frozen=True)
class Assumption:
    id: str
    text: str


@dataclass(frozen=True)
class CalcVar:
    symbol: str
    description: str
    value: Any
    units: str
    source: str


@dataclass(frozen=True)
class CalcResult:
    value: float
    units: str


@dataclass(frozen=True)
class Rounding:
    rule: str  # "sigfigs" | "none"
    decimals_or_sigfigs: int


@dataclass
class CalcStep:
    id: str
    section: str
    title: str
    output_symbol: str
    output_description: str
    equation_latex: str
    substitution_latex: str
    variables: List[CalcVar]
    result_unrounded: CalcResult
    rounding: Rounding
    result_rounded: CalcResult
    warnings: List[str] = field(default_factory=list)


@dataclass
class CalcTrace:
    """Reproducible record of one calculation.

    All batch exports (JSON/Excel/PDF) are rendered from this object.
    """

    meta: TraceMeta
    inputs: List[TraceInput] = field(default_factory=list)
    assumptions: List[Assumption] = field(default_factory=list)
    steps: List[CalcStep] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(
        cls,
        *,
        tool_id: str,
        tool_version: str,
        inputs: Dict[str, Any],
        input_hash: str,
        input_sources: Optional[Dict[str, str]] = None,
    ) -> "CalcTrace":
        meta = TraceMeta(
            tool_id=str(tool_id),
            tool_version=str(tool_version),
            report_version=REPORT_VERSION,
            timestamp=datetime.now().isoformat(timespec="seconds"),
            units_system=UNITS_SYSTEM,
            input_hash=str(input_hash),
        )

        src = input_sources or {}
        trace_inputs = [
            TraceInput(
                id=k,
                label=TOOLTIPS.get(k, k),
                value=inputs[k],
                units=UNITS.get(k, "-"),
                source=str(src.get(k, "user")),
            )
            for k in INPUT_FIELDS
            if k in inputs
        ]
        return cls(meta=meta, inputs=trace_inputs)

    def step(self, step_id: str) -> CalcStep:
        for s in self.steps:
            if s.id == step_id:
                return s
        raise KeyError(step_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def dump_trace_json(trace: CalcTrace, path: Path) -> None:
    path.write_text(json.dumps(trace.to_dict(), indent=2, sort_keys=True, default=str), encoding="utf-8")


def _round_sigfigs(x: float, sig: int) -> float:
    if x == 0 or not math.isfinite(x):
        return float(x)
    return float(round_sig(x, sig))


def _format_value_units(value: Any, units: str) -> str:
    if isinstance(value, (int, float)):
        return f"{value:g}\\,\\mathrm{{{units}}}" if units and units != "-" else f"{value:g}"
    return f"{value}\\,\\mathrm{{{units}}}" if units and units != "-" else str(value)


def _substitute(equation_latex: str, variables: List[CalcVar]) -> str:
    # Single pass so substituted text is never matched again.
    lookup = {v.symbol: _format_value_units(v.value, v.units) for v in variables}
    if not lookup:
        return equation_latex
    alternatives = "|".join(re.escape(s) for s in sorted(lookup, key=len, reverse=True))
    pattern = re.compile(rf"(?<![A-Za-z\\])({alternatives})(?![A-Za-z])")
    return pattern.sub(lambda m: lookup[m.group(1)], equation_latex)


def compute_step(
    trace: CalcTrace,
    *,
    id: str,
    section: str,
    title: str,
    output_symbol: str,
    output_description: str,
    equation_latex: str,
    variables: List[Dict[str, Any]],
    compute_fn: Callable[[], float],
    units: str,
    sigfigs: int = 3,
) -> float:
    """Compute one step, append it to the trace and return the unrounded value."""
    var_objs = [
        CalcVar(
            symbol=str(v["symbol"]),
            description=str(v["description"]),
            value=v["value"],
            units=str(v["units"]),
            source=str(v["source"]),
        )
        for v in variables
    ]

    unrounded = float(compute_fn())
    rounding = Rounding(rule="sigfigs", decimals_or_sigfigs=int(sigfigs))

    warnings: List[str] = []
    if not math.isfinite(unrounded):
        warnings.append(f"{output_symbol} is not finite.")

    trace.steps.append(
        CalcStep(
            id=id,
            section=section,
            title=title,
            output_symbol=output_symbol,
            output_description=output_description,
            equation_latex=equation_latex,
            substitution_latex=_substitute(equation_latex, var_objs),
            variables=var_objs,
            result_unrounded=CalcResult(value=unrounded, units=units),
            rounding=rounding,
            result_rounded=CalcResult(value=_round_sigfigs(unrounded, sigfigs), units=units),
            warnings=warnings,
        )
    )
    return unrounded


def _input_var(inputs: FootingInputs, symbol: str) -> Dict[str, Any]:
    return {
        "symbol": symbol,
        "description": TOOLTIPS[symbol],
        "value": getattr(inputs, symbol),
        "units": UNITS[symbol],
        "source": f"input:{symbol}",
    }


FULL_CONTACT_LATEX = r"\frac{P}{B D} + \frac{6 M}{B D^{2}}"
PARTIAL_CONTACT_LATEX = r"\frac{P}{1.5 B (D/2 - e)}"


def build_trace(
    inputs: FootingInputs,
    result: PressureResult,
    *,
    tool_id: str,
    tool_version: str,
    input_hash: Optional[str] = None,
) -> CalcTrace:
    """Record the critical eccentricity and bearing pressure steps for one calculation."""
    trace = CalcTrace.new(
        tool_id=tool_id,
        tool_version=tool_version,
        inputs=inputs.model_dump(),
        input_hash=input_hash or footing_input_hash(inputs),
    )

    trace.assumptions.extend(
        [
            Assumption(id="A1", text="Linear soil pressure distribution under a rigid pad footing."),
            Assumption(id="A2", text="Soil carries no tension; Case C assumes a triangular contact zone."),
            Assumption(id="A3", text="Moment M acts about the footing's minor axis, parallel to D."),
        ]
    )

    ek = compute_step(
        trace,
        id="S1",
        section="Eccentricity",
        title="Critical eccentricity",
        output_symbol="e_k",
        output_description="Critical eccentricity",
        equation_latex=r"\frac{M}{P}",
        variables=[_input_var(inputs, "M"), _input_var(inputs, "P")],
        compute_fn=lambda: result.ek,
        units="m",
    )

    if result.case is LoadCase.CASE_C:
        equation = PARTIAL_CONTACT_LATEX
        symbols = ["P", "B", "D", "e"]
        fn = lambda: pressure_partial_contact(inputs.P, inputs.B, inputs.D, inputs.e)  # noqa: E731
    else:
        equation = FULL_CONTACT_LATEX
        symbols = ["P", "M", "B", "D"]
        fn = lambda: pressure_full_contact(inputs.P, inputs.M, inputs.B, inputs.D)  # noqa: E731

    qmax = compute_step(
        trace,
        id="S2",
        section="Bearing pressure",
        title=f"Maximum bearing pressure ({result.case.value})",
        output_symbol="q_{max}",
        output_description="Maximum soil bearing pressure",
        equation_latex=equation,
        variables=[_input_var(inputs, s) for s in symbols],
        compute_fn=fn,
        units=UNITS["qmax"],
    )
    if qmax <= 0:
        trace.step("S2").warnings.append("e > D/2: resultant lies outside the footing, qmax is not meaningful.")

    trace.summary = {
        "ek_m": ek,
        "qmax_kN_m2": qmax,
        "case": result.case.value,
    }
    return trace
