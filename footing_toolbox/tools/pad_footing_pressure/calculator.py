"""
Maximum bearing pressure under an eccentrically loaded pad footing.

Three-branch rule, with ek = M/P:
  - e < ek  (Case A): full contact,   qmax = P/(B*D) + 6M/(B*D^2)
  - e == ek (Case B): zero edge pressure, same formula as Case A
  - e > ek  (Case C): partial contact, qmax = P / (1.5*B*(D/2 - e))

Everything here is a pure function of its arguments.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Tuple

from pydantic import ValidationError

from footing_toolbox.core.schema_utils import describe_errors, invalid_fields

from .models import INPUT_FIELDS, FootingInputs, LoadCase

DEFAULT_ERROR_MESSAGE = "Please enter valid positive numbers for all fields"

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "InputValidationError",
    "LoadCase",
    "PressureResult",
    "compute",
    "compute_from_raw",
    "critical_eccentricity",
    "parse_inputs",
    "pressure_full_contact",
    "pressure_partial_contact",
]


class InputValidationError(ValueError):
    """One or more of P, M, B, D, e is missing, non-numeric, non-finite or not > 0."""

    def __init__(self, fields: Iterable[str] = (), message: str = DEFAULT_ERROR_MESSAGE, detail: str = ""):
        super().__init__(message)
        self.fields: Tuple[str, ...] = tuple(fields)
        self.message = message
        self.detail = detail


@dataclass(frozen=True)
class PressureResult:
    qmax: float
    case: LoadCase
    ek: float


def critical_eccentricity(P: float, M: float, D: float) -> float:
    # D/6 fallback only matters for P == 0, which validation already rejects.
    if P != 0:
        return M / P
    return D / 6.0


def pressure_full_contact(P: float, M: float, B: float, D: float) -> float:
    return P / (B * D) + 6.0 * M / (B * D * D)


def pressure_partial_contact(P: float, B: float, D: float, e: float) -> float:
    denom = 1.5 * B * (D / 2.0 - e)
    if denom == 0.0:
        return math.copysign(math.inf, P)
    return P / denom


def _check_positive(values: Mapping[str, Any]) -> None:
    bad = []
    for name in INPUT_FIELDS:
        v = values.get(name)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            bad.append(name)
        elif not math.isfinite(v) or v <= 0:
            bad.append(name)
    if bad:
        raise InputValidationError(bad, detail=f"Invalid values for: {', '.join(bad)}")


def compute(
    P: float,
    M: float,
    B: float,
    D: float,
    e: float,
    *,
    boundary_rel_tol: float = 0.0,
) -> PressureResult:
    """Select the pressure distribution branch and return qmax.

    Case B uses exact float equality unless `boundary_rel_tol` > 0, in which
    case e within that relative tolerance of ek is reported as the boundary.
    Raises InputValidationError if any input is not a finite positive number.
    """
    _check_positive({"P": P, "M": M, "B": B, "D": D, "e": e})
    P, M, B, D, e = (float(v) for v in (P, M, B, D, e))

    ek = critical_eccentricity(P, M, D)

    if boundary_rel_tol > 0.0:
        on_boundary = math.isclose(e, ek, rel_tol=boundary_rel_tol)
    else:
        on_boundary = e == ek

    if on_boundary:
        return PressureResult(qmax=pressure_full_contact(P, M, B, D), case=LoadCase.CASE_B, ek=ek)
    if e < ek:
        return PressureResult(qmax=pressure_full_contact(P, M, B, D), case=LoadCase.CASE_A, ek=ek)
    return PressureResult(qmax=pressure_partial_contact(P, B, D, e), case=LoadCase.CASE_C, ek=ek)


def parse_inputs(raw: Mapping[str, Any]) -> FootingInputs:
    """Parse raw form values (text or numbers) into validated FootingInputs."""
    try:
        return FootingInputs.model_validate({k: raw.get(k) for k in INPUT_FIELDS})
    except ValidationError as e:
        raise InputValidationError(invalid_fields(e), detail=describe_errors(e)) from e


def compute_from_raw(raw: Mapping[str, Any], *, boundary_rel_tol: float = 0.0) -> PressureResult:
    inputs = parse_inputs(raw)
    return compute(*inputs.as_tuple(), boundary_rel_tol=boundary_rel_tol)
