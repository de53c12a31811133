from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .calculator import PressureResult

INPUT_FIELDS = ("P", "M", "B", "D", "e")

UNITS: Dict[str, str] = {
    "P": "kN",
    "M": "kN·m",
    "B": "m",
    "D": "m",
    "e": "m",
    "qmax": "kN/m²",
}

TOOLTIPS: Dict[str, str] = {
    "P": "Applied axial load transmitted from the structure to the footing",
    "M": "Applied moment causing eccentricity in the footing",
    "B": "Total minor width of the footing",
    "D": "Total major width of pad footing",
    "e": "Eccentricity of the applied axial load",
}

EXAMPLE_VALUES: Dict[str, str] = {
    "P": "3",
    "M": "10",
    "B": "1.2",
    "D": "1.5",
    "e": "0.1",
}

TIMESTAMP_FORMAT = "%x %X"


class LoadCase(str, Enum):
    """Pressure distribution branch selected by comparing e against ek."""

    CASE_A = "Case A: e < ek"
    CASE_B = "Case B: e = ek"
    CASE_C = "Case C: e > ek"


def _field(symbol: str) -> Any:
    return Field(
        ...,
        gt=0.0,
        allow_inf_nan=False,
        description=f"{TOOLTIPS[symbol]} ({UNITS[symbol]}).",
        json_schema_extra={"units": UNITS[symbol], "example": EXAMPLE_VALUES[symbol]},
    )


class FootingInputs(BaseModel):
    """
    Loads and geometry of an isolated pad footing.

    All five values must be finite and strictly positive. Raw form text is
    accepted (surrounding whitespace is ignored); empty strings and booleans
    are rejected.
    """

    model_config = ConfigDict(frozen=True)

    P: float = _field("P")
    M: float = _field("M")
    B: float = _field("B")
    D: float = _field("D")
    e: float = _field("e")

    @field_validator("P", "M", "B", "D", "e", mode="before")
    @classmethod
    def _clean_raw(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("value is required")
        return v

    @classmethod
    def example(cls) -> "FootingInputs":
        return cls.model_validate(EXAMPLE_VALUES)

    def as_tuple(self) -> tuple:
        return (self.P, self.M, self.B, self.D, self.e)


class CalculationResult(BaseModel):
    """One saved calculation: inputs snapshot, raw qmax and the branch taken."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    inputs: FootingInputs
    qmax: float
    case: LoadCase

    @classmethod
    def create(
        cls,
        inputs: FootingInputs,
        result: "PressureResult",
        now: Optional[datetime] = None,
    ) -> "CalculationResult":
        stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
        return cls(timestamp=stamp, inputs=inputs, qmax=float(result.qmax), case=LoadCase(result.case))
