from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

from loguru import logger

from .calculator import InputValidationError, PressureResult, compute, parse_inputs
from .formatting import format_with_unit
from .models import EXAMPLE_VALUES, INPUT_FIELDS, UNITS, CalculationResult, FootingInputs, LoadCase
from .result_log import CsvExport, ResultLog


class FootingSession:
    """
    Caller-owned state of one interactive session.

    Holds the five raw input strings, the latest live result (or error) and
    the result log. The calculator stays stateless; callers re-run
    `recalculate()` through `set_input()` whenever a field changes.
    """

    def __init__(
        self,
        raw: Optional[Mapping[str, str]] = None,
        log: Optional[ResultLog] = None,
        boundary_rel_tol: float = 0.0,
    ) -> None:
        self._raw: Dict[str, str] = dict(EXAMPLE_VALUES)
        if raw:
            for k, v in raw.items():
                if k in INPUT_FIELDS:
                    self._raw[k] = "" if v is None else str(v)
        self.log = log if log is not None else ResultLog()
        self.boundary_rel_tol = boundary_rel_tol
        self._inputs: Optional[FootingInputs] = None
        self._result: Optional[PressureResult] = None
        self._error: str = ""
        self.recalculate()

    # ----- inputs -----

    @property
    def raw(self) -> Dict[str, str]:
        return dict(self._raw)

    def set_input(self, name: str, text: str) -> Optional[PressureResult]:
        if name not in INPUT_FIELDS:
            raise KeyError(f"Unknown input field: {name!r}")
        self._raw[name] = "" if text is None else str(text)
        return self.recalculate()

    def update_inputs(self, values: Mapping[str, str]) -> Optional[PressureResult]:
        for name in values:
            if name not in INPUT_FIELDS:
                raise KeyError(f"Unknown input field: {name!r}")
        for name, text in values.items():
            self._raw[name] = "" if text is None else str(text)
        return self.recalculate()

    def reset_to_examples(self) -> Optional[PressureResult]:
        return self.update_inputs(EXAMPLE_VALUES)

    # ----- live result -----

    def recalculate(self) -> Optional[PressureResult]:
        try:
            inputs = parse_inputs(self._raw)
            result = compute(*inputs.as_tuple(), boundary_rel_tol=self.boundary_rel_tol)
        except InputValidationError as e:
            logger.debug(f"Footing inputs rejected ({', '.join(e.fields)}): {e.detail}")
            self._inputs = None
            self._result = None
            self._error = e.message
            return None
        self._inputs = inputs
        self._result = result
        self._error = ""
        return result

    @property
    def result(self) -> Optional[PressureResult]:
        return self._result

    @property
    def inputs(self) -> Optional[FootingInputs]:
        return self._inputs

    @property
    def qmax(self) -> Optional[float]:
        return None if self._result is None else self._result.qmax

    @property
    def case(self) -> Optional[LoadCase]:
        return None if self._result is None else self._result.case

    @property
    def error(self) -> str:
        return self._error

    @property
    def display_qmax(self) -> str:
        if self._result is None:
            return ""
        return format_with_unit(self._result.qmax, UNITS["qmax"])

    @property
    def can_save(self) -> bool:
        return self._result is not None

    @property
    def can_export(self) -> bool:
        return len(self.log) > 0

    # ----- log -----

    def save_result(self, now: Optional[datetime] = None) -> Optional[CalculationResult]:
        if self._result is None or self._inputs is None:
            return None
        saved = CalculationResult.create(self._inputs, self._result, now=now)
        self.log.append(saved)
        logger.info(f"Saved result #{len(self.log)}: qmax={saved.qmax!r} ({saved.case.value})")
        return saved

    def clear_log(self) -> None:
        self.log.clear()

    def export_csv(self) -> Optional[CsvExport]:
        return self.log.to_csv_export()

    def write_csv(self, directory: Path) -> Optional[Path]:
        p = self.log.write_csv(directory)
        if p is not None:
            logger.info(f"Exported {len(self.log)} result(s) to {p}")
        return p
