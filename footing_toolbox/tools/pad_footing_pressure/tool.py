from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from footing_toolbox.core.tool_base import ToolMeta

from .calc_trace import build_trace
from .calculator import InputValidationError, compute, parse_inputs
from .exports import export_all
from .formatting import format_with_unit
from .logging_utils import get_run_logger, remove_run_logger_sink
from .models import EXAMPLE_VALUES, UNITS, CalculationResult, FootingInputs
from .paths import TOOL_ID, create_run_dir, exports_dir, footing_input_hash
from .result_log import ResultLog


class PadFootingPressureTool:
    """Pad footing bearing pressure tool.

    - UI mode (default): run() schedules the interactive window and returns immediately.
    - Batch mode: run_batch() performs one calculation and writes the calc package.
    """

    meta = ToolMeta(
        id=TOOL_ID,
        name="Pad Footing Bearing Pressure",
        category="Foundations",
        version="1.0.0",
        description="Maximum soil bearing pressure under an eccentrically loaded pad footing, with result log and CSV export.",
    )

    InputModel = FootingInputs

    # run() opens a Qt window, so the host must call it on the UI thread.
    RUNS_ON_UI_THREAD = True

    def __init__(self) -> None:
        self._windows: List[Any] = []

    def default_inputs(self) -> Dict[str, Any]:
        return dict(EXAMPLE_VALUES)

    # ------------------------------
    # Batch calculation API (headless)
    # ------------------------------
    def run_batch(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Validate, compute, log the result and export the calc package."""
        try:
            model = parse_inputs(inputs)
            result = compute(*model.as_tuple())
        except InputValidationError as e:
            return {"ok": False, "error": e.message, "fields": list(e.fields)}

        inputs_norm = model.model_dump()
        input_hash = footing_input_hash(model)
        run_dir = create_run_dir(input_hash)
        log, sink_id = get_run_logger(run_dir, self.meta.id, input_hash)

        try:
            log.info("Starting pad footing batch run")
            log.info(f"Inputs (validated): {inputs_norm}")
            log.info(f"ek = {result.ek!r} m, {result.case.value}, qmax = {result.qmax!r} kN/m²")

            results_log = ResultLog()
            saved = CalculationResult.create(model, result)
            results_log.append(saved)

            trace = build_trace(
                model,
                result,
                tool_id=self.meta.id,
                tool_version=self.meta.version,
                input_hash=input_hash,
            )
            for step in trace.steps:
                for warning in step.warnings:
                    log.warning(f"{step.id}: {warning}")

            results: Dict[str, Any] = {
                "inputs": inputs_norm,
                "ek": result.ek,
                "qmax": result.qmax,
                "qmax_display": format_with_unit(result.qmax, UNITS["qmax"]),
                "case": result.case.value,
                "timestamp": saved.timestamp,
            }
            outputs = export_all(trace, results_log, run_dir, results)
            log.info(f"Wrote {len(outputs)} artifact(s) to {run_dir}")
        except Exception:
            log.exception("Pad footing batch run failed")
            raise
        finally:
            remove_run_logger_sink(sink_id)

        return {
            "ok": True,
            "run_dir": str(run_dir),
            "qmax": result.qmax,
            "qmax_display": results["qmax_display"],
            "case": result.case.value,
            "ek": result.ek,
            "outputs": {k: str(v) for k, v in outputs.items()},
        }

    # ------------------------------
    # Interactive UI
    # ------------------------------
    def _launch_window(self, raw: Dict[str, str], export_dir: str) -> None:
        from .ui_app import FootingPressureWindow

        win = FootingPressureWindow(initial_inputs=raw, export_dir=Path(export_dir))
        win.show()
        self._windows.append(win)

    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        from PySide6 import QtCore, QtWidgets

        app = QtWidgets.QApplication.instance()
        if app is None:
            raise RuntimeError("QApplication instance not found. The host must create QApplication before launching tools.")

        raw = {k: "" if v is None else str(v) for k, v in (inputs or {}).items()}
        export_dir = exports_dir()

        # Schedule on the QApplication (UI) thread and return immediately.
        QtCore.QTimer.singleShot(0, lambda: self._launch_window(raw, str(export_dir)))
        return {"status": "ui_launch_scheduled", "export_dir": str(export_dir)}


TOOL = PadFootingPressureTool()
