from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from .calc_trace import CalcTrace, dump_trace_json
from .formatting import format_number
from .result_log import CSV_HEADER, ResultLog

XLSX_FILENAME = "results.xlsx"


def _autosize(ws):
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            val = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(val))
        ws.column_dimensions[col_letter].width = min(80, max(10, max_len + 2))


def export_csv(log: ResultLog, out_dir: Path) -> Optional[Path]:
    """footing_pressure_results.csv; nothing is written for an empty log."""
    return log.write_csv(out_dir)


def export_excel(
    log: ResultLog,
    out_dir: Path,
    trace: Optional[CalcTrace] = None,
    filename: str = XLSX_FILENAME,
) -> Path:
    wb = Workbook()

    # Saved results, formatted exactly as in the CSV
    ws = wb.active
    ws.title = "Results"
    ws.append(list(CSV_HEADER))
    for row in log.rows():
        ws.append(row)
    _autosize(ws)

    if trace is not None:
        ws_in = wb.create_sheet("Inputs")
        ws_in.append(["id", "label", "value", "units", "source"])
        for i in trace.inputs:
            ws_in.append([i.id, i.label, i.value, i.units, i.source])
        _autosize(ws_in)

        ws_c = wb.create_sheet("Calcs")
        ws_c.append(["id", "section", "title", "equation", "substitution", "result", "result_rounded", "units", "warnings"])
        for s in trace.steps:
            ws_c.append([
                s.id,
                s.section,
                s.title,
                s.equation_latex,
                s.substitution_latex,
                s.result_unrounded.value,
                s.result_rounded.value,
                s.result_rounded.units,
                "; ".join(s.warnings),
            ])
        _autosize(ws_c)

    out_dir.mkdir(parents=True, exist_ok=True)
    p = out_dir / filename
    wb.save(p)
    return p


def export_json(trace: CalcTrace, out_dir: Path, results: Dict[str, Any]) -> Dict[str, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    p1 = out_dir / "calc_trace.json"
    dump_trace_json(trace, p1)

    p2 = out_dir / "results.json"
    p2.write_text(json.dumps(results, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    return {"calc_trace": p1, "results": p2}


def export_pdf(trace: CalcTrace, out_dir: Path) -> Path:
    """
    One-page summary: inputs, steps and governing case. Full detail is in calc_trace.json.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    p = out_dir / "report.pdf"
    c = canvas.Canvas(str(p), pagesize=A4)
    w, h = A4
    y = h - 72

    def line(text: str, font: str = "Helvetica", size: int = 10, gap: int = 14) -> None:
        nonlocal y
        if y < 72:
            c.showPage()
            y = h - 72
        c.setFont(font, size)
        c.drawString(72, y, text)
        y -= gap

    line("Pad Footing Bearing Pressure - Calculation Summary", "Helvetica-Bold", 14, 24)
    line(f"Tool: {trace.meta.tool_id} v{trace.meta.tool_version}")
    line(f"Input hash: {trace.meta.input_hash}")
    line(f"Generated: {trace.meta.timestamp}", gap=22)

    line("Inputs:", "Helvetica-Bold")
    for i in trace.inputs:
        line(f"  {i.id} = {format_number(i.value)} {i.units}  ({i.label})", size=9, gap=12)
    y -= 8

    line("Steps:", "Helvetica-Bold")
    for s in trace.steps:
        line(f"  {s.id} {s.title}", size=9, gap=12)
        line(f"      {s.output_symbol} = {format_number(s.result_unrounded.value)} {s.result_unrounded.units}", size=9, gap=12)
        for warning in s.warnings:
            line(f"      WARNING: {warning}", size=9, gap=12)
    y -= 8

    line("Summary:", "Helvetica-Bold")
    for k, v in trace.summary.items():
        shown = format_number(v) if isinstance(v, float) else str(v)
        line(f"  {k}: {shown}", size=9, gap=12)

    c.showPage()
    c.save()
    return p


def export_all(trace: CalcTrace, log: ResultLog, out_dir: Path, results: Dict[str, Any]) -> Dict[str, Path]:
    outputs: Dict[str, Path] = {}
    csv_path = export_csv(log, out_dir)
    if csv_path is not None:
        outputs["csv"] = csv_path
    outputs["excel"] = export_excel(log, out_dir, trace)
    outputs.update(export_json(trace, out_dir, results))
    outputs["pdf"] = export_pdf(trace, out_dir)
    return outputs
