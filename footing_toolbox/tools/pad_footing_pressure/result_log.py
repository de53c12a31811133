from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .formatting import format_number
from .models import CalculationResult

CSV_HEADER = ("Timestamp", "P (kN)", "M (kN·m)", "B (m)", "D (m)", "e (m)", "qmax (kN/m²)", "Case")
CSV_FILENAME = "footing_pressure_results.csv"
CSV_MIME = "text/csv"


@dataclass(frozen=True)
class CsvExport:
    filename: str
    mime: str
    content: str

    def write(self, directory: Path, filename: Optional[str] = None) -> Path:
        """Write to <directory>/<filename>, defaulting to the suggested filename."""
        directory.mkdir(parents=True, exist_ok=True)
        p = directory / (filename or self.filename)
        with p.open("w", newline="", encoding="utf-8") as f:
            f.write(self.content)
        return p


def format_row(result: CalculationResult) -> List[str]:
    i = result.inputs
    return [
        result.timestamp,
        format_number(i.P),
        format_number(i.M),
        format_number(i.B),
        format_number(i.D),
        format_number(i.e),
        format_number(result.qmax),
        result.case.value,
    ]


class ResultLog:
    """Append-only, insertion-ordered list of saved calculations for one session."""

    def __init__(self) -> None:
        self._results: List[CalculationResult] = []

    def append(self, result: CalculationResult) -> None:
        self._results.append(result)

    def clear(self) -> None:
        self._results.clear()

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[CalculationResult]:
        return iter(list(self._results))

    def __bool__(self) -> bool:
        return bool(self._results)

    @property
    def results(self) -> Tuple[CalculationResult, ...]:
        return tuple(self._results)

    def rows(self) -> List[List[str]]:
        return [format_row(r) for r in self._results]

    def serialize(self) -> str:
        """Header plus one formatted row per result; empty log -> ""."""
        if not self._results:
            return ""
        buf = io.StringIO()
        w = csv.writer(buf, lineterminator="\n")
        w.writerow(CSV_HEADER)
        w.writerows(self.rows())
        return buf.getvalue()

    def to_csv_export(self) -> Optional[CsvExport]:
        if not self._results:
            return None
        return CsvExport(filename=CSV_FILENAME, mime=CSV_MIME, content=self.serialize())

    def write_csv(self, directory: Path) -> Optional[Path]:
        export = self.to_csv_export()
        if export is None:
            return None
        return export.write(directory)
