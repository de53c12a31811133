from __future__ import annotations

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional

from footing_toolbox.core.paths import tool_dir

from .models import INPUT_FIELDS, FootingInputs

TOOL_ID = "pad_footing_pressure"
RUN_STAMP_FORMAT = "%Y%m%d_%H%M%S"


def runs_dir() -> Path:
    return tool_dir(TOOL_ID, "runs")


def exports_dir() -> Path:
    return tool_dir(TOOL_ID, "exports")


def footing_input_hash(inputs: FootingInputs) -> str:
    """Twelve hex digits identifying one set of P, M, B, D, e.

    float.hex() keeps the exact binary value, so 1.2 and 1.2000000000000002
    hash differently while "3" and " 3.0 " (both 3.0) hash the same.
    """
    payload = ";".join(f"{k}={float(getattr(inputs, k)).hex()}" for k in INPUT_FIELDS)
    return hashlib.sha256(payload.encode("ascii")).hexdigest()[:12]


def create_run_dir(input_hash: str, now: Optional[datetime] = None) -> Path:
    """Create <runs>/<YYYYMMDD_HHMMSS>_<hash8>/ for one batch run.

    Repeating the same inputs within one second gets a -2, -3, ... suffix
    instead of reusing an existing calc package.
    """
    root = runs_dir()
    stem = f"{(now or datetime.now()).strftime(RUN_STAMP_FORMAT)}_{input_hash[:8]}"
    run_dir = root / stem
    n = 1
    while True:
        try:
            run_dir.mkdir()
            return run_dir
        except FileExistsError:
            n += 1
            run_dir = root / f"{stem}-{n}"
