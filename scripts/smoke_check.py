from __future__ import annotations

import importlib
from pathlib import Path


def _check_path(label: str, path: Path) -> bool:
    ok = path.exists()
    status = "OK" if ok else "MISSING"
    print(f"[{status}] {label}: {path}")
    return ok


def _check_import(label: str, module_name: str, attr: str | None = None) -> bool:
    try:
        mod = importlib.import_module(module_name)
        if attr:
            getattr(mod, attr)
        print(f"[OK] import {label}")
        return True
    except Exception as e:
        print(f"[WARN] import {label} failed: {e}")
        return False


def main() -> int:
    root = Path(__file__).resolve().parents[1]
    ok = True

    ok &= _check_path(
        "Pad footing tool package",
        root / "footing_toolbox" / "tools" / "pad_footing_pressure" / "tool.py",
    )

    _check_import("PySide6", "PySide6.QtWidgets", "QApplication")
    _check_import("openpyxl", "openpyxl")
    _check_import("reportlab", "reportlab.pdfgen.canvas")
    ok &= _check_import("pad footing TOOL", "footing_toolbox.tools.pad_footing_pressure", "TOOL")

    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
