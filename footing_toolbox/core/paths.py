"""Per-user writable locations. Nothing is ever written beside the installed code."""
from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "FootingToolbox"

# Optional override of the data root, e.g. a shared drive or a CI scratch dir.
HOME_ENV = "FOOTING_TOOLBOX_HOME"


def _ensure(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def user_data_dir() -> Path:
    """$FOOTING_TOOLBOX_HOME if set, else %LOCALAPPDATA% / %APPDATA% / home plus FootingToolbox."""
    override = os.environ.get(HOME_ENV)
    if override:
        return _ensure(Path(override).expanduser())
    base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or str(Path.home())
    return _ensure(Path(base) / APP_NAME)


def logs_dir() -> Path:
    return _ensure(user_data_dir() / "logs")


def tool_dir(tool_id: str, *parts: str) -> Path:
    """<user data>/<tool_id>/<parts...>, created on first use."""
    return _ensure(user_data_dir().joinpath(tool_id, *parts))
