from __future__ import annotations
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError


def invalid_fields(error: ValidationError) -> Tuple[str, ...]:
    """Top-level field names named in a pydantic ValidationError, in error order."""
    names = []
    for err in error.errors():
        loc = err.get("loc") or ()
        if loc and str(loc[0]) not in names:
            names.append(str(loc[0]))
    return tuple(names)


def describe_errors(error: ValidationError) -> str:
    """One `field: message` line per error, for dialogs and logs."""
    lines = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc") or ()) or "input"
        lines.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "\n".join(lines)


def validate_inputs(model: Optional[Type[BaseModel]], raw: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Returns (validated_dict, error_message). If model is None, returns raw as-is.
    """
    if model is None:
        return raw, None
    try:
        obj = model.model_validate(raw)
        return obj.model_dump(), None
    except ValidationError as e:
        return {}, describe_errors(e)
