from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Type

from pydantic import BaseModel

@dataclass(frozen=True)
class ToolMeta:
    id: str
    name: str
    category: str
    version: str
    description: str

class ToolBase(Protocol):
    """
    Tool contract.

    Tools declare an `InputModel` (Pydantic) for typed inputs so the host can
    validate before launching. `run()` may open a window and return at once;
    `run_batch()` is the headless calculation path.
    """
    meta: ToolMeta
    InputModel: Optional[Type[BaseModel]]

    def default_inputs(self) -> Dict[str, Any]:
        ...

    def run(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        ...
