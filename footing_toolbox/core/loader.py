from __future__ import annotations

import importlib
import pkgutil
from typing import Dict, List, Optional

from loguru import logger

from .tool_base import ToolBase, ToolMeta

TOOLS_PKG = "footing_toolbox.tools"


def _load_tool(mod_name: str) -> Optional[ToolBase]:
    try:
        mod = importlib.import_module(mod_name)
        # TOOL may be a lazy module attribute, so reading it can import the tool itself
        tool = getattr(mod, "TOOL", None)
    except Exception:
        logger.exception(f"Failed loading tool {mod_name}")
        return None
    if tool is None:
        logger.warning(f"Module {mod_name} has no TOOL export; skipping.")
        return None
    if not isinstance(getattr(tool, "meta", None), ToolMeta):
        logger.warning(f"{mod_name}.TOOL has no ToolMeta; skipping.")
        return None
    return tool


def discover_tools(package: str = TOOLS_PKG) -> List[ToolBase]:
    """
    Tool plugins are the sub-packages of `package` whose __init__ exposes TOOL.
    Plain modules are ignored; broken packages are logged and skipped; the first
    package to claim a tool id wins. Sorted by category, then name.
    """
    pkg = importlib.import_module(package)
    found: Dict[str, ToolBase] = {}
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{package}."):
        if not m.ispkg:
            continue
        tool = _load_tool(m.name)
        if tool is None:
            continue
        if tool.meta.id in found:
            logger.warning(f"Duplicate tool id {tool.meta.id!r} in {m.name}; keeping the first.")
            continue
        found[tool.meta.id] = tool
    return sorted(found.values(), key=lambda t: (t.meta.category.lower(), t.meta.name.lower()))
