"""Tool plugins. Each subpackage exposes `TOOL` at module level."""
