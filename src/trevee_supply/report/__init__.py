from __future__ import annotations

from .breakdown import build_breakdown, format_age
from .formatter import format_supply_table

__all__ = ["build_breakdown", "format_age", "format_supply_table"]
