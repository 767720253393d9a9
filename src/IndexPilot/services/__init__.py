"""Service layer for IndexPilot.

Entry points consumed by operator tooling: query dispatch for populated
builders.
"""

from __future__ import annotations

from IndexPilot.services.query import TERMINAL_OPERATIONS, compile_for, execute_query

__all__ = [
    "TERMINAL_OPERATIONS",
    "compile_for",
    "execute_query",
]
