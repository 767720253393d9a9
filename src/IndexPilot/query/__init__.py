"""Fluent query building."""

from __future__ import annotations

from IndexPilot.query.builder import QueryBuilder, QueryState

__all__ = ["QueryBuilder", "QueryState"]
