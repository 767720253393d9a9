"""Index descriptors and index-bound queries."""

from __future__ import annotations

from IndexPilot.index.bound import IndexQuery, query
from IndexPilot.index.descriptor import Backfill, IndexDescriptor, load_descriptor, physical_name

__all__ = [
    "Backfill",
    "IndexDescriptor",
    "IndexQuery",
    "load_descriptor",
    "physical_name",
    "query",
]
