"""Query builder bound to an index descriptor and its client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from IndexPilot.query.builder import QueryBuilder
from IndexPilot.services.query import execute_query

if TYPE_CHECKING:
    from IndexPilot.client.base import AdminClient
    from IndexPilot.index.descriptor import IndexDescriptor


class IndexQuery(QueryBuilder):
    """All query-builder directives plus a fixed set of terminal operations.

    Each query terminal accepts an optional explicit query document that is
    sent instead of the compiled builder.

    Example:
        >>> IndexQuery(orders, client).where("status", "paid").order_by("id", "desc").limit(10).search()
    """

    def __init__(self, descriptor: IndexDescriptor, client: AdminClient) -> None:
        super().__init__(descriptor.name)
        self.descriptor = descriptor
        self._client = client

    def search(self, params: Mapping[str, Any] | None = None) -> Any:
        return execute_query(self._client, self, "search", params)

    def count(self, params: Mapping[str, Any] | None = None) -> Any:
        """Return the engine's count response; ``_source`` is never sent."""
        return execute_query(self._client, self, "count", params)

    def delete_by_query(self, params: Mapping[str, Any] | None = None) -> Any:
        return execute_query(self._client, self, "delete_by_query", params)

    def update_by_query(self, params: Mapping[str, Any] | None = None) -> Any:
        """Apply the builder's ``script()`` payload to every matching document."""
        return execute_query(self._client, self, "update_by_query", params)

    def get(self, doc_id: str) -> Any:
        """Fetch one document by id through the logical index name."""
        return self._client.get(self.index_name or self.descriptor.name, doc_id)


def query(descriptor: IndexDescriptor, client: AdminClient) -> IndexQuery:
    """Start a new query against ``descriptor``'s logical index."""
    return IndexQuery(descriptor, client)
