"""Administration/search client capability consumed by IndexPilot."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence


class AdminClient(Protocol):
    """Index administration and search operations against one engine.

    All calls block for one round trip and are never retried here; timeouts
    belong to the implementation's transport configuration.
    """

    def exists(self, index: str) -> bool:
        """Return whether an index or alias with this name exists."""
        raise NotImplementedError

    def create(
        self,
        index: str,
        settings: Mapping[str, Any],
        mappings: Mapping[str, Any],
        aliases: Mapping[str, Any] | None = None,
    ) -> Any:
        """Create a physical index, optionally attaching aliases atomically."""
        raise NotImplementedError

    def get_alias(self, name: str) -> Mapping[str, Any]:
        """Return ``{physical_index: meta}`` for the indices behind ``name``."""
        raise NotImplementedError

    def put_alias(self, index: str, name: str) -> Any:
        raise NotImplementedError

    def update_aliases(self, actions: Sequence[Mapping[str, Any]]) -> Any:
        """Apply add/remove alias actions in one atomic request."""
        raise NotImplementedError

    def delete(self, index: str) -> Any:
        raise NotImplementedError

    def close(self, index: str) -> Any:
        raise NotImplementedError

    def open(self, index: str) -> Any:
        raise NotImplementedError

    def put_settings(self, index: str, settings: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def put_mapping(self, index: str, doc_type: str | None, mapping: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def search(self, params: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def count(self, params: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def delete_by_query(self, params: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def update_by_query(self, params: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    # Documents

    def index(self, index: str, document: Mapping[str, Any], id: str | None = None) -> Any:  # noqa: A002 - engine field name
        """Write one document; the engine assigns an id when ``id`` is None."""
        raise NotImplementedError

    def bulk(self, operations: Iterable[Mapping[str, Any]]) -> int:
        """Apply bulk actions (``{"_index", "_id", "_source", "_op_type"}``); return the success count."""
        raise NotImplementedError

    def get(self, index: str, id: str) -> Any:  # noqa: A002 - engine field name
        raise NotImplementedError
