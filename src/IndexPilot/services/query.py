"""Query dispatch: compile a builder and hand it to the engine client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, Mapping

from IndexPilot.utils.log import log

if TYPE_CHECKING:
    from IndexPilot.client.base import AdminClient
    from IndexPilot.query.builder import QueryBuilder

TERMINAL_OPERATIONS: Final[tuple[str, ...]] = ("search", "count", "delete_by_query", "update_by_query")


def compile_for(
    builder: QueryBuilder,
    operation: str,
    params: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Compile ``builder`` into the document sent for ``operation``.

    Explicit ``params`` are sent instead of the compiled document. Count
    responses carry no documents, so the projection is dropped either way.

    Raises:
        ValueError: If ``operation`` is not a supported terminal operation.
    """
    if operation not in TERMINAL_OPERATIONS:
        raise ValueError(
            f"Unsupported terminal operation: {operation} (expected one of {', '.join(TERMINAL_OPERATIONS)})"
        )
    document = dict(params) if params is not None else builder.compile()
    if operation == "count":
        document.pop("_source", None)
    return document


def execute_query(
    client: AdminClient,
    builder: QueryBuilder,
    operation: str = "search",
    params: Mapping[str, Any] | None = None,
) -> Any:
    """Run one terminal operation for a populated builder.

    Args:
        client: Administration/search client.
        builder: Populated query builder.
        operation: One of ``TERMINAL_OPERATIONS``.
        params: Optional explicit query document overriding the builder.

    Returns:
        Whatever the client returns for that operation.
    """
    document = compile_for(builder, operation, params)
    log.debug("Dispatching %s on index=%s", operation, document.get("index"))
    return getattr(client, operation)(document)
