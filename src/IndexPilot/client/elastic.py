"""Elasticsearch administration client.

Thin adapter from compiled query documents and index-administration calls
onto ``elasticsearch.Elasticsearch``. The transport is built with retries
disabled: retrying destructive operations (delete, close) is unsafe without
idempotency guarantees, so every failure surfaces immediately as
``AdministrationOperationError``.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Sequence

from elasticsearch import ApiError, Elasticsearch, TransportError
from elasticsearch.helpers import BulkIndexError, bulk

from IndexPilot.core.errors import AdministrationOperationError
from IndexPilot.utils.log import log

DEFAULT_TIMEOUT = 30.0

# compiled document key -> search keyword
_PAGING_ARGS = (("from", "from_"), ("size", "size"), ("_source", "source"))

_JSON_HEADERS = {"accept": "application/json", "content-type": "application/json"}


class ElasticsearchClient:
    """Administration/search client for one connection pool.

    Hosts and connection pooling are handled by the underlying transport;
    ``max_connections`` caps the connections kept per node.
    """

    def __init__(
        self,
        hosts: Sequence[str],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        auth: tuple[str, str] | None = None,
        verify_certs: bool = True,
        max_connections: int | None = None,
        es: Elasticsearch | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            hosts: Node URLs such as ``http://127.0.0.1:9200``.
            timeout: Per-request timeout in seconds.
            auth: Optional basic-auth credentials.
            verify_certs: Whether to verify TLS certificates.
            max_connections: Optional connection pool size per node.
            es: Optional preconfigured client (mainly for tests).
        """
        if not hosts:
            raise ValueError("At least one host is required")
        self._hosts = tuple(hosts)
        if es is None:
            options: dict[str, Any] = {
                "hosts": list(self._hosts),
                "request_timeout": timeout,
                "verify_certs": verify_certs,
                "max_retries": 0,
                "retry_on_timeout": False,
            }
            if auth is not None:
                options["basic_auth"] = auth
            if max_connections:
                options["connections_per_node"] = max_connections
            es = Elasticsearch(**options)
        self._es = es

    @property
    def hosts(self) -> tuple[str, ...]:
        return self._hosts

    def shutdown(self) -> None:
        """Close the transport and release pooled connections."""
        self._es.close()

    def __enter__(self) -> ElasticsearchClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Index administration
    # ------------------------------------------------------------------

    def exists(self, index: str) -> bool:
        return bool(self._call("exists", self._es.indices.exists, index=index))

    def create(
        self,
        index: str,
        settings: Mapping[str, Any],
        mappings: Mapping[str, Any],
        aliases: Mapping[str, Any] | None = None,
    ) -> Any:
        options: dict[str, Any] = {"settings": dict(settings), "mappings": dict(mappings)}
        if aliases:
            options["aliases"] = {name: dict(meta or {}) for name, meta in aliases.items()}
        return self._call("create", self._es.indices.create, index=index, **options)

    def get_alias(self, name: str) -> dict[str, Any]:
        """Return ``{physical_index: meta}``; ``name`` may be an alias or an index."""
        return dict(self._call("get_alias", self._es.indices.get_alias, index=name))

    def put_alias(self, index: str, name: str) -> Any:
        return self._call("put_alias", self._es.indices.put_alias, index=index, name=name)

    def update_aliases(self, actions: Sequence[Mapping[str, Any]]) -> Any:
        return self._call("update_aliases", self._es.indices.update_aliases, actions=[dict(a) for a in actions])

    def delete(self, index: str) -> Any:
        return self._call("delete", self._es.indices.delete, index=index)

    def close(self, index: str) -> Any:
        return self._call("close", self._es.indices.close, index=index)

    def open(self, index: str) -> Any:
        return self._call("open", self._es.indices.open, index=index)

    def put_settings(self, index: str, settings: Mapping[str, Any]) -> Any:
        return self._call("put_settings", self._es.indices.put_settings, index=index, settings=dict(settings))

    def put_mapping(self, index: str, doc_type: str | None, mapping: Mapping[str, Any]) -> Any:
        """Put a mapping; a ``doc_type`` targets the legacy typed endpoint."""
        if not doc_type:
            return self._call("put_mapping", self._es.indices.put_mapping, index=index, **dict(mapping))
        return self._call(
            "put_mapping",
            self._es.perform_request,
            method="PUT",
            path=f"/{index}/_mapping/{doc_type}",
            headers=_JSON_HEADERS,
            body=dict(mapping),
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def index(self, index: str, document: Mapping[str, Any], id: str | None = None) -> Any:  # noqa: A002 - engine field name
        return self._call("index", self._es.index, index=index, document=dict(document), id=id)

    def bulk(self, operations: Iterable[Mapping[str, Any]]) -> int:
        """Run helper-style bulk actions and return how many succeeded.

        Raises:
            AdministrationOperationError: If any action failed.
        """
        actions = [dict(op) for op in operations]
        if not actions:
            return 0
        log.debug("engine call: bulk actions=%d", len(actions))
        try:
            succeeded, _ = bulk(self._es, actions, max_retries=0)
        except BulkIndexError as e:
            raise AdministrationOperationError(f"bulk failed: {len(e.errors)} action(s) rejected") from e
        except (ApiError, TransportError) as e:
            raise _wrap("bulk", e) from e
        return int(succeeded)

    def get(self, index: str, id: str) -> Any:  # noqa: A002 - engine field name
        return self._call("get", self._es.get, index=index, id=id)

    # ------------------------------------------------------------------
    # Search operations (take compiled query documents)
    # ------------------------------------------------------------------

    def search(self, params: Mapping[str, Any]) -> Any:
        kwargs = _query_kwargs(params)
        kwargs.pop("script", None)
        return self._call("search", self._es.search, **kwargs)

    def count(self, params: Mapping[str, Any]) -> Any:
        return self._call("count", self._es.count, **_query_kwargs(params, keep=("query",)))

    def delete_by_query(self, params: Mapping[str, Any]) -> Any:
        return self._call("delete_by_query", self._es.delete_by_query, **_query_kwargs(params, keep=("query",)))

    def update_by_query(self, params: Mapping[str, Any]) -> Any:
        kwargs = _query_kwargs(params, keep=("query", "script"))
        return self._call("update_by_query", self._es.update_by_query, **kwargs)

    def _call(self, action: str, method: Callable[..., Any], /, **kwargs: Any) -> Any:
        """Invoke one client method once and unwrap the response body.

        Raises:
            AdministrationOperationError: On transport failure or an error response.
        """
        log.debug("engine call: %s index=%s", action, kwargs.get("index"))
        try:
            resp = method(**kwargs)
        except (ApiError, TransportError) as e:
            raise _wrap(action, e) from e
        return getattr(resp, "body", resp)


def _query_kwargs(params: Mapping[str, Any], keep: tuple[str, ...] | None = None) -> dict[str, Any]:
    """Spread a compiled query document into client keyword arguments.

    Mapping types are not part of the typeless search API, so ``type`` is
    not forwarded.
    """
    index = params.get("index")
    if not index:
        raise ValueError("Query document has no index")
    body = dict(params.get("body") or {})
    if keep is not None:
        return {"index": index, **{k: v for k, v in body.items() if k in keep}}
    kwargs: dict[str, Any] = {"index": index, **body}
    for key, arg in _PAGING_ARGS:
        if key in params:
            kwargs[arg] = params[key]
    return kwargs


def _wrap(action: str, error: Exception) -> AdministrationOperationError:
    if isinstance(error, ApiError):
        status = error.meta.status
        reason, detail = error.message, str(error.message)
        if isinstance(error.body, Mapping) and isinstance(error.body.get("error"), Mapping):
            reason = error.body["error"].get("type") or reason
            detail = str(error.body["error"].get("reason") or reason)
        return AdministrationOperationError(
            f"{action} failed with HTTP {status}: {detail}",
            status=status,
            reason=reason,
        )
    return AdministrationOperationError(f"{action} failed: {error}")
