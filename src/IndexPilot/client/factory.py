"""Connection-pool name to administration client resolution."""

from __future__ import annotations

from IndexPilot.client.elastic import ElasticsearchClient
from IndexPilot.config.connections import ConnectionsConfig, PoolConfig
from IndexPilot.core.errors import ClientResolutionError
from IndexPilot.utils.log import log


def create_client(pool: PoolConfig) -> ElasticsearchClient:
    """Build the HTTP client for one configured pool."""
    return ElasticsearchClient(
        pool.hosts,
        timeout=pool.timeout,
        auth=pool.auth,
        verify_certs=pool.verify_certs,
        max_connections=pool.max_connections,
    )


class ClientFactory:
    """Hands out one cached client per configured pool.

    Supports context manager protocol to release all pooled connections.
    """

    def __init__(self, config: ConnectionsConfig) -> None:
        self._config = config
        self._clients: dict[str, ElasticsearchClient] = {}

    def get(self, pool: str = "default") -> ElasticsearchClient:
        """Return the client for ``pool``.

        Raises:
            ClientResolutionError: If no pool with that name is configured.
        """
        client = self._clients.get(pool)
        if client is not None:
            return client
        pool_config = self._config.pools.get(pool)
        if pool_config is None:
            raise ClientResolutionError(
                f"Elasticsearch pool {pool!r} is not configured (known: {sorted(self._config.pools)})"
            )
        client = create_client(pool_config)
        log.debug("Created client for pool %s: hosts=%s", pool, pool_config.hosts)
        self._clients[pool] = client
        return client

    def close(self) -> None:
        """Shut down every client created so far."""
        for client in self._clients.values():
            client.shutdown()
        self._clients.clear()

    def __enter__(self) -> ClientFactory:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
