"""Engine clients for IndexPilot.

Provides the administration/search capability consumed by the query and
migration layers, a REST implementation, and pool-name resolution.
"""

from __future__ import annotations

from IndexPilot.client.base import AdminClient
from IndexPilot.client.factory import ClientFactory, create_client
from IndexPilot.client.elastic import ElasticsearchClient

__all__ = [
    "AdminClient",
    "ClientFactory",
    "ElasticsearchClient",
    "create_client",
]
