"""Connector context: the explicit owner of all process-wide state."""

import logging
from typing import Optional

from .entity_cache import EntityCache
from .remote.base import RemoteSessionProvider
from .remote.exchange import ExchangeOnlineSessionProvider
from .resolver import ParameterAllowanceResolver
from .schema import SchemaRegistry, load_registry
from .session_manager import RemoteSessionManager

logger = logging.getLogger(__name__)


class ConnectorContext:
    """
    Registry, resolver, remote session and entity cache of one connector
    process. Passed into every operation call.
    """

    def __init__(
        self,
        provider: Optional[RemoteSessionProvider] = None,
        registry: Optional[SchemaRegistry] = None,
    ) -> None:
        self.registry = registry or load_registry()
        self.resolver = ParameterAllowanceResolver(self.registry)
        self.session_manager = RemoteSessionManager(
            provider or ExchangeOnlineSessionProvider()
        )
        self.cache = EntityCache()

    def unload(self) -> None:
        """Close the remote session and drop every cached collection."""
        logger.info("Unloading connector context")
        self.session_manager.close_session()
        self.cache.clear_all()
