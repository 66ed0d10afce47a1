"""Remote session providers."""

from .base import RemoteSessionHandle, RemoteSessionProvider
from .exchange import ExchangeOnlineSessionProvider, ExchangeRestSession

__all__ = [
    "ExchangeOnlineSessionProvider",
    "ExchangeRestSession",
    "RemoteSessionHandle",
    "RemoteSessionProvider",
]
