"""
Remote session provider contract.

The session manager only depends on these abstractions; the Exchange Online
implementation lives in ``exchange_connector.remote.exchange``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..config_manager import ConnectionConfig


class RemoteSessionHandle(ABC):
    """An opened remote session able to run directory commands."""

    @abstractmethod
    def invoke(
        self, cmdlet: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Run one remote command.

        Args:
            cmdlet: Remote command name (e.g. ``Get-Mailbox``)
            parameters: Command parameters, passed through unchanged

        Returns:
            List of result records (empty when the command returns nothing)

        Raises:
            RemoteOperationError: If the remote command fails
            RemoteConnectionError: If the session is no longer usable
        """


class RemoteSessionProvider(ABC):
    """Opens, probes and closes remote sessions."""

    @abstractmethod
    def open(self, config: ConnectionConfig) -> RemoteSessionHandle:
        """
        Open a session for the given connection parameters.

        Raises:
            RemoteConnectionError: If the session cannot be established
        """

    @abstractmethod
    def close(self, handle: RemoteSessionHandle) -> None:
        """Close a session. May raise; callers treat closing as best-effort."""

    @abstractmethod
    def is_connected(self, handle: RemoteSessionHandle) -> bool:
        """Report whether the session is still usable."""
