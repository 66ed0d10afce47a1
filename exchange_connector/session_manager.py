"""
Remote Session Manager

This module owns the single live remote session of a connector context. The
session is fingerprinted by the identity-relevant connection parameters and
reopened when those parameters change or the session is observed broken.
"""

import hashlib
import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Generator, Optional

from .config_manager import ConnectionConfig
from .exceptions import RemoteConnectionError, RemoteError
from .remote.base import RemoteSessionHandle, RemoteSessionProvider

logger = logging.getLogger(__name__)


class SessionState(Enum):
    OPENED = "Opened"
    BROKEN = "Broken"
    CLOSED = "Closed"


@dataclass(frozen=True)
class ConnectionFingerprint:
    """Canonical digest of the identity-relevant connection parameters."""

    digest: str

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> "ConnectionFingerprint":
        canonical = json.dumps(
            config.fingerprint_fields(), sort_keys=True, separators=(",", ":"), default=str
        )
        return cls(hashlib.sha256(canonical.encode("utf-8")).hexdigest())

    def __str__(self) -> str:
        return self.digest[:12]


@dataclass
class RemoteSession:
    fingerprint: ConnectionFingerprint
    handle: RemoteSessionHandle
    state: SessionState = SessionState.OPENED


class RemoteSessionManager:
    """
    Manages the remote session with reuse, invalidation and reconnect.

    Check-and-open and close are serialized by a re-entrant lock, so
    overlapping calls can neither open two sessions nor close a session
    another call is using through ``session()``.
    """

    def __init__(self, provider: RemoteSessionProvider) -> None:
        """
        Initialize the session manager.

        Args:
            provider: Remote session provider used to open and close sessions
        """
        self.provider = provider
        self._session: Optional[RemoteSession] = None
        self._lock = threading.RLock()

    @property
    def current(self) -> Optional[RemoteSession]:
        return self._session

    @property
    def is_connected(self) -> bool:
        return self._session is not None and self._session.state is SessionState.OPENED

    def _observe(self, session: RemoteSession) -> SessionState:
        if session.state is SessionState.OPENED:
            try:
                alive = self.provider.is_connected(session.handle)
            except Exception as e:
                logger.warning(f"Session health check failed: {e}")
                alive = False
            if not alive:
                session.state = SessionState.BROKEN
        return session.state

    def ensure_session(self, config: ConnectionConfig) -> RemoteSessionHandle:
        """
        Return an opened session for ``config``, reusing the current one when
        its fingerprint matches and it is still connected.

        Raises:
            RemoteConnectionError: If a new session cannot be opened
        """
        fingerprint = ConnectionFingerprint.from_config(config)
        with self._lock:
            if self._session is not None:
                if self._session.fingerprint != fingerprint:
                    logger.info(
                        f"Connection parameters changed ({self._session.fingerprint} -> "
                        f"{fingerprint}), reconnecting"
                    )
                    self._close_current()
                elif self._observe(self._session) is not SessionState.OPENED:
                    logger.warning("Remote session is no longer connected, reconnecting")
                    self._close_current()

            if self._session is None:
                logger.debug(f"Opening remote session {fingerprint}")
                try:
                    handle = self.provider.open(config)
                except RemoteError:
                    raise
                except Exception as e:
                    raise RemoteConnectionError(
                        "Failed to open remote session",
                        endpoint=config.base_url,
                        context={"auth_mode": config.auth_mode},
                        cause=e,
                    ) from e
                self._session = RemoteSession(fingerprint=fingerprint, handle=handle)
            else:
                logger.debug(f"Reusing remote session {fingerprint}")

            return self._session.handle

    def mark_broken(self) -> None:
        """Flag the current session so the next call reconnects."""
        with self._lock:
            if self._session is not None:
                self._session.state = SessionState.BROKEN

    def _close_current(self) -> None:
        session = self._session
        self._session = None
        if session is None:
            return
        try:
            self.provider.close(session.handle)
            logger.info("Remote session closed")
        except Exception as e:
            logger.warning(f"Error closing remote session: {e}")
        finally:
            session.state = SessionState.CLOSED

    def close_session(self) -> None:
        """Close the current session, if any. Close errors are ignored."""
        with self._lock:
            self._close_current()

    @contextmanager
    def session(self, config: ConnectionConfig) -> Generator[RemoteSessionHandle, None, None]:
        """
        Hold the session for the duration of one invocation.

        Example:
            ```python
            with session_manager.session(config) as handle:
                handle.invoke("Get-Mailbox", {"ResultSize": "Unlimited"})
            ```
        """
        with self._lock:
            handle = self.ensure_session(config)
            try:
                yield handle
            except RemoteConnectionError:
                self.mark_broken()
                raise
