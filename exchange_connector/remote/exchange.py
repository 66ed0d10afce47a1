"""
Exchange Online remote session over the admin REST ``InvokeCommand`` API.

Each cmdlet call is a POST of ``{"CmdletInput": {"CmdletName", "Parameters"}}``
to ``{endpoint}/adminapi/beta/{organization}/InvokeCommand``. Results come
back as OData pages; ``@odata.nextLink`` is followed until exhausted.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx
from azure.core.credentials import AccessToken, TokenCredential
from azure.core.exceptions import ClientAuthenticationError

from ..config_manager import ConnectionConfig
from ..exceptions import RemoteConnectionError, RemoteOperationError
from .base import RemoteSessionHandle, RemoteSessionProvider
from .credentials import build_credential

logger = logging.getLogger(__name__)

EXCHANGE_SCOPE = "https://outlook.office365.com/.default"
ANCHOR_MAILBOX = "SystemMailbox{bb558c35-97f1-4cb9-8ff7-d53741dc928c}"
# Refresh the bearer token this many seconds before it expires
TOKEN_REFRESH_MARGIN = 300


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        details = error.get("details") or []
        detail = details[0].get("message") if details and isinstance(details[0], dict) else None
        return detail or error.get("message") or response.reason_phrase
    return response.reason_phrase


class ExchangeRestSession(RemoteSessionHandle):
    """One authenticated connection to the Exchange admin API."""

    def __init__(
        self,
        credential: TokenCredential,
        config: ConnectionConfig,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.credential = credential
        self.config = config
        self.client = client or httpx.Client(timeout=httpx.Timeout(config.timeout))
        self._token: Optional[AccessToken] = None
        self._broken = False
        self._closed = False

    @property
    def command_url(self) -> str:
        return f"{self.config.base_url}/adminapi/beta/{self.config.tenant}/InvokeCommand"

    def authenticate(self) -> None:
        """Acquire the first token; raises RemoteConnectionError on failure."""
        self._bearer()

    def _bearer(self) -> str:
        now = time.time()
        if self._token is None or self._token.expires_on - TOKEN_REFRESH_MARGIN <= now:
            try:
                self._token = self.credential.get_token(EXCHANGE_SCOPE)
            except ClientAuthenticationError as e:
                self._broken = True
                raise RemoteConnectionError(
                    "Failed to acquire an Exchange Online token",
                    endpoint=self.config.base_url,
                    cause=e,
                ) from e
        return self._token.token

    def _headers(self, cmdlet: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._bearer()}",
            "Prefer": f"odata.maxpagesize={self.config.page_size}",
            "X-AnchorMailbox": f"UPN:{ANCHOR_MAILBOX}@{self.config.tenant}",
            "X-CmdletName": cmdlet,
            "X-ResponseFormat": "json",
        }

    def _send(
        self, cmdlet: str, request: Callable[[Dict[str, str]], httpx.Response]
    ) -> Dict[str, Any]:
        try:
            response = request(self._headers(cmdlet))
        except httpx.TransportError as e:
            self._broken = True
            raise RemoteConnectionError(
                f"Transport failure while running {cmdlet}",
                endpoint=self.config.base_url,
                cause=e,
            ) from e

        if response.status_code == 401:
            self._broken = True
            raise RemoteConnectionError(
                f"Session rejected while running {cmdlet}: {_error_message(response)}",
                endpoint=self.config.base_url,
            )
        if response.is_error:
            raise RemoteOperationError(
                f"{cmdlet} failed: {_error_message(response)}",
                cmdlet=cmdlet,
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    def invoke(
        self, cmdlet: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        if self._closed:
            raise RemoteConnectionError("Session is closed", endpoint=self.config.base_url)

        body = {"CmdletInput": {"CmdletName": cmdlet, "Parameters": dict(parameters or {})}}
        payload = self._send(
            cmdlet, lambda headers: self.client.post(self.command_url, json=body, headers=headers)
        )
        records: List[Dict[str, Any]] = list(payload.get("value", []))

        # Handle pagination
        next_link = payload.get("@odata.nextLink")
        while next_link:
            logger.debug(f"Fetching next page of {cmdlet} (current count: {len(records)})")
            link = next_link
            payload = self._send(
                cmdlet, lambda headers: self.client.get(link, headers=headers)
            )
            records.extend(payload.get("value", []))
            next_link = payload.get("@odata.nextLink")

        return records

    @property
    def is_connected(self) -> bool:
        return not self._closed and not self._broken

    def close(self) -> None:
        self._closed = True
        self.client.close()


class ExchangeOnlineSessionProvider(RemoteSessionProvider):
    """Opens ``ExchangeRestSession`` instances for the session manager."""

    def __init__(
        self,
        credential_factory: Callable[[ConnectionConfig], TokenCredential] = build_credential,
        client_factory: Optional[Callable[[ConnectionConfig], httpx.Client]] = None,
    ) -> None:
        self.credential_factory = credential_factory
        self.client_factory = client_factory

    def open(self, config: ConnectionConfig) -> ExchangeRestSession:
        try:
            credential = self.credential_factory(config)
        except (ValueError, OSError) as e:
            raise RemoteConnectionError(
                f"Cannot build {config.auth_mode} credential: {e}",
                endpoint=config.base_url,
                cause=e,
            ) from e

        client = self.client_factory(config) if self.client_factory else None
        session = ExchangeRestSession(credential, config, client=client)
        try:
            session.authenticate()
        except RemoteConnectionError:
            session.close()
            raise
        logger.info(f"Connected to Exchange Online at {config.base_url} ({config.tenant})")
        return session

    def close(self, handle: RemoteSessionHandle) -> None:
        if isinstance(handle, ExchangeRestSession):
            handle.close()

    def is_connected(self, handle: RemoteSessionHandle) -> bool:
        return bool(getattr(handle, "is_connected", False))
