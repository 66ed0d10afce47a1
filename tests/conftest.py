from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pytest

from exchange_connector.config_manager import ConnectionConfig
from exchange_connector.context import ConnectorContext
from exchange_connector.remote.base import RemoteSessionHandle, RemoteSessionProvider

Response = Union[List[Dict[str, Any]], Callable[[Dict[str, Any]], List[Dict[str, Any]]], Exception]


# ============================================================================
# Remote Session Fixtures
# ============================================================================


class FakeRemoteSession(RemoteSessionHandle):
    """Records every cmdlet invocation and replays canned responses."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None) -> None:
        self.responses: Dict[str, Response] = responses if responses is not None else {}
        self.calls: List[tuple] = []
        self.connected = True

    def invoke(
        self, cmdlet: str, parameters: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        params = dict(parameters or {})
        self.calls.append((cmdlet, params))
        response = self.responses.get(cmdlet, [])
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return [dict(record) for record in response]

    def calls_to(self, cmdlet: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == cmdlet]


class SpyProvider(RemoteSessionProvider):
    """Session provider that hands out FakeRemoteSession instances."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None) -> None:
        self.responses: Dict[str, Response] = responses if responses is not None else {}
        self.opened: List[FakeRemoteSession] = []
        self.closed: List[FakeRemoteSession] = []
        self.open_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    def open(self, config: ConnectionConfig) -> FakeRemoteSession:
        if self.open_error is not None:
            raise self.open_error
        session = FakeRemoteSession(self.responses)
        self.opened.append(session)
        return session

    def close(self, handle: RemoteSessionHandle) -> None:
        self.closed.append(handle)  # type: ignore[arg-type]
        if self.close_error is not None:
            raise self.close_error

    def is_connected(self, handle: RemoteSessionHandle) -> bool:
        return getattr(handle, "connected", False)

    @property
    def invocations(self) -> List[tuple]:
        return [call for session in self.opened for call in session.calls]

    def calls_to_all(self, cmdlet: str) -> List[Dict[str, Any]]:
        """Parameters of every call to ``cmdlet`` across all opened sessions."""
        return [params for session in self.opened for params in session.calls_to(cmdlet)]


@pytest.fixture
def spy_provider() -> SpyProvider:
    """Provide a spy remote session provider with no canned responses."""
    return SpyProvider()


@pytest.fixture
def context(spy_provider: SpyProvider) -> ConnectorContext:
    """Provide a connector context wired to the spy provider."""
    return ConnectorContext(provider=spy_provider)


@pytest.fixture
def system_params() -> Dict[str, Any]:
    """Provide certificate-mode system parameters."""
    return {
        "AuthMode": "certificate",
        "AppId": "00000000-1111-2222-3333-444444444444",
        "Organization": "contoso.onmicrosoft.com",
        "CertificatePath": "/etc/exchange-connector/app.pem",
        "CertificatePassword": "cert-pass",  # pragma: allowlist secret
        "PageSize": 500,
    }


@pytest.fixture
def connection_config(system_params: Dict[str, Any]) -> ConnectionConfig:
    return ConnectionConfig.from_system_params(system_params)


# ============================================================================
# Directory Sample Data
# ============================================================================


@pytest.fixture
def sample_mailboxes() -> List[Dict[str, Any]]:
    """Provide Get-Mailbox records as the remote side returns them."""
    return [
        {
            "Guid": "6f1a1c7e-0000-4000-8000-000000000001",
            "DisplayName": "Adele Vance",
            "Alias": "adelev",
            "PrimarySmtpAddress": "adelev@contoso.com",
            "UserPrincipalName": "adelev@contoso.com",
            "RecipientTypeDetails": "UserMailbox",
            "Office": "18/2111",
            "ArchiveStatus": "None",
        },
        {
            "Guid": "6f1a1c7e-0000-4000-8000-000000000002",
            "DisplayName": "Alex Wilber",
            "Alias": "alexw",
            "PrimarySmtpAddress": "alexw@contoso.com",
            "UserPrincipalName": "alexw@contoso.com",
            "RecipientTypeDetails": "UserMailbox",
            "Office": "131/1104",
            "ArchiveStatus": "Active",
        },
    ]


@pytest.fixture
def sample_groups() -> List[Dict[str, Any]]:
    """Provide Get-DistributionGroup records."""
    return [
        {
            "Guid": "a7c2e3d4-0000-4000-8000-000000000010",
            "Name": "Sales",
            "DisplayName": "Sales Team",
            "Alias": "sales",
            "PrimarySmtpAddress": "sales@contoso.com",
            "RecipientTypeDetails": "MailUniversalDistributionGroup",
        },
        {
            "Guid": "a7c2e3d4-0000-4000-8000-000000000011",
            "Name": "Empty",
            "DisplayName": "Empty Group",
            "Alias": "empty",
            "PrimarySmtpAddress": "empty@contoso.com",
            "RecipientTypeDetails": "MailUniversalDistributionGroup",
        },
    ]
