"""
Tests for the Exchange Online REST session, using httpx.MockTransport.
"""

import json
import time
from unittest.mock import MagicMock, patch

import httpx
import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from exchange_connector.config_manager import ConnectionConfig
from exchange_connector.exceptions import RemoteConnectionError, RemoteOperationError
from exchange_connector.remote.credentials import build_credential
from exchange_connector.remote.exchange import (
    EXCHANGE_SCOPE,
    ExchangeOnlineSessionProvider,
    ExchangeRestSession,
)

COMMAND_URL = "https://outlook.office365.com/adminapi/beta/contoso.onmicrosoft.com/InvokeCommand"


def make_credential(expires_in: int = 3600) -> MagicMock:
    credential = MagicMock()
    credential.get_token.return_value = AccessToken("token-1", int(time.time()) + expires_in)
    return credential


def make_session(connection_config, handler, credential=None) -> ExchangeRestSession:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ExchangeRestSession(credential or make_credential(), connection_config, client=client)


class TestInvoke:
    def test_request_shape(self, connection_config):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"value": [{"Guid": "g-1"}]})

        session = make_session(connection_config, handler)
        records = session.invoke("Get-Mailbox", {"ResultSize": "Unlimited"})

        assert records == [{"Guid": "g-1"}]
        request = seen[0]
        assert str(request.url) == COMMAND_URL
        assert request.method == "POST"
        assert json.loads(request.content) == {
            "CmdletInput": {"CmdletName": "Get-Mailbox", "Parameters": {"ResultSize": "Unlimited"}}
        }
        assert request.headers["Authorization"] == "Bearer token-1"
        assert request.headers["Prefer"] == "odata.maxpagesize=500"
        assert request.headers["X-AnchorMailbox"].endswith("@contoso.onmicrosoft.com")

    def test_follows_next_link(self, connection_config):
        next_link = "https://outlook.office365.com/adminapi/beta/page2"

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(
                    200, json={"value": [{"Guid": "g-1"}], "@odata.nextLink": next_link}
                )
            assert str(request.url) == next_link
            return httpx.Response(200, json={"value": [{"Guid": "g-2"}]})

        records = make_session(connection_config, handler).invoke("Get-Mailbox")
        assert [r["Guid"] for r in records] == ["g-1", "g-2"]

    def test_empty_body(self, connection_config):
        session = make_session(connection_config, lambda request: httpx.Response(204))
        assert session.invoke("Set-Mailbox", {"Identity": "g-1"}) == []

    def test_remote_error_message(self, connection_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404,
                json={
                    "error": {
                        "code": "NotFound",
                        "message": "Error executing cmdlet",
                        "details": [{"message": "Couldn't find object 'g-9'."}],
                    }
                },
            )

        session = make_session(connection_config, handler)
        with pytest.raises(RemoteOperationError) as exc_info:
            session.invoke("Get-MailboxPermission", {"Identity": "g-9"})
        assert exc_info.value.status_code == 404
        assert "Couldn't find object" in exc_info.value.message
        assert session.is_connected

    def test_unauthorized_breaks_session(self, connection_config):
        session = make_session(connection_config, lambda request: httpx.Response(401))
        with pytest.raises(RemoteConnectionError):
            session.invoke("Get-Mailbox")
        assert not session.is_connected

    def test_transport_error_breaks_session(self, connection_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        session = make_session(connection_config, handler)
        with pytest.raises(RemoteConnectionError):
            session.invoke("Get-Mailbox")
        assert not session.is_connected

    def test_closed_session_refuses_calls(self, connection_config):
        session = make_session(connection_config, lambda request: httpx.Response(200))
        session.close()
        assert not session.is_connected
        with pytest.raises(RemoteConnectionError):
            session.invoke("Get-Mailbox")


class TestTokens:
    def test_token_reused_until_near_expiry(self, connection_config):
        credential = make_credential()
        session = make_session(
            connection_config, lambda request: httpx.Response(200, json={"value": []}), credential
        )
        session.invoke("Get-Mailbox")
        session.invoke("Get-Mailbox")
        credential.get_token.assert_called_once_with(EXCHANGE_SCOPE)

    def test_expiring_token_refreshed(self, connection_config):
        credential = make_credential(expires_in=60)
        session = make_session(
            connection_config, lambda request: httpx.Response(200, json={"value": []}), credential
        )
        session.invoke("Get-Mailbox")
        session.invoke("Get-Mailbox")
        assert credential.get_token.call_count == 2

    def test_authentication_failure(self, connection_config):
        credential = MagicMock()
        credential.get_token.side_effect = ClientAuthenticationError("AADSTS700027")
        session = make_session(connection_config, lambda request: httpx.Response(200), credential)
        with pytest.raises(RemoteConnectionError):
            session.authenticate()
        assert not session.is_connected


class TestSessionProvider:
    def test_open_authenticates(self, connection_config):
        credential = make_credential()
        provider = ExchangeOnlineSessionProvider(
            credential_factory=lambda config: credential,
            client_factory=lambda config: httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(200))
            ),
        )
        session = provider.open(connection_config)
        assert provider.is_connected(session)
        credential.get_token.assert_called_once()
        provider.close(session)
        assert not provider.is_connected(session)

    def test_bad_certificate(self, connection_config):
        def factory(config):
            raise OSError("No such file: /etc/exchange-connector/app.pem")

        provider = ExchangeOnlineSessionProvider(credential_factory=factory)
        with pytest.raises(RemoteConnectionError, match="Cannot build certificate credential"):
            provider.open(connection_config)

    def test_rejected_credential(self, connection_config):
        credential = MagicMock()
        credential.get_token.side_effect = ClientAuthenticationError("invalid_client")
        provider = ExchangeOnlineSessionProvider(
            credential_factory=lambda config: credential,
            client_factory=lambda config: httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(200))
            ),
        )
        with pytest.raises(RemoteConnectionError):
            provider.open(connection_config)


class TestBuildCredential:
    @patch("exchange_connector.remote.credentials.CertificateCredential")
    def test_certificate_mode(self, mock_credential, connection_config):
        build_credential(connection_config)
        mock_credential.assert_called_once_with(
            tenant_id="contoso.onmicrosoft.com",
            client_id="00000000-1111-2222-3333-444444444444",
            certificate_path="/etc/exchange-connector/app.pem",
            password="cert-pass",  # pragma: allowlist secret
        )

    @patch("exchange_connector.remote.credentials.UsernamePasswordCredential")
    def test_credential_mode(self, mock_credential):
        config = ConnectionConfig(
            auth_mode="credential",
            username="admin@contoso.com",
            password="pw",  # pragma: allowlist secret
        )
        build_credential(config)
        kwargs = mock_credential.call_args.kwargs
        assert kwargs["username"] == "admin@contoso.com"
        assert kwargs["tenant_id"] == "contoso.com"
        assert kwargs["client_id"] == "fb78d390-0c51-40cd-8e17-fdbfab77341b"
