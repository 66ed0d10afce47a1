"""
Credential selection for remote sessions.

Certificate mode uses an app-only ``CertificateCredential``; credential mode
uses the legacy delegated ``UsernamePasswordCredential`` against the public
Exchange Online client id.
"""

import logging

from azure.core.credentials import TokenCredential
from azure.identity import CertificateCredential, UsernamePasswordCredential

from ..config_manager import EXCHANGE_PUBLIC_CLIENT_ID, ConnectionConfig

logger = logging.getLogger(__name__)


def _mask(value: str) -> str:
    return value[:8] + "..." if len(value) > 8 else value


def build_credential(config: ConnectionConfig) -> TokenCredential:
    """
    Create the azure-identity credential matching the auth mode.

    Args:
        config: Validated connection configuration

    Returns:
        A token credential for the Exchange Online resource
    """
    if config.auth_mode == "certificate":
        logger.debug(
            f"Using certificate credential for app {_mask(config.app_id or '')} "
            f"in {config.organization}"
        )
        return CertificateCredential(
            tenant_id=config.organization,
            client_id=config.app_id,
            certificate_path=config.certificate_path,
            password=config.certificate_password,
        )

    logger.debug(f"Using username/password credential for {config.username}")
    return UsernamePasswordCredential(
        client_id=EXCHANGE_PUBLIC_CLIENT_ID,
        username=config.username,
        password=config.password,
        tenant_id=config.tenant,
    )
