"""
Exchange Connector

Exposes Exchange Online mailbox and distribution-group objects as
metadata-described CRUD operations for an identity-management orchestrator.
"""

from .connector import Connector
from .context import ConnectorContext
from .operations import OperationResult

__all__ = ["Connector", "ConnectorContext", "OperationResult"]
