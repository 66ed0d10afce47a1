"""
Orchestrator boundary.

The IDM orchestrator calls an operation either for metadata
(``get_meta=True``) or to execute it with serialized system and function
parameters. Metadata requests never touch the network.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .context import ConnectorContext
from .exceptions import UnknownOperationError
from .operations import OPERATIONS, OperationHandler, OperationResult
from .operations.base import Params

logger = logging.getLogger(__name__)


class Connector:
    """Dispatches orchestrator calls to operation handlers."""

    def __init__(self, context: Optional[ConnectorContext] = None) -> None:
        self.context = context or ConnectorContext()

    def operations(self) -> List[OperationHandler]:
        return list(OPERATIONS.values())

    def handler(self, operation: str) -> OperationHandler:
        try:
            return OPERATIONS[operation]
        except KeyError as e:
            raise UnknownOperationError(
                f"Unknown operation '{operation}'",
                operation=operation,
                recovery_suggestion="List the available operations with 'exchange-connector operations'",
            ) from e

    def get_meta(self, operation: str) -> Dict[str, Any]:
        return self.handler(operation).get_meta(self.context)

    def execute(
        self,
        operation: str,
        system_params: Params = None,
        function_params: Params = None,
    ) -> OperationResult:
        return self.handler(operation).execute(
            self.context, system_params, function_params
        )

    def invoke(
        self,
        operation: str,
        system_params: Params = None,
        function_params: Params = None,
        get_meta: bool = False,
    ) -> Union[Dict[str, Any], OperationResult]:
        """Single entry point mirroring the orchestrator's calling convention."""
        if get_meta:
            return self.get_meta(operation)
        return self.execute(operation, system_params, function_params)

    def refresh_cache(self) -> None:
        self.context.cache.clear_all()

    def unload(self) -> None:
        self.context.unload()
