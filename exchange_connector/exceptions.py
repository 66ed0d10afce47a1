"""
Custom Exception Hierarchy for the Exchange Connector

This module provides the exception hierarchy used across the connector. Every
error carries a human readable message plus optional error code, context,
underlying cause and a recovery suggestion, so the orchestrator boundary can
report failures in a structured way.
"""

from typing import Any, Dict, List, Optional

import httpx
from azure.core.exceptions import ClientAuthenticationError

# Failures that mean the session itself is unusable
CONNECTION_FAILURES = (httpx.TransportError, ClientAuthenticationError, ConnectionError)


class ConnectorError(Exception):
    """
    Base exception class for all connector related errors.

    Provides structured error information including context, error codes,
    and optional recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context
            cause: Optional underlying exception that caused this error
            recovery_suggestion: Optional suggestion for error recovery
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        """Return a formatted error message with context."""
        result = self.message
        if self.error_code:
            result = f"[{self.error_code}] {result}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            result += f" (context: {context_str})"
        if self.cause:
            result += f" (caused by: {self.cause})"
        if self.recovery_suggestion:
            result += f" (suggestion: {self.recovery_suggestion})"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "recovery_suggestion": self.recovery_suggestion,
        }


class SchemaError(ConnectorError):
    """Raised when the property schema registry is misconfigured."""

    def __init__(
        self, message: str, class_name: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if class_name:
            context["class_name"] = class_name
        kwargs["context"] = context
        kwargs.setdefault("error_code", "SCHEMA_ERROR")
        super().__init__(message, **kwargs)


# Parameter validation exceptions
class ParameterValidationError(ConnectorError):
    """Base class for client input validation errors."""

    def __init__(
        self,
        message: str,
        class_name: Optional[str] = None,
        operation: Optional[str] = None,
        parameters: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if class_name:
            context["class_name"] = class_name
        if operation:
            context["operation"] = operation
        if parameters:
            context["parameters"] = parameters
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.parameters = parameters or []


class ProhibitedParameterError(ParameterValidationError):
    """Raised when a submitted parameter is not allowed for the operation."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "PROHIBITED_PARAMETER")
        kwargs.setdefault(
            "recovery_suggestion",
            "Request the operation metadata to see which parameters are allowed",
        )
        super().__init__(message, **kwargs)


class MissingMandatoryParameterError(ParameterValidationError):
    """Raised when a mandatory parameter is absent."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "MISSING_MANDATORY_PARAMETER")
        kwargs.setdefault(
            "recovery_suggestion",
            "Request the operation metadata to see which parameters are mandatory",
        )
        super().__init__(message, **kwargs)


class UnknownOperationError(ConnectorError):
    """Raised when the orchestrator names an operation the connector lacks."""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if operation:
            context["operation"] = operation
        kwargs["context"] = context
        kwargs.setdefault("error_code", "UNKNOWN_OPERATION")
        super().__init__(message, **kwargs)


# Configuration-related exceptions
class ConfigurationError(ConnectorError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(
        self, message: str, config_section: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if config_section:
            context["config_section"] = config_section
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion", "Check system parameters and environment variables"
        )
        super().__init__(message, **kwargs)


# Remote-related exceptions
class RemoteError(ConnectorError):
    """Base class for errors raised while talking to the remote service."""

    pass


class RemoteConnectionError(RemoteError):
    """Raised when a remote session cannot be opened or reused."""

    def __init__(
        self, message: str, endpoint: Optional[str] = None, **kwargs: Any
    ) -> None:
        context = kwargs.get("context", {})
        if endpoint:
            # Don't include credentials in context
            safe_endpoint = endpoint.split("@")[-1] if "@" in endpoint else endpoint
            context["endpoint"] = safe_endpoint
        kwargs["context"] = context
        kwargs.setdefault("error_code", "REMOTE_CONNECTION_FAILED")
        kwargs.setdefault(
            "recovery_suggestion",
            "Check the connection parameters and the app registration permissions",
        )
        super().__init__(message, **kwargs)


class RemoteOperationError(RemoteError):
    """Raised when a remote command fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        class_name: Optional[str] = None,
        cmdlet: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if operation:
            context["operation"] = operation
        if class_name:
            context["class_name"] = class_name
        if cmdlet:
            context["cmdlet"] = cmdlet
        if status_code:
            context["status_code"] = status_code
        kwargs["context"] = context
        kwargs.setdefault("error_code", "REMOTE_OPERATION_FAILED")
        super().__init__(message, **kwargs)
        self.status_code = status_code


# Utility functions for exception handling
def wrap_remote_exception(
    exc: Exception, context: Optional[Dict[str, Any]] = None
) -> RemoteError:
    """
    Wrap a transport or SDK exception in our custom exception hierarchy.

    Args:
        exc: The original exception
        context: Optional context information

    Returns:
        RemoteError: Wrapped exception with enhanced context
    """
    if isinstance(exc, RemoteError):
        return exc

    error_message = str(exc)
    lowered = error_message.lower()

    if isinstance(exc, CONNECTION_FAILURES) or (
        "authentication" in lowered or "unauthorized" in lowered
    ):
        return RemoteConnectionError(
            f"Remote connection failed: {error_message}", context=context, cause=exc
        )
    return RemoteOperationError(
        f"Remote operation failed: {error_message}", context=context, cause=exc
    )
