import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Union

import colorlog
from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError

# Load environment variables
load_dotenv()

"""
Configuration Management for the Exchange Connector

This module turns the orchestrator's system parameters, with environment and
.env defaults underneath, into validated configuration sections.
"""

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://outlook.office365.com"
# Well-known public client id used by Exchange Online PowerShell for
# delegated (username/password) sign-in
EXCHANGE_PUBLIC_CLIENT_ID = "fb78d390-0c51-40cd-8e17-fdbfab77341b"

AuthMode = Literal["certificate", "credential"]

# System parameter name -> (attribute, environment variable)
_CONNECTION_KEYS: Dict[str, tuple] = {
    "AuthMode": ("auth_mode", "EXO_AUTH_MODE"),
    "Endpoint": ("endpoint", "EXO_ENDPOINT"),
    "AppId": ("app_id", "EXO_APP_ID"),
    "Organization": ("organization", "EXO_ORGANIZATION"),
    "CertificatePath": ("certificate_path", "EXO_CERTIFICATE_PATH"),
    "CertificatePassword": ("certificate_password", "EXO_CERTIFICATE_PASSWORD"),
    "ConnectionUri": ("connection_uri", "EXO_CONNECTION_URI"),
    "Username": ("username", "EXO_USERNAME"),
    "Password": ("password", "EXO_PASSWORD"),
    "PageSize": ("page_size", "EXO_PAGE_SIZE"),
    "Timeout": ("timeout", "EXO_TIMEOUT"),
}

_CERTIFICATE_FIELDS = ("app_id", "organization", "certificate_path", "certificate_password")
_CREDENTIAL_FIELDS = ("connection_uri", "username", "password")

SENSITIVE_PATTERNS = {"PASSWORD", "SECRET", "TOKEN", "KEY", "AUTH"}


def _set_http_log_level(log_level: str) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    http_loggers = [
        "azure.core.pipeline.policies.http_logging_policy",
        "azure.core.pipeline",
        "azure.identity",
        "azure",
        "msal",
        "httpx",
        "httpcore",
    ]
    # HTTP logging should only appear at DEBUG level
    target_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in http_loggers:
        logging.getLogger(name).setLevel(target_level)


def should_redact(key: str) -> bool:
    """Check if a parameter name holds a secret."""
    return any(pattern in key.upper() for pattern in SENSITIVE_PATTERNS)


def redact(params: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``params`` safe for logging."""
    return {k: "***REDACTED***" if should_redact(k) else v for k, v in params.items()}


def parse_params(raw: Union[str, Mapping[str, Any], None], section: str) -> Dict[str, Any]:
    """Decode serialized orchestrator parameters (JSON text or mapping)."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidConfigurationError(
            f"{section} are not valid JSON: {e.msg}", config_section=section, cause=e
        ) from e
    if not isinstance(decoded, dict):
        raise InvalidConfigurationError(
            f"{section} must be a JSON object", config_section=section
        )
    return decoded


@dataclass
class ConnectionConfig:
    """
    Remote connection parameters.

    Certificate mode (app-only) uses app_id, organization and a certificate;
    credential mode (legacy) uses a connection URI with username/password.
    The two parameter sets are mutually exclusive.
    """

    auth_mode: AuthMode = "certificate"
    endpoint: str = DEFAULT_ENDPOINT
    app_id: Optional[str] = None
    organization: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_password: Optional[str] = None
    connection_uri: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    page_size: int = 1000
    timeout: float = 300.0

    def __post_init__(self) -> None:
        """Validate connection configuration."""
        try:
            self.page_size = int(self.page_size)
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(
                "PageSize and Timeout must be numeric", config_section="connection", cause=e
            ) from e
        if self.page_size < 1:
            raise InvalidConfigurationError(
                "PageSize must be at least 1", config_section="connection"
            )
        if self.auth_mode == "certificate":
            self._require(("app_id", "organization", "certificate_path"))
            self._forbid(_CREDENTIAL_FIELDS)
        elif self.auth_mode == "credential":
            self._require(("username", "password"))
            self._forbid(_CERTIFICATE_FIELDS)
        else:
            raise InvalidConfigurationError(
                f"Invalid auth mode: {self.auth_mode}. Must be 'certificate' or 'credential'",
                config_section="connection",
            )

    def _require(self, names: tuple) -> None:
        missing = [n for n in names if not getattr(self, n)]
        if missing:
            raise InvalidConfigurationError(
                f"Missing {self.auth_mode} connection parameters: {', '.join(missing)}",
                config_section="connection",
            )

    def _forbid(self, names: tuple) -> None:
        present = [n for n in names if getattr(self, n)]
        if present:
            raise InvalidConfigurationError(
                f"Parameters {', '.join(present)} cannot be combined with "
                f"{self.auth_mode} authentication",
                config_section="connection",
            )

    @property
    def base_url(self) -> str:
        url = self.connection_uri if self.auth_mode == "credential" else None
        return (url or self.endpoint or DEFAULT_ENDPOINT).rstrip("/")

    @property
    def tenant(self) -> str:
        """Organization the admin API is addressed to."""
        if self.organization:
            return self.organization
        if self.username and "@" in self.username:
            return self.username.split("@", 1)[1]
        raise InvalidConfigurationError(
            "Cannot determine the organization for the remote session",
            config_section="connection",
        )

    def fingerprint_fields(self) -> Dict[str, Any]:
        """The subset of parameters that defines the remote identity."""
        if self.auth_mode == "certificate":
            return {
                "auth_mode": self.auth_mode,
                "endpoint": self.base_url,
                "app_id": self.app_id,
                "organization": self.organization,
                "certificate_path": self.certificate_path,
                "certificate_password": self.certificate_password,
                "page_size": self.page_size,
            }
        return {
            "auth_mode": self.auth_mode,
            "connection_uri": self.base_url,
            "username": self.username,
            "password": self.password,
            "page_size": self.page_size,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging (no secrets)."""
        return {
            "auth_mode": self.auth_mode,
            "endpoint": self.base_url,
            "app_id": self.app_id,
            "organization": self.organization,
            "certificate_path": self.certificate_path,
            "username": self.username,
            "page_size": self.page_size,
            "timeout": self.timeout,
        }

    @classmethod
    def from_system_params(cls, params: Mapping[str, Any]) -> "ConnectionConfig":
        """
        Build the connection config from orchestrator system parameters.

        Explicit system parameters win; environment variables fill in the
        parameters of the selected auth mode only.
        """
        explicit: Dict[str, Any] = {}
        for key, (attr, _env) in _CONNECTION_KEYS.items():
            if params.get(key) not in (None, ""):
                explicit[attr] = params[key]

        auth_mode = explicit.get("auth_mode") or os.getenv("EXO_AUTH_MODE", "certificate")
        own_fields = _CERTIFICATE_FIELDS if auth_mode == "certificate" else _CREDENTIAL_FIELDS
        values: Dict[str, Any] = {"auth_mode": auth_mode}
        for key, (attr, env) in _CONNECTION_KEYS.items():
            if attr in explicit:
                values[attr] = explicit[attr]
                continue
            if attr in _CERTIFICATE_FIELDS + _CREDENTIAL_FIELDS and attr not in own_fields:
                continue
            env_value = os.getenv(env)
            if env_value not in (None, ""):
                values[attr] = env_value
        return cls(**values)


@dataclass
class ScopeConfig:
    """Per entity class organizational-scope filter."""

    organizational_units: Dict[str, str] = field(default_factory=dict)

    def scope_for(self, class_name: str) -> Optional[str]:
        return self.organizational_units.get(class_name)

    @classmethod
    def from_system_params(cls, params: Mapping[str, Any]) -> "ScopeConfig":
        """Merge ``OrganizationalScopes`` over ``EXO_ORGANIZATIONAL_SCOPES``."""
        units: Dict[str, str] = {}
        env_scopes = parse_params(
            os.getenv("EXO_ORGANIZATIONAL_SCOPES"), "EXO_ORGANIZATIONAL_SCOPES"
        )
        explicit = params.get("OrganizationalScopes") or {}
        if not isinstance(explicit, Mapping):
            raise InvalidConfigurationError(
                "OrganizationalScopes must be an object of class name to OU",
                config_section="scopes",
            )
        for class_name, ou in {**env_scopes, **explicit}.items():
            if ou:
                units[class_name] = str(ou)
        return cls(organizational_units=units)


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(log_color)s%(levelname)s:%(name)s:%(message)s"
        )
    )
    file_output: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise InvalidConfigurationError(
                f"Log level must be one of: {valid_levels}", config_section="logging"
            )
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class ConnectorConfig:
    """Aggregated configuration of one execute call."""

    connection: ConnectionConfig
    scopes: ScopeConfig = field(default_factory=ScopeConfig)

    @classmethod
    def from_system_params(
        cls, raw: Union[str, Mapping[str, Any], None]
    ) -> "ConnectorConfig":
        params = parse_params(raw, "System parameters")
        return cls(
            connection=ConnectionConfig.from_system_params(params),
            scopes=ScopeConfig.from_system_params(params),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection": self.connection.to_dict(),
            "scopes": dict(self.scopes.organizational_units),
        }


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration based on config.
    """
    _set_http_log_level(config.level.upper())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # Remove any existing handlers
    root_logger.setLevel(config.get_log_level())

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(colorlog.ColoredFormatter(config.format))
    root_logger.addHandler(console_handler)

    # Add file handler if file output is configured
    if config.file_output:
        file_handler = logging.FileHandler(config.file_output)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s:%(name)s:%(message)s")
        )
        root_logger.addHandler(file_handler)

    logger.info(
        f"Logging configured: level={config.level}, file={config.file_output or 'console'}"
    )
