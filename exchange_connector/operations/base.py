"""
CRUD Operation Dispatcher

Every orchestrator operation is an ``OperationHandler``. A handler answers
``get_meta`` from the resolver alone and runs ``execute`` as a single pass:
parse parameters, validate, ensure the remote session, consult or fill the
entity cache, build the remote parameters, invoke, shape the result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from ..config_manager import ConnectorConfig, parse_params, redact
from ..context import ConnectorContext
from ..entity_cache import EntityType
from ..exceptions import (
    ConnectorError,
    ParameterValidationError,
    ProhibitedParameterError,
    RemoteError,
    RemoteOperationError,
    wrap_remote_exception,
)
from ..remote.base import RemoteSessionHandle
from ..resolver import ParameterSet
from ..schema import OperationKind, Semantics
from ..utils.synthetic_key import synthetic_key

logger = structlog.get_logger(__name__)

Params = Union[str, Mapping[str, Any], None]
Record = Dict[str, Any]

CONFIRM_PARAMETER = "Confirm"


@dataclass
class OperationResult:
    """Outcome of one execute call: records on success, the error otherwise."""

    operation: str
    records: List[Record] = field(default_factory=list)
    error: Optional[ConnectorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Record]:
        if self.error is not None:
            raise self.error
        return self.records

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "success": self.ok,
            "records": self.records,
            "error": self.error.to_dict() if self.error else None,
        }


class OperationHandler(ABC):
    """Base class of all orchestrator operations."""

    #: Operation name exposed to the orchestrator, also the remote cmdlet
    name: str = ""
    class_name: str = ""
    semantics: Semantics = Semantics.READ

    @property
    def cmdlet(self) -> str:
        return self.name

    @abstractmethod
    def get_meta(self, context: ConnectorContext) -> Dict[str, Any]:
        """Describe the parameters the operation accepts. No I/O."""

    @abstractmethod
    def run(
        self, context: ConnectorContext, config: ConnectorConfig, params: Dict[str, Any]
    ) -> List[Record]:
        """Execute with parsed parameters; raises ConnectorError subclasses."""

    def execute(
        self,
        context: ConnectorContext,
        system_params: Params = None,
        function_params: Params = None,
    ) -> OperationResult:
        params: Dict[str, Any] = {}
        try:
            params = parse_params(function_params, "Function parameters")
            config = ConnectorConfig.from_system_params(system_params)
            records = self.run(context, config, params)
        except ConnectorError as e:
            if isinstance(e, RemoteError):
                e.context.setdefault("operation", self.name)
                e.context.setdefault("class_name", self.class_name)
            logger.error(
                f"{self.name} failed: {e.message}",
                operation=self.name,
                class_name=self.class_name,
                params=redact(params),
                error=e.to_dict(),
            )
            return OperationResult(operation=self.name, error=e)

        logger.info(
            f"{self.name} completed",
            operation=self.name,
            class_name=self.class_name,
            records=len(records),
        )
        return OperationResult(operation=self.name, records=records)

    def invoke_remote(
        self,
        remote: RemoteSessionHandle,
        parameters: Mapping[str, Any],
        cmdlet: Optional[str] = None,
    ) -> List[Record]:
        cmdlet = cmdlet or self.cmdlet
        try:
            return remote.invoke(cmdlet, parameters)
        except RemoteError:
            raise
        except Exception as e:
            raise wrap_remote_exception(
                e, context={"operation": self.name, "cmdlet": cmdlet}
            ) from e


def shape_record(record: Mapping[str, Any], selection: Sequence[str]) -> Record:
    """Project ``record`` onto ``selection``, in that order."""
    return {name: record.get(name) for name in selection}


def key_first(record: Mapping[str, Any], key: str) -> Record:
    shaped: Record = {key: record.get(key)}
    shaped.update((k, v) for k, v in record.items() if k != key)
    return shaped


def parse_flag(value: Any, name: str) -> bool:
    """Read a boolean function parameter sent as JSON bool or as text."""
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false", ""):
        return value.strip().lower() == "true"
    raise ParameterValidationError(
        f"{name} must be true or false, got {value!r}",
        parameters=[name],
        error_code="INVALID_PARAMETER_VALUE",
    )


class ReadHandler(OperationHandler):
    """Read operation returning records with the key first."""

    semantics = Semantics.READ
    can_filter = True
    #: Whether the class honours the configured organizational scope
    scoped = False
    #: Extra function parameters accepted besides Properties/Filter
    extra_params: Tuple[str, ...] = ()

    def get_meta(self, context: ConnectorContext) -> Dict[str, Any]:
        return context.resolver.resolve_read_metadata(
            self.class_name, can_filter=self.can_filter
        ).to_dict()

    def _check_request(self, params: Mapping[str, Any]) -> None:
        allowed = {"Properties", *self.extra_params}
        if self.can_filter:
            allowed.add("Filter")
        unknown = [name for name in params if name not in allowed]
        if unknown:
            raise ProhibitedParameterError(
                f"Unsupported read parameters for {self.name}: {', '.join(unknown)}",
                class_name=self.class_name,
                operation=self.name,
                parameters=unknown,
            )

    @staticmethod
    def requested_properties(params: Mapping[str, Any]) -> List[str]:
        raw = params.get("Properties") or []
        if isinstance(raw, str):
            raw = raw.split(",")
        return [str(name).strip() for name in raw if str(name).strip()]

    def read_parameters(
        self, config: ConnectorConfig, params: Mapping[str, Any]
    ) -> Dict[str, Any]:
        parameters: Dict[str, Any] = {"ResultSize": "Unlimited"}
        if self.can_filter and params.get("Filter"):
            parameters["Filter"] = params["Filter"]
        scope = config.scopes.scope_for(self.class_name) if self.scoped else None
        if scope:
            parameters["OrganizationalUnit"] = scope
        return parameters

    def fetch(
        self,
        context: ConnectorContext,
        remote: RemoteSessionHandle,
        config: ConnectorConfig,
        params: Mapping[str, Any],
    ) -> Iterable[Record]:
        return self.invoke_remote(remote, self.read_parameters(config, params))

    def run(
        self, context: ConnectorContext, config: ConnectorConfig, params: Dict[str, Any]
    ) -> List[Record]:
        self._check_request(params)
        selection = context.resolver.resolve_read_selection(
            self.class_name, self.requested_properties(params)
        )
        with context.session_manager.session(config.connection) as remote:
            records = self.fetch(context, remote, config, params)
            return [shape_record(record, selection) for record in records]


class BulkReadHandler(ReadHandler):
    """
    Read of a bulk-fetchable entity type. An unfiltered read is a complete
    listing and refills the type's cache collection.
    """

    entity_type: EntityType

    def fetch_all(
        self, remote: RemoteSessionHandle, config: ConnectorConfig
    ) -> List[Record]:
        return self.invoke_remote(remote, self.read_parameters(config, {}))

    def fetch(
        self,
        context: ConnectorContext,
        remote: RemoteSessionHandle,
        config: ConnectorConfig,
        params: Mapping[str, Any],
    ) -> Iterable[Record]:
        if params.get("Filter"):
            return self.invoke_remote(remote, self.read_parameters(config, params))
        records = self.fetch_all(remote, config)
        context.cache.refill(self.entity_type, records)
        return records


class DependentReadHandler(ReadHandler):
    """
    Read that expands every cached parent entity into child records.
    The parent collection is filled through its bulk read when empty.
    """

    can_filter = False
    extra_params = ("RefreshCache",)
    source: BulkReadHandler
    #: Fields hashed into the synthetic key, for derived-key classes
    key_fields: Tuple[str, ...] = ()
    #: Values hashed for key fields the remote side leaves empty
    key_defaults: Mapping[str, Any] = {}

    @abstractmethod
    def expand(
        self, remote: RemoteSessionHandle, parent: Record
    ) -> Iterable[Record]:
        """Turn one cached parent entity into its child records."""

    def _check_request(self, params: Mapping[str, Any]) -> None:
        super()._check_request(params)
        parse_flag(params.get("RefreshCache"), "RefreshCache")

    def with_derived_key(self, context: ConnectorContext, record: Record) -> Record:
        schema = context.registry.get_schema(self.class_name)
        if schema.derived_key:
            record[schema.key_field] = synthetic_key(
                record, self.key_fields, self.key_defaults
            )
        return record

    def fetch(
        self,
        context: ConnectorContext,
        remote: RemoteSessionHandle,
        config: ConnectorConfig,
        params: Mapping[str, Any],
    ) -> Iterable[Record]:
        entity_type = self.source.entity_type
        if parse_flag(params.get("RefreshCache"), "RefreshCache"):
            context.cache.clear(entity_type)
        context.cache.ensure_filled(
            entity_type, lambda: self.source.fetch_all(remote, config)
        )

        records: List[Record] = []
        for parent in context.cache.snapshot(entity_type):
            try:
                children = list(self.expand(remote, parent))
            except RemoteOperationError as e:
                # The parent vanished since the cache was filled
                if e.status_code == 404:
                    logger.warning(
                        f"Skipping {entity_type.value} entry no longer present remotely",
                        operation=self.name,
                        parent=parent.get("Guid"),
                    )
                    continue
                raise
            records.extend(self.with_derived_key(context, child) for child in children)
        return records


class MutationHandler(OperationHandler):
    """Create/Update/Delete/Enable/Disable/Add/Remove operation."""

    kind: OperationKind
    #: Fields hashed into the synthetic key, for derived-key classes
    key_fields: Tuple[str, ...] = ()
    #: Values hashed for key fields the caller omits; match the read side
    key_defaults: Mapping[str, Any] = {}

    @property
    def semantics(self) -> Semantics:  # type: ignore[override]
        return self.kind.semantics

    def get_meta(self, context: ConnectorContext) -> Dict[str, Any]:
        return context.resolver.resolve_operation_contract(
            self.class_name, self.kind
        ).to_dict()

    def remote_parameters(self, parameter_set: ParameterSet) -> Dict[str, Any]:
        parameters: Dict[str, Any] = {}
        if parameter_set.identity is not None:
            parameters["Identity"] = parameter_set.identity
        parameters.update(parameter_set.values)
        if self.kind.requires_confirmation_override:
            # Unattended: the remote side must never prompt
            parameters[CONFIRM_PARAMETER] = False
        return parameters

    def confirmation_record(
        self,
        context: ConnectorContext,
        parameter_set: ParameterSet,
        returned: Optional[Mapping[str, Any]] = None,
    ) -> Record:
        """
        Build the record reported for a mutation whose remote result is empty
        or not keyed the way reads key it.
        """
        schema = context.registry.get_schema(self.class_name)
        record = {k: v for k, v in (returned or {}).items() if schema.get(k) is not None}
        record.update(parameter_set.as_record())
        if schema.derived_key:
            record[schema.key_field] = synthetic_key(
                record, self.key_fields, self.key_defaults
            )
        else:
            record[schema.key_field] = parameter_set.identity
        return key_first(record, schema.key_field)

    def run(
        self, context: ConnectorContext, config: ConnectorConfig, params: Dict[str, Any]
    ) -> List[Record]:
        parameter_set = context.resolver.validate(self.class_name, self.kind, params)
        remote_parameters = self.remote_parameters(parameter_set)
        with context.session_manager.session(config.connection) as remote:
            result = self.invoke_remote(remote, remote_parameters)

        schema = context.registry.get_schema(self.class_name)
        if result and not schema.derived_key:
            return [key_first(record, schema.key_field) for record in result]
        returned = result[0] if result else None
        return [self.confirmation_record(context, parameter_set, returned)]
