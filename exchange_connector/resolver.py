"""
Parameter-Allowance Resolver

Derives, from the schema registry, the field picklist offered for read
operations and the mandatory/optional/prohibited parameter contract of every
mutating operation. The resolver performs no I/O; the same registry always
yields the same metadata.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import MissingMandatoryParameterError, ProhibitedParameterError
from .schema import (
    Allowance,
    Capability,
    EntityClassSchema,
    OperationKind,
    SchemaRegistry,
    Semantics,
)

FILTER_FIELD = "Filter"


@dataclass(frozen=True)
class PicklistField:
    name: str
    description: str


@dataclass(frozen=True)
class FieldPicklist:
    """Read metadata: available fields and the default selection."""

    class_name: str
    fields: Tuple[PicklistField, ...]
    default_selection: Tuple[str, ...]
    can_filter: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "semantics": Semantics.READ.value,
            "class": self.class_name,
            "fields": [{"name": f.name, "description": f.description} for f in self.fields],
            "default": list(self.default_selection),
            "filter": FILTER_FIELD if self.can_filter else None,
        }


@dataclass(frozen=True)
class ContractParameter:
    name: str
    allowance: Allowance


@dataclass(frozen=True)
class OperationContract:
    """Parameter contract of one mutating operation."""

    class_name: str
    kind: OperationKind
    semantics: Semantics
    parameters: Tuple[ContractParameter, ...]

    def allowance_of(self, name: str) -> Allowance:
        for param in self.parameters:
            if param.name == name:
                return param.allowance
        # No allow-everything fallback: unknown fields are prohibited
        return Allowance.PROHIBITED

    def names_with(self, allowance: Allowance) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters if p.allowance is allowance)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "semantics": self.semantics.value,
            "class": self.class_name,
            "parameters": [
                {"name": p.name, "allowance": p.allowance.value} for p in self.parameters
            ],
        }


@dataclass(frozen=True)
class ParameterSet:
    """
    Function parameters validated against an operation contract.

    ``identity`` holds the value of ``identity_field`` (the key for natural
    keys, the class's identity field for derived keys); ``values`` holds every
    other submitted field, unchanged.
    """

    class_name: str
    kind: OperationKind
    identity_field: str
    identity: Any
    values: Dict[str, Any] = field(default_factory=dict)

    def as_record(self) -> Dict[str, Any]:
        return {self.identity_field: self.identity, **self.values}


class ParameterAllowanceResolver:
    """Builds read picklists and mutation contracts from a registry."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self.registry = registry

    def resolve_read_metadata(self, class_name: str, can_filter: bool = False) -> FieldPicklist:
        schema = self.registry.get_schema(class_name)
        key = self.registry.get_key_field(class_name)

        readable = [p for p in schema.properties if p.name == key] + [
            p for p in schema.properties if p.has(Capability.IDM) and p.name != key
        ]
        fields = [
            PicklistField(name=p.name, description=p.summary() or "Read")
            for p in readable
        ]
        if can_filter:
            fields.append(
                PicklistField(name=FILTER_FIELD, description="Filter expression")
            )
        return FieldPicklist(
            class_name=class_name,
            fields=tuple(fields),
            default_selection=self.default_selection(schema),
            can_filter=can_filter,
        )

    def default_selection(self, schema: EntityClassSchema) -> Tuple[str, ...]:
        """Key first, then every ``default`` field in registry order."""
        key = schema.key_field
        return (key,) + tuple(
            name for name in schema.with_capability(Capability.DEFAULT) if name != key
        )

    def resolve_read_selection(
        self, class_name: str, requested: Optional[Sequence[str]]
    ) -> Tuple[str, ...]:
        """
        Normalize a requested property list for a read.

        An empty request selects the default fields. The key always comes
        first and appears once. Fields the class does not expose for reads
        are rejected.
        """
        schema = self.registry.get_schema(class_name)
        if not requested:
            return self.default_selection(schema)

        key = schema.key_field
        readable = set(schema.with_capability(Capability.IDM)) | {key}
        unknown = [name for name in requested if name not in readable]
        if unknown:
            raise ProhibitedParameterError(
                f"Properties not readable on {class_name}: {', '.join(unknown)}",
                class_name=class_name,
                operation=Semantics.READ.value,
                parameters=unknown,
            )

        selection = [key]
        for name in requested:
            if name not in selection:
                selection.append(name)
        return tuple(selection)

    def resolve_operation_contract(
        self, class_name: str, kind: OperationKind
    ) -> OperationContract:
        schema = self.registry.get_schema(class_name)
        key = self.registry.get_key_field(class_name)
        promoted = schema.mandatory_overrides.get(kind, ())
        capability = kind.capability

        ordered = [schema.get(key)] + [p for p in schema.properties if p.name != key]
        parameters: List[ContractParameter] = []
        for prop in ordered:
            if prop is None:
                continue
            if prop.is_key:
                # Derived keys are computed from the record; created objects
                # receive their key from the remote side
                assigned = schema.derived_key or kind.semantics is Semantics.CREATE
                allowance = Allowance.PROHIBITED if assigned else Allowance.MANDATORY
            elif prop.name in promoted:
                allowance = Allowance.MANDATORY
            elif capability is not None and prop.has(capability):
                allowance = Allowance.OPTIONAL
            else:
                allowance = Allowance.PROHIBITED
            parameters.append(ContractParameter(name=prop.name, allowance=allowance))

        return OperationContract(
            class_name=class_name,
            kind=kind,
            semantics=kind.semantics,
            parameters=tuple(parameters),
        )

    def validate(
        self, class_name: str, kind: OperationKind, params: Mapping[str, Any]
    ) -> ParameterSet:
        """
        Check submitted function parameters against the operation contract.

        Raises:
            ProhibitedParameterError: A prohibited or unknown field is present
            MissingMandatoryParameterError: A mandatory field is absent
        """
        contract = self.resolve_operation_contract(class_name, kind)

        prohibited = [
            name for name in params if contract.allowance_of(name) is Allowance.PROHIBITED
        ]
        if prohibited:
            raise ProhibitedParameterError(
                f"Parameters not allowed for {kind.value} on {class_name}: "
                f"{', '.join(prohibited)}",
                class_name=class_name,
                operation=kind.value,
                parameters=prohibited,
            )

        missing = [
            name
            for name in contract.names_with(Allowance.MANDATORY)
            if params.get(name) is None or params.get(name) == ""
        ]
        if missing:
            raise MissingMandatoryParameterError(
                f"Mandatory parameters missing for {kind.value} on {class_name}: "
                f"{', '.join(missing)}",
                class_name=class_name,
                operation=kind.value,
                parameters=missing,
            )

        schema = self.registry.get_schema(class_name)
        identity_field = (
            schema.identity_field if schema.derived_key else schema.key_field
        ) or schema.key_field
        values = {k: v for k, v in params.items() if k != identity_field}
        return ParameterSet(
            class_name=class_name,
            kind=kind,
            identity_field=identity_field,
            identity=params.get(identity_field),
            values=values,
        )
