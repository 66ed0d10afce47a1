"""
Schema data model: capabilities, property descriptors and entity class schemas.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class Capability(Enum):
    """
    Marker on a field telling which operations may read or write it.

    DEFAULT: returned by reads when no properties are requested (implies IDM)
    IDM: exposed to the orchestrator for reads
    KEY: the correlation key of the entity class
    SET/CREATE/ENABLE/DISABLE/ADD/REMOVE: writable by the matching operation
    """

    DEFAULT = "default"
    IDM = "idm"
    KEY = "key"
    SET = "set"
    CREATE = "create"
    ENABLE = "enable"
    DISABLE = "disable"
    ADD = "add"
    REMOVE = "remove"


class Semantics(Enum):
    """CRUD semantics reported to the orchestrator."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Allowance(Enum):
    """Per-field classification for a mutating operation."""

    MANDATORY = "mandatory"
    OPTIONAL = "optional"
    PROHIBITED = "prohibited"


class OperationKind(Enum):
    """Mutating operation kinds and the capability each one writes."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ENABLE = "enable"
    DISABLE = "disable"
    ADD = "add"
    REMOVE = "remove"

    @property
    def semantics(self) -> Semantics:
        return _KIND_SEMANTICS[self]

    @property
    def capability(self) -> Optional[Capability]:
        return _KIND_CAPABILITY[self]

    @property
    def requires_confirmation_override(self) -> bool:
        """Whether the remote command would prompt without ``Confirm: False``."""
        return self in (OperationKind.DELETE, OperationKind.DISABLE, OperationKind.REMOVE)


_KIND_SEMANTICS: Dict[OperationKind, Semantics] = {
    OperationKind.CREATE: Semantics.CREATE,
    OperationKind.UPDATE: Semantics.UPDATE,
    OperationKind.DELETE: Semantics.DELETE,
    OperationKind.ENABLE: Semantics.UPDATE,
    OperationKind.DISABLE: Semantics.UPDATE,
    OperationKind.ADD: Semantics.CREATE,
    OperationKind.REMOVE: Semantics.DELETE,
}

_KIND_CAPABILITY: Dict[OperationKind, Optional[Capability]] = {
    OperationKind.CREATE: Capability.CREATE,
    OperationKind.UPDATE: Capability.SET,
    OperationKind.DELETE: None,
    OperationKind.ENABLE: Capability.ENABLE,
    OperationKind.DISABLE: Capability.DISABLE,
    OperationKind.ADD: Capability.ADD,
    OperationKind.REMOVE: Capability.REMOVE,
}


# Display order used when summarising capabilities for the orchestrator UI
CAPABILITY_LABELS: Tuple[Tuple[Capability, str], ...] = (
    (Capability.DEFAULT, "Default"),
    (Capability.KEY, "Key"),
    (Capability.SET, "Set"),
    (Capability.CREATE, "Create"),
    (Capability.ENABLE, "Enable"),
    (Capability.DISABLE, "Disable"),
    (Capability.ADD, "Add"),
    (Capability.REMOVE, "Remove"),
)


@dataclass(frozen=True)
class PropertyDescriptor:
    """A single field of an entity class and what it may be used for."""

    name: str
    capabilities: FrozenSet[Capability]

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def is_key(self) -> bool:
        return Capability.KEY in self.capabilities

    def summary(self) -> str:
        """Human readable capability summary, e.g. ``Default | Key``."""
        labels = [label for cap, label in CAPABILITY_LABELS if cap in self.capabilities]
        return " | ".join(labels)


@dataclass(frozen=True)
class EntityClassSchema:
    """
    Ordered field table of one entity class.

    Attributes:
        class_name: Entity class name (e.g. ``Mailbox``)
        properties: Field descriptors in registry order
        derived_key: True when the key is synthesized from the record
        identity_field: Field sent to the remote side as ``Identity`` when the
            key is derived (for natural keys the key itself is used)
        mandatory_overrides: Per operation kind, fields promoted to mandatory
    """

    class_name: str
    properties: Tuple[PropertyDescriptor, ...]
    derived_key: bool = False
    identity_field: Optional[str] = None
    mandatory_overrides: Dict[OperationKind, Tuple[str, ...]] = field(
        default_factory=dict
    )

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.properties)

    @property
    def key_field(self) -> str:
        keys = [p.name for p in self.properties if p.is_key]
        return keys[0]

    def get(self, name: str) -> Optional[PropertyDescriptor]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def with_capability(self, capability: Capability) -> Tuple[str, ...]:
        return tuple(p.name for p in self.properties if p.has(capability))
