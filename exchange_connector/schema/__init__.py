"""Entity class schemas and their capability tags."""

from .models import (
    Allowance,
    Capability,
    EntityClassSchema,
    OperationKind,
    PropertyDescriptor,
    Semantics,
)
from .registry import SchemaRegistry, build_schema, load_registry

__all__ = [
    "Allowance",
    "Capability",
    "EntityClassSchema",
    "OperationKind",
    "PropertyDescriptor",
    "SchemaRegistry",
    "Semantics",
    "build_schema",
    "load_registry",
]
