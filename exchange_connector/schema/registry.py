"""
Property Schema Registry

Loads the static entity tables once, validates them and serves immutable
``EntityClassSchema`` instances to the resolver and the operation handlers.
Any misconfiguration is raised as ``SchemaError`` while loading.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ..exceptions import SchemaError
from .models import Capability, EntityClassSchema, OperationKind, PropertyDescriptor
from .tables import ENTITY_TABLES

logger = logging.getLogger(__name__)


def _parse_capabilities(
    class_name: str, property_name: str, tags: str
) -> FrozenSet[Capability]:
    capabilities = set()
    for token in tags.split():
        try:
            capabilities.add(Capability(token.lower()))
        except ValueError as e:
            raise SchemaError(
                f"Unknown capability '{token}' on property '{property_name}'",
                class_name=class_name,
                cause=e,
            ) from e
    if Capability.DEFAULT in capabilities:
        capabilities.add(Capability.IDM)
    return frozenset(capabilities)


def _parse_overrides(
    class_name: str, raw: Mapping[str, List[str]], names: Tuple[str, ...]
) -> Dict[OperationKind, Tuple[str, ...]]:
    overrides: Dict[OperationKind, Tuple[str, ...]] = {}
    for kind_name, fields in raw.items():
        try:
            kind = OperationKind(kind_name)
        except ValueError as e:
            raise SchemaError(
                f"Unknown operation kind '{kind_name}' in mandatory overrides",
                class_name=class_name,
                cause=e,
            ) from e
        unknown = [f for f in fields if f not in names]
        if unknown:
            raise SchemaError(
                f"Mandatory override names unknown properties: {unknown}",
                class_name=class_name,
            )
        overrides[kind] = tuple(fields)
    return overrides


def build_schema(class_name: str, table: Mapping[str, Any]) -> EntityClassSchema:
    """Parse and validate a single entity table."""
    properties: List[PropertyDescriptor] = []
    seen = set()
    for name, tags in table.get("properties", []):
        if name in seen:
            raise SchemaError(f"Duplicate property '{name}'", class_name=class_name)
        seen.add(name)
        properties.append(
            PropertyDescriptor(
                name=name, capabilities=_parse_capabilities(class_name, name, tags)
            )
        )

    keys = [p.name for p in properties if p.is_key]
    if len(keys) != 1:
        raise SchemaError(
            f"Entity class must have exactly one key property, found {len(keys)}",
            class_name=class_name,
            context={"keys": keys},
        )

    names = tuple(p.name for p in properties)
    derived_key = bool(table.get("derived_key", False))
    identity_field: Optional[str] = table.get("identity_field")
    if derived_key and identity_field not in names:
        raise SchemaError(
            "Derived-key entity class needs an identity field from its table",
            class_name=class_name,
        )

    return EntityClassSchema(
        class_name=class_name,
        properties=tuple(properties),
        derived_key=derived_key,
        identity_field=identity_field,
        mandatory_overrides=_parse_overrides(
            class_name, table.get("mandatory", {}), names
        ),
    )


class SchemaRegistry:
    """Read-only registry of entity class schemas."""

    def __init__(self, tables: Optional[Mapping[str, Mapping[str, Any]]] = None) -> None:
        tables = ENTITY_TABLES if tables is None else tables
        self._schemas: Dict[str, EntityClassSchema] = {
            name: build_schema(name, table) for name, table in tables.items()
        }
        logger.debug(f"Loaded schemas for {len(self._schemas)} entity classes")

    def class_names(self) -> Tuple[str, ...]:
        return tuple(self._schemas)

    def get_schema(self, class_name: str) -> EntityClassSchema:
        try:
            return self._schemas[class_name]
        except KeyError as e:
            raise SchemaError(
                f"Unknown entity class '{class_name}'", class_name=class_name
            ) from e

    def get_key_field(self, class_name: str) -> str:
        schema = self.get_schema(class_name)
        keys = [p.name for p in schema.properties if p.is_key]
        if len(keys) != 1:
            raise SchemaError(
                f"Entity class must have exactly one key property, found {len(keys)}",
                class_name=class_name,
            )
        return keys[0]


@lru_cache(maxsize=1)
def load_registry() -> SchemaRegistry:
    """Return the process-wide registry built from the static tables."""
    return SchemaRegistry()
