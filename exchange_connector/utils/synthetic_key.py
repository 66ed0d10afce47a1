"""
Synthetic keys for records without a natural stable identifier.

Permission and membership records are keyed by a SHA-256 digest of a
canonical JSON serialization of their identifying fields. The digest is an
opaque correlation key for the orchestrator and is never sent to the remote
service as an identity.
"""

import hashlib
import json
from typing import Any, Mapping, Optional, Sequence


def canonical_json(
    record: Mapping[str, Any],
    fields: Optional[Sequence[str]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Serialize ``record`` (or the ``fields`` subset) with stable ordering.

    A field that is absent or null takes its value from ``defaults``, so a
    record built from partial input hashes like the fully populated one.
    """
    if fields is not None:
        defaults = defaults or {}
        record = {
            name: record.get(name) if record.get(name) is not None else defaults.get(name)
            for name in fields
        }
    return json.dumps(
        record, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def synthetic_key(
    record: Mapping[str, Any],
    fields: Optional[Sequence[str]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Generate a deterministic key for a record.

    Examples:
        >>> synthetic_key({"Identity": "a", "User": "b"}) == synthetic_key({"User": "b", "Identity": "a"})
        True
    """
    return hashlib.sha256(canonical_json(record, fields, defaults).encode("utf-8")).hexdigest()
