"""
Entity Cache

Memoizes the full result of expensive "list all" calls so dependent reads
(group membership, per-mailbox permissions and auto-reply settings) do not
repeat them. Collections are filled on demand, never expire and are emptied
only by an explicit ``clear``.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)


class EntityType(Enum):
    MAILBOXES = "Mailboxes"
    DISTRIBUTION_GROUPS = "DistributionGroups"


@dataclass
class CachedCollection:
    items: List[Dict[str, Any]] = field(default_factory=list)
    filled: bool = False


Fetcher = Callable[[], Iterable[Dict[str, Any]]]


class EntityCache:
    """Per entity type collections with a fill lock each."""

    def __init__(self) -> None:
        self._collections: Dict[EntityType, CachedCollection] = {
            entity_type: CachedCollection() for entity_type in EntityType
        }
        self._locks: Dict[EntityType, threading.Lock] = {
            entity_type: threading.Lock() for entity_type in EntityType
        }

    def is_filled(self, entity_type: EntityType) -> bool:
        return self._collections[entity_type].filled

    def fill(self, entity_type: EntityType, fetcher: Fetcher) -> None:
        """
        Fill the collection from ``fetcher`` unless it is already filled.

        Concurrent callers wait on the type's lock, so only one of them runs
        the fetch. A failing fetch leaves the collection unfilled and
        propagates the error.
        """
        lock = self._locks[entity_type]
        with lock:
            collection = self._collections[entity_type]
            if collection.filled:
                return
            items = list(fetcher())
            collection.items = items
            collection.filled = True
            logger.info(f"Cached {len(items)} {entity_type.value}")

    ensure_filled = fill

    def refill(self, entity_type: EntityType, items: Iterable[Dict[str, Any]]) -> None:
        """Replace the collection with a complete listing just fetched."""
        with self._locks[entity_type]:
            collection = self._collections[entity_type]
            collection.items = list(items)
            collection.filled = True
            logger.debug(f"Refilled {entity_type.value} cache ({len(collection.items)} items)")

    def snapshot(self, entity_type: EntityType) -> List[Dict[str, Any]]:
        return list(self._collections[entity_type].items)

    def clear(self, entity_type: EntityType) -> None:
        with self._locks[entity_type]:
            self._collections[entity_type] = CachedCollection()
            logger.debug(f"Cleared {entity_type.value} cache")

    def clear_all(self) -> None:
        for entity_type in EntityType:
            self.clear(entity_type)
