"""Memory of which journeys were already reported to whom.

A journey is identified by the name of its lead train, and the memory is
kept per recipient and per travel date. Nothing here touches the disk: the
cache starts empty with the process and is lost on restart.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from abc import ABC, abstractmethod
from typing import Collection, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from .models import TicketSolution
from .train_filter import lead_segment_name

logger = logging.getLogger(__name__)


def cache_key(recipient: str, date: str) -> str:
    return f"{recipient}-{date}"


class NotificationStore(ABC):
    """Storage backend for notified lead-train names."""

    @abstractmethod
    def get(self, key: str) -> FrozenSet[str]:
        """Names recorded under *key* (empty if none)."""

    @abstractmethod
    def add(self, key: str, names: Iterable[str], date: Optional[str] = None) -> None:
        """Record *names* under *key*, creating the entry if needed."""

    @abstractmethod
    def contains(self, key: str, name: str) -> bool:
        ...

    @abstractmethod
    def evict_before(self, cutoff: dt.date, keep: Collection[str] = ()) -> int:
        """Drop entries dated before *cutoff*, except dates in *keep*; return count."""


class InMemoryNotificationStore(NotificationStore):
    """Dict-of-sets store living in the process."""

    def __init__(self) -> None:
        self._entries: Dict[str, Set[str]] = {}
        self._dates: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._entries.get(key, ()))

    def add(self, key: str, names: Iterable[str], date: Optional[str] = None) -> None:
        with self._lock:
            self._entries.setdefault(key, set()).update(names)
            if date is not None:
                self._dates[key] = date

    def contains(self, key: str, name: str) -> bool:
        with self._lock:
            return name in self._entries.get(key, ())

    def evict_before(self, cutoff: dt.date, keep: Collection[str] = ()) -> int:
        with self._lock:
            stale = []
            for key, raw in self._dates.items():
                if raw in keep:
                    continue
                try:
                    day = dt.date.fromisoformat(raw[:10])
                except ValueError:
                    # Unparseable dates are kept forever.
                    continue
                if day < cutoff:
                    stale.append(key)
            for key in stale:
                self._entries.pop(key, None)
                self._dates.pop(key, None)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class Deduplicator:
    """Decides which solutions are new for a recipient and date.

    ``new_for`` only reads; ``record`` only writes. The caller records the
    solutions it put into an outgoing message, before trying to deliver it.
    """

    def __init__(self, store: Optional[NotificationStore] = None) -> None:
        self.store = store if store is not None else InMemoryNotificationStore()

    def new_for(
        self, recipient: str, date: str, solutions: Sequence[TicketSolution]
    ) -> List[TicketSolution]:
        seen = self.store.get(cache_key(recipient, date))
        return [sol for sol in solutions if lead_segment_name(sol) not in seen]

    def record(
        self, recipient: str, date: str, solutions: Sequence[TicketSolution]
    ) -> None:
        names = [
            name
            for name in (lead_segment_name(sol) for sol in solutions)
            if name is not None
        ]
        self.store.add(cache_key(recipient, date), names, date=date)
        logger.debug(
            "Recorded %d journey(s) for %s on %s", len(names), recipient, date
        )

    def evict_before(self, cutoff: dt.date, keep: Collection[str] = ()) -> int:
        """Forget past dates, except those still being checked (*keep*)."""
        removed = self.store.evict_before(cutoff, keep)
        if removed:
            logger.info("Evicted %d notification entries before %s", removed, cutoff)
        return removed


__all__ = [
    "Deduplicator",
    "InMemoryNotificationStore",
    "NotificationStore",
    "cache_key",
]
