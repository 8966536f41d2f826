"""
Per-level collection loading.

Each hierarchy level has its own LevelState so switching a parent never
corrupts an unrelated level. Requests are sequenced per level: only the
ticket handed out last may commit, so a slow response for a parent the user
already left is dropped on arrival.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from datacenter.api import ApiClient, DataCenterError, RequestCancelled
from datacenter.cache import ResponseCache
from datacenter.hierarchy import Hierarchy
from datacenter.models import Entity, LevelState
from datacenter.notify import Notifier

logger = logging.getLogger(__name__)


@dataclass
class LoadTicket:
    level: str
    parent_id: Optional[str]
    seq: int
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


def cache_key(level: str, parent_id: Optional[str]) -> str:
    return f"{level}:{parent_id or 'root'}:v1"


class RemoteCollectionLoader:
    def __init__(
        self,
        hierarchy: Hierarchy,
        client: ApiClient,
        cache: Optional[ResponseCache] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.hierarchy = hierarchy
        self.client = client
        self.cache = cache
        self.notifier = notifier or Notifier()
        self._states: Dict[str, LevelState] = {lv.key: LevelState() for lv in hierarchy}
        self._inflight: Dict[str, LoadTicket] = {}

    def state(self, level: str) -> LevelState:
        return self._states[level]

    def rows(self, level: str) -> List[Entity]:
        return list(self._states[level].data)

    def is_loaded(self, level: str, parent_id: Optional[str]) -> bool:
        st = self._states[level]
        return st.loaded and st.parent_id == parent_id

    # ---------------- sequencing ----------------
    def request(self, level: str, parent_id: Optional[str]) -> LoadTicket:
        """Start a load for `level` under `parent_id`; supersedes anything in flight there or below."""
        st = self._states[level]
        self._cancel_from(level)
        if st.parent_id != parent_id:
            # parent moved: never show the old parent's children, even briefly
            self._clear_levels([level] + [lv.key for lv in self.hierarchy.deeper(level)])
        st.parent_id = parent_id
        st.seq += 1
        st.loading = True
        st.error = None
        ticket = LoadTicket(level=level, parent_id=parent_id, seq=st.seq)
        self._inflight[level] = ticket
        return ticket

    def _is_current(self, ticket: LoadTicket) -> bool:
        st = self._states[ticket.level]
        return (not ticket.cancelled) and st.seq == ticket.seq and st.parent_id == ticket.parent_id

    def commit(self, ticket: LoadTicket, rows: List[Entity]) -> bool:
        if not self._is_current(ticket):
            logger.debug("dropping stale %s response for parent %s", ticket.level, ticket.parent_id)
            return False
        st = self._states[ticket.level]
        st.data = list(rows)
        st.error = None
        st.loading = False
        st.loaded = True
        self._inflight.pop(ticket.level, None)
        return True

    def fail(self, ticket: LoadTicket, message: str) -> bool:
        if not self._is_current(ticket):
            return False
        st = self._states[ticket.level]
        # last-known-good rows stay visible
        st.error = message
        st.loading = False
        self._inflight.pop(ticket.level, None)
        logger.error("loading %s failed: %s", ticket.level, message)
        self.notifier.error(message)
        return True

    # ---------------- loading ----------------
    def load(self, level: str, parent_id: Optional[str] = None, force: bool = False) -> bool:
        """Fetch `level` under `parent_id` and commit it. Returns True when rows were committed."""
        spec = self.hierarchy.spec(level)
        parent = self.hierarchy.parent_of(level)
        if parent is not None and not parent_id:
            # no parent selected: nothing to show at this depth
            self.clear_from(level)
            return False

        ticket = self.request(level, parent_id)
        key = cache_key(level, parent_id)
        if self.cache is not None and not force:
            hit = self.cache.get(key)
            if hit is not None:
                return self.commit(ticket, hit[0])

        try:
            rows = self.client.list_collection(spec, parent_id, cancel=ticket.cancel_event)
        except RequestCancelled:
            logger.debug("load of %s for %s cancelled", level, parent_id)
            return False
        except DataCenterError as e:
            self.fail(ticket, str(e) or f"Failed to load {spec.plural.lower()}")
            return False

        if self.cache is not None:
            self.cache.set(key, rows)
        return self.commit(ticket, rows)

    def reload(self, level: str) -> bool:
        st = self._states[level]
        return self.load(level, st.parent_id, force=True)

    # ---------------- clearing ----------------
    def invalidate(self, level: str, parent_id: Optional[str]) -> None:
        if self.cache is not None:
            self.cache.delete(cache_key(level, parent_id))

    def clear_from(self, level: str) -> None:
        """Cancel and blank `level` and every level below it."""
        self._cancel_from(level)
        keys = [lv.key for lv in self.hierarchy.from_level(level)]
        self._clear_levels(keys)
        for k in keys:
            self._states[k].parent_id = None

    def clear_below(self, level: str) -> None:
        child = self.hierarchy.child_of(level)
        if child is not None:
            self.clear_from(child.key)

    def _cancel_from(self, level: str) -> None:
        for lv in self.hierarchy.from_level(level):
            ticket = self._inflight.pop(lv.key, None)
            if ticket is not None:
                ticket.cancel()
                self._states[lv.key].loading = False

    def _clear_levels(self, keys: List[str]) -> None:
        for k in keys:
            st = self._states[k]
            st.data = []
            st.error = None
            st.loading = False
            st.loaded = False
