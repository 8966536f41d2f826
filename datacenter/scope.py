from __future__ import annotations

from typing import Dict, Optional

from datacenter.hierarchy import Hierarchy
from datacenter.models import Entity, ParentIds


class ScopeState:
    """
    Where the user currently is in a hierarchy.

    Invariant: a level is only ever set when every level above it is set.
    The leaf level is never a scope (there is nothing below it to show).
    """

    def __init__(self, hierarchy: Hierarchy):
        self.hierarchy = hierarchy
        self._selected: Dict[str, Entity] = {}

    def select(self, level: str, entity: Entity) -> bool:
        if level not in self.hierarchy or self.hierarchy.is_leaf(level):
            return False
        parent = self.hierarchy.parent_of(level)
        if parent is not None and parent.key not in self._selected:
            return False
        self._selected[level] = entity
        self._drop(self.hierarchy.deeper(level))
        return True

    def refresh(self, level: str, entity: Entity) -> bool:
        """Swap in a fresher copy of the selected entity (same id) without touching deeper levels."""
        current = self._selected.get(level)
        if current is None or current.id != entity.id:
            return False
        self._selected[level] = entity
        return True

    def reset_to_root(self) -> None:
        self._selected.clear()

    def reset_below(self, level: str) -> None:
        self._drop(self.hierarchy.deeper(level))

    def reset_from(self, level: str) -> None:
        """Clear `level` itself and everything below it."""
        self._drop(self.hierarchy.from_level(level))

    def _drop(self, levels) -> None:
        for lv in levels:
            self._selected.pop(lv.key, None)

    # ---- accessors ----
    def get(self, level: str) -> Optional[str]:
        ent = self._selected.get(level)
        return ent.id if ent else None

    def entity(self, level: str) -> Optional[Entity]:
        return self._selected.get(level)

    def deepest(self) -> Optional[str]:
        for lv in reversed(self.hierarchy.levels):
            if lv.key in self._selected:
                return lv.key
        return None

    def selection(self) -> ParentIds:
        return {lv.key: self._selected[lv.key].id for lv in self.hierarchy if lv.key in self._selected}

    def parent_ids(self, level: str) -> ParentIds:
        """The ids needed to place an entity of `level` (its selected ancestors)."""
        return {lv.key: self._selected[lv.key].id
                for lv in self.hierarchy.ancestors(level) if lv.key in self._selected}

    def is_empty(self) -> bool:
        return not self._selected

    def __repr__(self) -> str:
        return f"ScopeState({self.selection()!r})"
