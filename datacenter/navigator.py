"""
Hierarchical scoped navigator: the page-level container that owns the scope,
the per-level collections, the add/edit form and the delete confirmation.

The Streamlit pages keep one navigator per hierarchy in st.session_state and
only ever talk to it; nothing in here imports streamlit.
"""
from __future__ import annotations

import logging
from typing import List, Mapping, Optional

from datacenter.api import ApiClient, DataCenterError
from datacenter.cache import ResponseCache
from datacenter.confirm import ConfirmationController
from datacenter.forms import CrudFormController, Handler, HandlerKey
from datacenter.hierarchy import Hierarchy, LevelSpec
from datacenter.loader import RemoteCollectionLoader
from datacenter.models import Crumb, DrillDownModel, Entity, FormSession, Operation, ParentIds
from datacenter.notify import Notifier
from datacenter.scope import ScopeState

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def filter_rows(rows: List[Entity], query: str) -> List[Entity]:
    """Case-insensitive name/code match; keeps API order."""
    q = (query or "").strip().lower()
    if not q:
        return list(rows)
    return [r for r in rows if q in r.name.lower() or (r.code and q in r.code.lower())]


class HierarchyNavigator:
    def __init__(
        self,
        hierarchy: Hierarchy,
        client: ApiClient,
        cache: Optional[ResponseCache] = None,
        notifier: Optional[Notifier] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.hierarchy = hierarchy
        self.client = client
        self.notifier = notifier or Notifier()
        self.page_size = page_size
        self.scope = ScopeState(hierarchy)
        self.loader = RemoteCollectionLoader(hierarchy, client, cache, self.notifier)
        self.form = CrudFormController(hierarchy, self._handlers(), on_saved=self._after_save)
        self.confirmation = ConfirmationController()

    # ---------------- where are we ----------------
    def current_level(self) -> LevelSpec:
        deepest = self.scope.deepest()
        if deepest is None:
            return self.hierarchy.root
        return self.hierarchy.child_of(deepest) or self.hierarchy.spec(deepest)

    def _parent_id_for(self, level: LevelSpec) -> Optional[str]:
        parent = self.hierarchy.parent_of(level.key)
        return self.scope.get(parent.key) if parent is not None else None

    def sync(self) -> None:
        """Make sure the collection for the current level is loaded (once per parent)."""
        level = self.current_level()
        pid = self._parent_id_for(level)
        st = self.loader.state(level.key)
        if self.loader.is_loaded(level.key, pid):
            return
        if st.error and st.parent_id == pid:
            # failed already; wait for an explicit retry
            return
        self.loader.load(level.key, pid)

    def refresh(self) -> None:
        level = self.current_level()
        pid = self._parent_id_for(level)
        self.loader.invalidate(level.key, pid)
        self.loader.load(level.key, pid, force=True)

    # ---------------- drill-down ----------------
    def open(self, level: str, entity: Entity) -> bool:
        if not self.scope.select(level, entity):
            return False
        self.loader.clear_below(level)
        child = self.hierarchy.child_of(level)
        if child is not None:
            self.loader.load(child.key, entity.id)
        return True

    def view(self, query: str = "", limit: Optional[int] = None) -> DrillDownModel:
        level = self.current_level()
        st = self.loader.state(level.key)
        parent = self.hierarchy.parent_of(level.key)
        parent_ent = self.scope.entity(parent.key) if parent is not None else None
        title = f"{level.plural} in {parent_ent.name}" if parent_ent else level.plural

        matches = filter_rows(st.data, query)
        limit = self.page_size if limit is None else max(0, limit)
        shown = matches[:limit]
        return DrillDownModel(
            level=level.key,
            title=title,
            rows=shown,
            total=len(matches),
            shown=len(shown),
            loading=st.loading,
            error=st.error,
            empty=not st.data and not st.loading,
            can_open=not self.hierarchy.is_leaf(level.key),
            parent_ids=self.scope.parent_ids(level.key),
            empty_message=f"No {level.plural.lower()} yet.",
        )

    # ---------------- breadcrumbs / reset ----------------
    def breadcrumbs(self) -> List[Crumb]:
        """Root plus one crumb per ancestor of the list on screen; the deepest selection is that list."""
        crumbs = [Crumb(f"View All {self.hierarchy.root.plural}", None)]
        deepest = self.scope.deepest()
        for lv in self.hierarchy:
            ent = self.scope.entity(lv.key)
            if ent is None or lv.key == deepest:
                break
            crumbs.append(Crumb(f"Back to {ent.name}", lv.key))
        return crumbs

    def _close_overlays(self) -> None:
        self.form.cancel()
        self.confirmation.cancel()

    def reset_to_root(self) -> None:
        self.scope.reset_to_root()
        self.loader.clear_below(self.hierarchy.root.key)
        self._close_overlays()

    def reset_below(self, level: str) -> None:
        self.scope.reset_below(level)
        self.loader.clear_below(level)
        self._close_overlays()

    def back_to(self, level: Optional[str]) -> None:
        if level is None:
            self.reset_to_root()
        else:
            self.reset_below(level)
        self.sync()

    # ---------------- create / edit ----------------
    def start_create(self) -> None:
        level = self.current_level()
        self.form.open_create(level.key, self.scope.parent_ids(level.key))

    def start_edit(self, level: str, entity: Entity) -> None:
        self.form.open_edit(level, entity, self.scope.parent_ids(level))

    def _handlers(self) -> Mapping[HandlerKey, Handler]:
        handlers = {}
        for spec in self.hierarchy:
            handlers[(spec.key, Operation.CREATE)] = (
                lambda values, parents, data, spec=spec: self.client.create(spec, values, parents)
            )
            handlers[(spec.key, Operation.EDIT)] = (
                lambda values, parents, data, spec=spec: self.client.update(spec, data.id, values, parents)
            )
        return handlers

    def _after_save(self, session: FormSession) -> None:
        spec = self.hierarchy.spec(session.entity_type)
        parent = self.hierarchy.parent_of(spec.key)
        pid = session.parent_ids.get(parent.key) if parent is not None else None
        self.loader.invalidate(spec.key, pid)
        self.loader.load(spec.key, pid, force=True)

        # keep breadcrumb labels in step with a renamed selection
        if session.operation == Operation.EDIT and session.data is not None:
            fresh = next((r for r in self.loader.rows(spec.key) if r.id == session.data.id), None)
            if fresh is not None:
                self.scope.refresh(spec.key, fresh)

        verb = "created" if session.operation == Operation.CREATE else "updated"
        self.notifier.success(f"{spec.label} {verb}.")

    # ---------------- delete ----------------
    def request_delete(self, level: str, entity: Entity) -> None:
        spec = self.hierarchy.spec(level)
        parent_ids = self.scope.parent_ids(level)
        self.confirmation.request(
            f"Are you sure you want to delete this {spec.label.lower()}? This action cannot be undone.",
            lambda: self._delete(spec, entity, parent_ids),
        )

    def _delete(self, spec: LevelSpec, entity: Entity, parent_ids: ParentIds) -> bool:
        try:
            self.client.delete(spec, entity.id, parent_ids)
        except DataCenterError as e:
            logger.error("delete %s %s failed: %s", spec.key, entity.id, e)
            self.notifier.error(str(e) or f"Could not delete {spec.label.lower()}.")
            return False

        # the scope must not keep pointing into the removed subtree
        if self.scope.get(spec.key) == entity.id:
            self.scope.reset_from(spec.key)
            self.loader.clear_below(spec.key)
            self.form.cancel()

        parent = self.hierarchy.parent_of(spec.key)
        pid = parent_ids.get(parent.key) if parent is not None else None
        self.loader.invalidate(spec.key, pid)
        self.loader.load(spec.key, pid, force=True)
        self.notifier.success(f"{spec.label} deleted.")
        return True
