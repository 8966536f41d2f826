from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from datacenter.api import DataCenterError
from datacenter.hierarchy import Hierarchy
from datacenter.models import Entity, FormSession, Operation, ParentIds

logger = logging.getLogger(__name__)

# handler(values, parent_ids, data) -> anything; raises DataCenterError on failure
Handler = Callable[[Mapping[str, Any], ParentIds, Optional[Entity]], Any]
HandlerKey = Tuple[str, Operation]


class CrudFormController:
    """
    Add/edit form lifecycle for one entity type at a time.

        Closed --open_create/open_edit--> Open --submit ok--> Closed
                                          Open --submit err--> Open (error shown)
                                          Open --cancel--> Closed
    """

    def __init__(
        self,
        hierarchy: Hierarchy,
        handlers: Mapping[HandlerKey, Handler],
        on_saved: Optional[Callable[[FormSession], None]] = None,
    ):
        self.hierarchy = hierarchy
        self.handlers = dict(handlers)
        self.on_saved = on_saved
        self.session = FormSession()

    @property
    def is_open(self) -> bool:
        return self.session.is_open

    def open_create(self, entity_type: str, parent_ids: Optional[ParentIds] = None) -> None:
        self.hierarchy.spec(entity_type)
        self.session = FormSession(
            is_open=True,
            entity_type=entity_type,
            operation=Operation.CREATE,
            data=None,
            parent_ids=dict(parent_ids or {}),
        )

    def open_edit(self, entity_type: str, data: Entity, parent_ids: Optional[ParentIds] = None) -> None:
        self.hierarchy.spec(entity_type)
        self.session = FormSession(
            is_open=True,
            entity_type=entity_type,
            operation=Operation.EDIT,
            data=data,
            parent_ids=dict(parent_ids or {}),
        )

    def cancel(self) -> None:
        self.session = FormSession()

    def initial_values(self) -> Dict[str, Any]:
        s = self.session
        if not s.is_open or s.entity_type is None:
            return {}
        spec = self.hierarchy.spec(s.entity_type)
        out: Dict[str, Any] = {}
        for f in spec.fields:
            if s.data is None:
                out[f.name] = ""
            elif f.name == "name":
                out[f.name] = s.data.name
            else:
                v = s.data.attrs.get(f.name)
                out[f.name] = "" if v is None else str(v)
        return out

    # ---------------- validation ----------------
    def validate(self, values: Mapping[str, Any]) -> Dict[str, str]:
        s = self.session
        if not s.is_open or s.entity_type is None:
            return {}
        spec = self.hierarchy.spec(s.entity_type)
        errors: Dict[str, str] = {}
        for f in spec.fields:
            raw = values.get(f.name)
            text = "" if raw is None else str(raw).strip()
            if f.required and not text:
                errors[f.name] = f"{f.label} is required."
            elif f.kind == "int" and text:
                try:
                    n = int(text)
                except ValueError:
                    errors[f.name] = f"{f.label} must be a whole number."
                    continue
                if n < 0:
                    errors[f.name] = f"{f.label} cannot be negative."
        return errors

    def missing_parents(self) -> list:
        s = self.session
        if s.entity_type is None:
            return []
        return [lv.key for lv in self.hierarchy.ancestors(s.entity_type) if not s.parent_ids.get(lv.key)]

    def can_submit(self, values: Mapping[str, Any]) -> bool:
        s = self.session
        if not s.is_open or s.pending:
            return False
        if s.operation == Operation.EDIT and s.data is None:
            return False
        return not self.validate(values) and not self.missing_parents()

    def clean(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        spec = self.hierarchy.spec(self.session.entity_type)
        out: Dict[str, Any] = {}
        for f in spec.fields:
            raw = values.get(f.name)
            text = "" if raw is None else str(raw).strip()
            if not text and not f.required:
                continue
            out[f.name] = int(text) if f.kind == "int" else text
        return out

    # ---------------- submit ----------------
    def submit(self, values: Mapping[str, Any]) -> bool:
        if not self.can_submit(values):
            return False
        session = self.session
        handler = self.handlers.get((session.entity_type, session.operation))
        if handler is None:
            session.error = f"No handler for {session.operation.value} {session.entity_type}"
            return False

        session.pending = True
        session.error = None
        try:
            handler(self.clean(values), dict(session.parent_ids), session.data)
        except DataCenterError as e:
            session.pending = False
            session.error = str(e) or "Could not save changes."
            logger.error("%s %s failed: %s", session.operation.value, session.entity_type, session.error)
            return False

        session.pending = False
        if self.session is not session:
            # cancelled while the call was out; nothing left to close
            return True
        self.session = FormSession()
        if self.on_saved is not None:
            self.on_saved(session)
        return True
