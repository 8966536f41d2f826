from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

# level key -> entity id, strictly nested from the root (no gaps)
ParentIds = Dict[str, str]


class Operation(str, Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass
class Entity:
    """One node of the hierarchy (county, constituency, ward, polling station, region)."""
    id: str
    name: str
    level: str
    parent_id: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return str(self.attrs.get("code") or "")

    def as_row(self) -> Dict[str, Any]:
        row = {"id": self.id, "name": self.name}
        for k, v in self.attrs.items():
            if k not in row and not isinstance(v, (list, dict)):
                row[k] = v
        return row


@dataclass
class LevelState:
    data: List[Entity] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    parent_id: Optional[str] = None
    seq: int = 0
    loaded: bool = False


@dataclass
class FormSession:
    is_open: bool = False
    entity_type: Optional[str] = None
    operation: Optional[Operation] = None
    data: Optional[Entity] = None
    parent_ids: ParentIds = field(default_factory=dict)
    error: Optional[str] = None
    pending: bool = False


def _noop() -> None:
    return None


@dataclass
class ConfirmationRequest:
    is_open: bool = False
    message: str = ""
    on_confirm: Callable[[], Any] = _noop


@dataclass
class DrillDownModel:
    level: str
    title: str
    rows: List[Entity]
    total: int
    shown: int
    loading: bool
    error: Optional[str]
    empty: bool
    can_open: bool
    parent_ids: ParentIds
    empty_message: str

    @property
    def can_load_more(self) -> bool:
        return self.shown < self.total


@dataclass(frozen=True)
class Crumb:
    label: str
    level: Optional[str]  # None means root
