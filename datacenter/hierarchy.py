"""
Fixed-depth hierarchies served by the PHP API.

Each level knows:
  - where its collection lives (endpoint + the query param carrying the parent id)
  - which API fields hold the id / name (the API is not consistent across levels)
  - which form fields it accepts when created or edited
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from pydantic import ValidationError

from datacenter.models import Entity
from datacenter.schemas import (
    ConstituencyRow,
    CountyRow,
    LevelRow,
    PollingStationRow,
    RegionRow,
    WardRow,
)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    required: bool = False
    kind: str = "text"  # "text" | "int"


NAME_FIELD = FieldSpec("name", "Name", required=True)
CODE_FIELD = FieldSpec("code", "Code")


@dataclass(frozen=True)
class LevelSpec:
    key: str
    label: str
    plural: str
    list_endpoint: str
    parent_param: Optional[str] = None
    # which API columns hold the id / name / code
    row_model: Type[LevelRow] = LevelRow
    fields: Tuple[FieldSpec, ...] = (NAME_FIELD, CODE_FIELD)
    # mutation endpoints default to add_<key>.php / update_<key>.php / delete_<key>.php
    endpoints: Mapping[str, str] = field(default_factory=dict)

    def endpoint(self, verb: str) -> str:
        return self.endpoints.get(verb) or f"{verb}_{self.key}.php"

    def required_fields(self) -> List[str]:
        return [f.name for f in self.fields if f.required]

    def normalize(self, item: Any, parent_id: Optional[str] = None) -> Optional[Entity]:
        """Map one raw API row onto an Entity; rows without id or name are dropped."""
        try:
            row = self.row_model.model_validate(item)
        except ValidationError:
            return None
        return row.to_entity(self.key, parent_id)

    def normalize_many(self, items: Iterable[Any], parent_id: Optional[str] = None) -> List[Entity]:
        out = []
        for it in items or []:
            ent = self.normalize(it, parent_id)
            if ent is not None:
                out.append(ent)
        return out


class Hierarchy:
    """Ordered levels, root first."""

    def __init__(self, name: str, levels: Iterable[LevelSpec]):
        self.name = name
        self.levels: List[LevelSpec] = list(levels)
        if not self.levels:
            raise ValueError("a hierarchy needs at least one level")
        self._index: Dict[str, int] = {lv.key: i for i, lv in enumerate(self.levels)}

    def __contains__(self, key: str) -> bool:
        return key in self._index

    def __iter__(self):
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    def spec(self, key: str) -> LevelSpec:
        try:
            return self.levels[self._index[key]]
        except KeyError:
            raise KeyError(f"unknown level {key!r} in {self.name} hierarchy") from None

    def index(self, key: str) -> int:
        return self._index[key]

    @property
    def root(self) -> LevelSpec:
        return self.levels[0]

    @property
    def leaf(self) -> LevelSpec:
        return self.levels[-1]

    def is_leaf(self, key: str) -> bool:
        return self.index(key) == len(self.levels) - 1

    def parent_of(self, key: str) -> Optional[LevelSpec]:
        i = self.index(key)
        return self.levels[i - 1] if i > 0 else None

    def child_of(self, key: str) -> Optional[LevelSpec]:
        i = self.index(key)
        return self.levels[i + 1] if i + 1 < len(self.levels) else None

    def deeper(self, key: str) -> List[LevelSpec]:
        """Levels strictly below `key`."""
        return self.levels[self.index(key) + 1:]

    def from_level(self, key: str) -> List[LevelSpec]:
        """`key` and every level below it."""
        return self.levels[self.index(key):]

    def ancestors(self, key: str) -> List[LevelSpec]:
        return self.levels[: self.index(key)]


# ---------------- Canonical hierarchies ----------------
COUNTY = LevelSpec(
    key="county",
    label="County",
    plural="Counties",
    list_endpoint="get_counties.php",
    row_model=CountyRow,
)

CONSTITUENCY = LevelSpec(
    key="constituency",
    label="Constituency",
    plural="Constituencies",
    list_endpoint="get_constituencies.php",
    parent_param="county_code",
    row_model=ConstituencyRow,
)

WARD = LevelSpec(
    key="ward",
    label="Ward",
    plural="Wards",
    list_endpoint="get_wards.php",
    parent_param="const_code",
    row_model=WardRow,
)

POLLING_STATION = LevelSpec(
    key="polling_station",
    label="Polling Station",
    plural="Polling Stations",
    list_endpoint="get_polling_stations_for_roles.php",
    parent_param="ward_code",
    row_model=PollingStationRow,
    fields=(NAME_FIELD, FieldSpec("registered_voters", "Registered voters", kind="int")),
)

REGION = LevelSpec(
    key="region",
    label="Region",
    plural="Regions",
    list_endpoint="regions_api.php",
    row_model=RegionRow,
)

REGION_COUNTY = LevelSpec(
    key="county",
    label="County",
    plural="Counties",
    list_endpoint="counties_by_region_api.php",
    parent_param="region_id",
    row_model=CountyRow,
)

GEO_HIERARCHY = Hierarchy("geo", [COUNTY, CONSTITUENCY, WARD, POLLING_STATION])
REGION_HIERARCHY = Hierarchy("region", [REGION, REGION_COUNTY])
