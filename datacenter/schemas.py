"""
Pydantic shapes for what the PHP API sends back.

The envelope is a union discriminated on `status`; rows are one model per
level because every level names its id / name columns differently.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)

from datacenter.models import Entity

GENERIC_ERROR = "Something went wrong. Please try again."


def _text(v: Any) -> str:
    return "" if v is None else str(v)


# -------- Envelope --------
class ApiSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    data: Any = None
    message: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, v: Any) -> str:
        return _text(v).strip().lower()

    @field_validator("message", mode="before")
    @classmethod
    def _message_text(cls, v: Any) -> str:
        return _text(v)


class ApiFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "error"
    message: str = GENERIC_ERROR

    @field_validator("message", mode="before")
    @classmethod
    def _message_or_generic(cls, v: Any) -> str:
        return _text(v) or GENERIC_ERROR


def _envelope_tag(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    status = _text(payload.get("status")).strip().lower()
    # anything that is not an explicit success is treated as an error
    return "success" if status == "success" else "error"


ApiEnvelope = Annotated[
    Union[Annotated[ApiSuccess, Tag("success")], Annotated[ApiFailure, Tag("error")]],
    Discriminator(_envelope_tag),
]

ENVELOPE = TypeAdapter(ApiEnvelope)

# a collection's `data`: absent, or a list of rows (rows are checked one by one)
ROWS = TypeAdapter(Optional[list])


# -------- Rows --------
class LevelRow(BaseModel):
    """One raw collection row; unknown columns are kept as extras."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    name: str
    code: Optional[str] = Field(None, validation_alias=AliasChoices("code"))

    @model_validator(mode="before")
    @classmethod
    def _drop_blanks(cls, data: Any) -> Any:
        # a null / empty column should not shadow the next alias
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("blank name")
        return v

    def to_entity(self, level: str, parent_id: Optional[str] = None) -> Entity:
        attrs = dict(self.model_extra or {})
        if self.code:
            attrs["code"] = self.code
        return Entity(id=self.id, name=self.name, level=level, parent_id=parent_id, attrs=attrs)


class CountyRow(LevelRow):
    id: str = Field(validation_alias=AliasChoices("county_code", "county_id", "id"))
    name: str = Field(validation_alias=AliasChoices("county_name", "name"))
    code: Optional[str] = Field(None, validation_alias=AliasChoices("code", "county_code"))


class ConstituencyRow(LevelRow):
    id: str = Field(validation_alias=AliasChoices("const_code", "constituency_code", "constituency_id", "id"))
    name: str = Field(validation_alias=AliasChoices("constituency_name", "name"))
    code: Optional[str] = Field(None, validation_alias=AliasChoices("code", "const_code", "constituency_code"))


class WardRow(LevelRow):
    id: str = Field(validation_alias=AliasChoices("ward_code", "ward_id", "id"))
    name: str = Field(validation_alias=AliasChoices("ward_name", "name"))
    code: Optional[str] = Field(None, validation_alias=AliasChoices("code", "ward_code"))


class PollingStationRow(LevelRow):
    id: str = Field(validation_alias=AliasChoices("polling_station_id", "station_id", "id", "code"))
    name: str = Field(
        validation_alias=AliasChoices("polling_station_name", "name", "station_name", "label", "description")
    )


class RegionRow(LevelRow):
    id: str = Field(validation_alias=AliasChoices("region_id", "id"))
    name: str = Field(validation_alias=AliasChoices("region_name", "name"))
