import pytest

from datacenter.api import ApiSuccess
from datacenter.hierarchy import GEO_HIERARCHY
from datacenter.models import Entity


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """Replays queued responses/exceptions and records every call."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def request(self, method, url, params=None, data=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "data": data, "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClient:
    """Stands in for ApiClient: collections come from a dict, mutations are recorded."""

    def __init__(self, collections=None):
        # (level, parent_id) -> list of raw rows or an exception to raise
        self.collections = collections or {}
        self.list_calls = []
        self.calls = []
        self.fail_with = None

    def list_collection(self, level, parent_id=None, cancel=None):
        self.list_calls.append((level.key, parent_id))
        rows = self.collections.get((level.key, parent_id), [])
        if isinstance(rows, Exception):
            raise rows
        return level.normalize_many(rows, parent_id)

    def _mutate(self, op, level, entity_id, values, parent_ids):
        self.calls.append({"op": op, "level": level.key, "id": entity_id,
                           "values": dict(values), "parent_ids": dict(parent_ids)})
        if self.fail_with is not None:
            raise self.fail_with
        return ApiSuccess(message="ok")

    def create(self, level, values, parent_ids):
        return self._mutate("create", level, None, values, parent_ids)

    def update(self, level, entity_id, values, parent_ids):
        return self._mutate("update", level, entity_id, values, parent_ids)

    def delete(self, level, entity_id, parent_ids):
        return self._mutate("delete", level, entity_id, {}, parent_ids)


def ent(level, id_, name, parent_id=None):
    return Entity(id=id_, name=name, level=level, parent_id=parent_id)


@pytest.fixture
def geo():
    return GEO_HIERARCHY


@pytest.fixture
def geo_collections():
    return {
        ("county", None): [
            {"county_code": "047", "county_name": "Nairobi"},
            {"county_code": "001", "county_name": "Mombasa"},
        ],
        ("constituency", "047"): [
            {"const_code": "274", "constituency_name": "Westlands"},
            {"const_code": "275", "constituency_name": "Dagoretti North"},
        ],
        ("constituency", "001"): [
            {"const_code": "001", "constituency_name": "Changamwe"},
        ],
        ("ward", "274"): [
            {"ward_code": "1371", "ward_name": "Kitisuru"},
            {"ward_code": "1372", "ward_name": "Parklands/Highridge"},
        ],
        ("polling_station", "1371"): [
            {"polling_station_id": 9001, "polling_station_name": "Kitisuru Primary"},
        ],
        ("polling_station", "1372"): [],
    }


@pytest.fixture
def fake_client(geo_collections):
    return FakeClient(geo_collections)


