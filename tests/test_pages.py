import pytest
from conftest import FakeClient
from streamlit.testing.v1 import AppTest

from datacenter.api import ApiError
from datacenter.data import API_BASE_WIDGET
from datacenter.hierarchy import GEO_HIERARCHY, REGION_HIERARCHY
from datacenter.navigator import HierarchyNavigator

DATA_CENTER = "../pages/1_Data_Center.py"
REGIONS = "../pages/2_Regions.py"


@pytest.fixture(autouse=True)
def _no_pinned_api_base(monkeypatch):
    monkeypatch.delenv("DATACENTER_API_BASE", raising=False)


def _data_center(client):
    at = AppTest.from_file(DATA_CENTER)
    at.session_state["nav:geo"] = HierarchyNavigator(GEO_HIERARCHY, client)
    return at.run()


def test_landing_page_renders_without_fetching():
    at = AppTest.from_file("../app.py").run()
    assert not at.exception
    assert at.title[0].value == "Political Party Data Center"


def test_data_center_page_drills_down(geo_collections):
    client = FakeClient(geo_collections)
    at = _data_center(client)
    assert not at.exception
    assert "Counties" in [s.value for s in at.subheader]

    at.button(key="geo:county:root:open:047").click().run()
    assert not at.exception
    assert "Constituencies in Nairobi" in [s.value for s in at.subheader]
    assert client.list_calls == [("county", None), ("constituency", "047")]


def test_data_center_page_shows_empty_state():
    at = _data_center(FakeClient({("county", None): []}))
    assert not at.exception
    assert "No counties yet." in [i.value for i in at.info]


def test_edit_form_posts_text_typed_in_the_same_interaction(geo_collections):
    client = FakeClient(geo_collections)
    at = _data_center(client)
    at.button(key="geo:county:root:edit:047").click().run()
    assert at.text_input(key="geo:form:county:edit:047:name").value == "Nairobi"

    at.text_input(key="geo:form:county:edit:047:name").input("Nairobi City")
    at.button(key="geo:form:county:edit:047:submit").click().run()
    assert not at.exception
    assert len(client.calls) == 1
    assert client.calls[0]["op"] == "update"
    assert client.calls[0]["values"]["name"] == "Nairobi City"


def test_create_form_posts_typed_name(geo_collections):
    client = FakeClient(geo_collections)
    at = _data_center(client)
    at.button(key="geo:county:root:add").click().run()
    at.text_input(key="geo:form:county:create:new:name").input("Kiambu").run()

    at.text_input(key="geo:form:county:create:new:code").input("022")
    at.button(key="geo:form:county:create:new:submit").click().run()
    assert not at.exception
    assert client.calls[0]["op"] == "create"
    assert client.calls[0]["values"] == {"name": "Kiambu", "code": "022"}


# ---------------- sidebar API base ----------------
def test_pinned_api_base_keeps_the_navigator(monkeypatch, geo_collections):
    monkeypatch.setenv("DATACENTER_API_BASE", "http://127.0.0.1:9/pinned")
    at = AppTest.from_file(DATA_CENTER)
    nav = HierarchyNavigator(GEO_HIERARCHY, FakeClient(geo_collections))
    at.session_state["nav:geo"] = nav
    at.run()
    assert at.sidebar.text_input[0].value == "http://127.0.0.1:9/pinned"
    assert at.sidebar.text_input[0].disabled

    at.button(key="geo:county:root:open:047").click().run()
    at.run()
    assert not at.exception
    assert at.session_state["nav:geo"] is nav
    assert nav.scope.get("county") == "047"


def test_typed_api_base_rebuilds_once(geo_collections):
    at = _data_center(FakeClient(geo_collections))
    original = at.session_state["nav:geo"]

    # nothing listens on port 9, so the rebuilt client fails fast
    at.text_input(key=API_BASE_WIDGET).input("http://127.0.0.1:9/API/").run()
    assert not at.exception
    rebuilt = at.session_state["nav:geo"]
    assert rebuilt is not original
    assert rebuilt.client.base_url == "http://127.0.0.1:9/API"

    at.run()
    at.run()
    assert at.session_state["nav:geo"] is rebuilt


# ---------------- regions ----------------
@pytest.fixture
def region_collections():
    return {
        ("region", None): [
            {"region_id": "1", "region_name": "Coast"},
            {"region_id": "2", "region_name": "Nairobi Metro"},
        ],
        ("county", "1"): [
            {"county_code": "001", "county_name": "Mombasa", "status": "Active"},
            {"county_code": "002", "county_name": "Kwale"},
        ],
        ("county", "2"): [],
    }


def _regions(client, query_params=None):
    at = AppTest.from_file(REGIONS)
    at.session_state["nav:region"] = HierarchyNavigator(REGION_HIERARCHY, client)
    for k, v in (query_params or {}).items():
        at.query_params[k] = v
    return at.run()


def test_regions_page_lists_counties_of_first_region(region_collections):
    client = FakeClient(region_collections)
    at = _regions(client)
    assert not at.exception
    assert client.list_calls == [("region", None), ("county", "1")]
    assert "Counties in Coast" in [s.value for s in at.subheader]
    assert at.query_params["region"] == "1"


def test_regions_page_follows_region_selection(region_collections):
    client = FakeClient(region_collections)
    at = _regions(client)
    nav = at.session_state["nav:region"]

    at.selectbox(key="regions:region").select(nav.loader.rows("region")[1]).run()
    assert not at.exception
    assert nav.scope.get("region") == "2"
    assert client.list_calls[-1] == ("county", "2")
    assert at.query_params["region"] == "2"
    assert "No counties yet." in [i.value for i in at.info]


def test_regions_page_starts_on_remembered_region(region_collections):
    client = FakeClient(region_collections)
    at = _regions(client, query_params={"region": "2"})
    assert not at.exception
    assert at.selectbox(key="regions:region").value.name == "Nairobi Metro"
    assert client.list_calls == [("region", None), ("county", "2")]


def test_regions_page_shows_county_error(region_collections):
    region_collections[("county", "1")] = ApiError("Region not found")
    at = _regions(FakeClient(region_collections))
    assert not at.exception
    assert any("Region not found" in e.value for e in at.error)
    assert at.button(key="regions:county-retry").label == "Try again"


def test_regions_page_without_regions():
    at = _regions(FakeClient({("region", None): []}))
    assert not at.exception
    assert "No regions yet." in [i.value for i in at.info]
