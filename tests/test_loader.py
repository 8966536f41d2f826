from conftest import FakeClient, ent

from datacenter.api import ApiError, TransportError
from datacenter.cache import TTLCache
from datacenter.loader import RemoteCollectionLoader, cache_key
from datacenter.notify import Notifier


def test_root_load_commits_rows_in_api_order(geo, fake_client):
    loader = RemoteCollectionLoader(geo, fake_client)
    assert loader.load("county")
    st = loader.state("county")
    assert [r.name for r in st.data] == ["Nairobi", "Mombasa"]
    assert not st.loading and st.error is None
    assert loader.is_loaded("county", None)


def test_stale_response_is_rejected(geo, fake_client):
    loader = RemoteCollectionLoader(geo, fake_client)
    ticket_a = loader.request("constituency", "047")
    ticket_b = loader.request("constituency", "001")

    rows_a = [ent("constituency", "274", "Westlands", "047")]
    assert not loader.commit(ticket_a, rows_a)
    st = loader.state("constituency")
    assert st.data == [] and st.loading
    assert ticket_a.cancelled

    rows_b = [ent("constituency", "001", "Changamwe", "001")]
    assert loader.commit(ticket_b, rows_b)
    assert [r.name for r in loader.rows("constituency")] == ["Changamwe"]


def test_stale_failure_does_not_touch_state(geo, fake_client):
    notifier = Notifier()
    loader = RemoteCollectionLoader(geo, fake_client, notifier=notifier)
    old = loader.request("ward", "274")
    loader.request("ward", "275")
    assert not loader.fail(old, "boom")
    assert loader.state("ward").error is None
    assert len(notifier) == 0


def test_parent_change_clears_level_and_deeper_synchronously(geo, fake_client):
    loader = RemoteCollectionLoader(geo, fake_client)
    loader.load("constituency", "047")
    loader.load("ward", "274")
    loader.load("polling_station", "1371")

    loader.request("constituency", "001")
    assert loader.rows("constituency") == []
    assert loader.rows("ward") == []
    assert loader.rows("polling_station") == []


def test_failure_keeps_last_known_good_and_notifies(geo, geo_collections):
    client = FakeClient(dict(geo_collections))
    notifier = Notifier()
    loader = RemoteCollectionLoader(geo, client, notifier=notifier)
    loader.load("county")

    client.collections[("county", None)] = TransportError("Request timed out")
    assert not loader.load("county", force=True)

    st = loader.state("county")
    assert [r.name for r in st.data] == ["Nairobi", "Mombasa"]
    assert st.error == "Request timed out"
    assert not st.loading
    notices = notifier.drain()
    assert [(n.severity, n.message) for n in notices] == [("error", "Request timed out")]


def test_api_error_message_is_verbatim(geo):
    client = FakeClient({("county", None): ApiError("Session expired, log in again")})
    loader = RemoteCollectionLoader(geo, client)
    loader.load("county")
    assert loader.state("county").error == "Session expired, log in again"


def test_child_level_without_parent_is_cleared_not_fetched(geo, fake_client):
    loader = RemoteCollectionLoader(geo, fake_client)
    assert not loader.load("ward", None)
    assert fake_client.list_calls == []


def test_cache_hit_skips_the_network(geo, fake_client):
    cache = TTLCache(ttl=120)
    loader = RemoteCollectionLoader(geo, fake_client, cache=cache)
    loader.load("county")
    loader.clear_from("county")
    loader.load("county")
    assert fake_client.list_calls == [("county", None)]
    assert cache.get(cache_key("county", None)) is not None

    loader.invalidate("county", None)
    loader.load("county")
    assert len(fake_client.list_calls) == 2


def test_clear_from_cancels_in_flight_tickets(geo, fake_client):
    loader = RemoteCollectionLoader(geo, fake_client)
    ticket = loader.request("ward", "274")
    loader.clear_from("constituency")
    assert ticket.cancelled
    assert not loader.commit(ticket, [ent("ward", "1371", "Kitisuru")])
    assert not loader.state("ward").loading
