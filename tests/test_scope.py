import itertools
import random

from conftest import ent

from datacenter.scope import ScopeState


def _nested(scope, hierarchy):
    ids = [scope.get(lv.key) for lv in hierarchy]
    # once a level is unset, nothing below it may be set
    seen_gap = False
    for v in ids:
        if v is None:
            seen_gap = True
        elif seen_gap:
            return False
    return True


def test_select_clears_deeper_levels(geo):
    scope = ScopeState(geo)
    assert scope.select("county", ent("county", "047", "Nairobi"))
    assert scope.select("constituency", ent("constituency", "274", "Westlands"))
    assert scope.select("ward", ent("ward", "1371", "Kitisuru"))

    assert scope.select("county", ent("county", "001", "Mombasa"))
    assert scope.selection() == {"county": "001"}


def test_select_without_parent_is_ignored(geo):
    scope = ScopeState(geo)
    assert not scope.select("ward", ent("ward", "1371", "Kitisuru"))
    assert scope.is_empty()

    scope.select("county", ent("county", "047", "Nairobi"))
    before = scope.selection()
    assert not scope.select("ward", ent("ward", "1371", "Kitisuru"))
    assert scope.selection() == before


def test_leaf_is_never_a_scope(geo):
    scope = ScopeState(geo)
    scope.select("county", ent("county", "047", "Nairobi"))
    scope.select("constituency", ent("constituency", "274", "Westlands"))
    scope.select("ward", ent("ward", "1371", "Kitisuru"))
    assert not scope.select("polling_station", ent("polling_station", "9001", "Kitisuru Primary"))
    assert scope.deepest() == "ward"


def test_reset_below_and_root(geo):
    scope = ScopeState(geo)
    scope.select("county", ent("county", "047", "Nairobi"))
    scope.select("constituency", ent("constituency", "274", "Westlands"))
    scope.select("ward", ent("ward", "1371", "Kitisuru"))

    scope.reset_below("county")
    assert scope.get("county") == "047"
    assert scope.get("constituency") is None
    assert scope.get("ward") is None

    scope.reset_to_root()
    assert scope.is_empty()
    assert scope.deepest() is None


def test_parent_ids_for_placement(geo):
    scope = ScopeState(geo)
    scope.select("county", ent("county", "047", "Nairobi"))
    scope.select("constituency", ent("constituency", "274", "Westlands"))
    assert scope.parent_ids("ward") == {"county": "047", "constituency": "274"}
    assert scope.parent_ids("county") == {}


def test_refresh_only_replaces_same_id(geo):
    scope = ScopeState(geo)
    scope.select("county", ent("county", "047", "Nairobi"))
    scope.select("constituency", ent("constituency", "274", "Westlands"))

    assert scope.refresh("county", ent("county", "047", "Nairobi City"))
    assert scope.entity("county").name == "Nairobi City"
    assert scope.get("constituency") == "274"
    assert not scope.refresh("county", ent("county", "999", "Elsewhere"))


def test_nesting_invariant_holds_under_random_operations(geo):
    rng = random.Random(7)
    scope = ScopeState(geo)
    levels = [lv.key for lv in geo]
    ids = itertools.count()
    for _ in range(500):
        op = rng.choice(["select", "select", "select", "reset_below", "reset_to_root", "reset_from"])
        level = rng.choice(levels)
        if op == "select":
            scope.select(level, ent(level, str(next(ids)), "x"))
        elif op == "reset_below":
            scope.reset_below(level)
        elif op == "reset_from":
            scope.reset_from(level)
        else:
            scope.reset_to_root()
        assert _nested(scope, geo)
        assert scope.get("polling_station") is None
