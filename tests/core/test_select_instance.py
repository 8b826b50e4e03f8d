"""Tests for select_instance — pure picking rules."""

import random

from mcp_gateway.core.select_instance import (
    pick_least_connections, pick_random, pick_round_robin,
)


def test_round_robin_wraps_cursor_modulo_length():
    members = ["a", "b", "c"]
    assert [pick_round_robin(members, i) for i in range(5)] == ["a", "b", "c", "a", "b"]


def test_round_robin_uses_current_length_after_shrink():
    assert pick_round_robin(["a", "b"], 5) == "b"


def test_least_connections_picks_minimum():
    load = {"h1": 3, "h2": 0, "h3": 1}
    assert pick_least_connections(list(load), load.__getitem__) == "h2"


def test_least_connections_tie_goes_to_first():
    load = {"h1": 2, "h2": 1, "h3": 1}
    assert pick_least_connections(list(load), load.__getitem__) == "h2"


def test_random_is_deterministic_with_seeded_rng():
    members = ["a", "b", "c", "d"]
    first = [pick_random(members, random.Random(7)) for _ in range(3)]
    assert len(set(first)) == 1
    assert first[0] in members


def test_random_only_returns_candidates():
    rng = random.Random(1)
    members = ["a", "b"]
    assert {pick_random(members, rng) for _ in range(50)} <= set(members)
