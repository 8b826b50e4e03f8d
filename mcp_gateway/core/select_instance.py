"""Instance Selection — pure picking rules used by the load balancer.

Invariants:
    - Candidates are already filtered to online members and non-empty
    - Round-robin takes the cursor modulo the CURRENT filtered length
    - Least-connections ties resolve to the first candidate in iteration order
    - Random is uniform and stateless

Design Decisions:
    - Cursor state stays in the shell (LoadBalancer); this module only computes
      (ADR: pure core, the shell owns mutation and locking)
"""

import random
from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")


def pick_round_robin(candidates: Sequence[T], cursor: int) -> T:
    return candidates[cursor % len(candidates)]


def pick_random(candidates: Sequence[T], rng: random.Random | None = None) -> T:
    return (rng or random).choice(candidates)


def pick_least_connections(
    candidates: Sequence[T], active_requests: Callable[[T], int],
) -> T:
    """Minimum active_requests; min() keeps the first of equal keys."""
    return min(candidates, key=active_requests)
