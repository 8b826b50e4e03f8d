"""Core Layer — pure domain logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/, backends/ or infrastructure/
    - Status transitions and instance selection are pure and deterministic
      (random selection takes an injectable rng)

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
