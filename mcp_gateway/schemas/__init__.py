"""Pydantic Schemas — validation for operation params and management request bodies.

Invariants:
    - Schemas validate at system boundary (caller input)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from core: schemas are wire contracts, core types are internal (ADR: DDD boundary)
"""
