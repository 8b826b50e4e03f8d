"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return the {success, data|error, meta} envelope

Design Decisions:
    - Thin routes delegate to the Dispatcher and the registry (ADR: ExMA impureim sandwich)
"""
