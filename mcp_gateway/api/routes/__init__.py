"""Route Modules — one file per concern (liveness, gateway).

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain dispatch logic (delegate to services/)
"""
