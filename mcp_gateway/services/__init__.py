"""Services Layer — registry, health probing, load balancing, pools and dispatch.

Invariants:
    - Registry is injected (app.state), never a module-level singleton
    - Built-in services are registered explicitly in bootstrap.py (no auto-discovery)
"""
