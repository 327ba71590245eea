"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return {message, ...payload} on success, {error} on failure

Design Decisions:
    - Thin routes delegate to services
"""
