"""Services Layer — account, catalog and order orchestration against the DB.

Invariants:
    - One service class per aggregate, constructed per request with an AsyncSession
    - Services raise StorefrontError subclasses, never HTTPException

Design Decisions:
    - Identity passed explicitly into every call (no request-global state)
"""
