"""Infrastructure Layer — database sessions, credentials, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Driver/library exceptions are mapped to StorefrontError before leaving this layer
"""
