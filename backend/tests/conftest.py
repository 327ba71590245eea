"""Root conftest — shared test configuration."""

import os

# Deterministic secrets and fast hashing for every test run
os.environ.setdefault("JWT_SECRET", "test-secret-for-the-storefront-suite-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
