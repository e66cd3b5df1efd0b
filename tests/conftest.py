"""Root conftest — shared test configuration."""

import os

# Tests never reach a real Postgres
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("LOG_FORMAT", "text")
