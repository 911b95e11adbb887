"""Shared fixtures.

The app's engine is pointed at an in-memory SQLite database before any
storefront module is imported; tables are rebuilt for every test.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from storefront.db import SessionLocal, engine  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.models import Base  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session(db):
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(db) -> TestClient:
    return TestClient(app)
