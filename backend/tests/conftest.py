"""Shared fixtures: an in-memory SQLite database behind the real app."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOCALE"] = "id"
os.environ["CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient

from pos_api.db.base import Base
from pos_api.db.models import Category
from pos_api.db.session import SessionLocal, engine
from pos_api.main import app


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def categories(schema):
    with SessionLocal() as session:
        session.add_all(
            [
                Category(id="cat1", name="Minuman"),
                Category(id="cat2", name="Makanan"),
            ]
        )
        session.commit()
    return ["cat1", "cat2"]
