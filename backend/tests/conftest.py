import asyncio
import os

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/marketplace_test")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database import get_db
from main import app
from utils.security import get_current_user


@pytest.fixture
def db():
    return AsyncMongoMockClient()["marketplace_test"]


@pytest.fixture
def user():
    # mutated by tests that act as a seller
    return {
        "_id": "user-admin-1",
        "uid": "admin-1",
        "email": "admin@example.com",
        "firstName": "Ada",
        "lastName": "Admin",
        "role": "admin",
    }


@pytest.fixture
def seller(user):
    user.update({"_id": "user-seller-1", "uid": "seller-1", "email": "seller@example.com", "role": "seller"})
    return user


@pytest.fixture
def client(db, user):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def run():
    return asyncio.run
