import pytest
from httpx import AsyncClient, ASGITransport
import os
from datetime import timedelta

# Set up test environment variables before anything else
db_name = "taskhub_test"

os.environ["ENV"] = "testing"
os.environ["DB_NAME"] = db_name
os.environ["SECRET_KEY"] = "test_secret_key_12345"

from config import config
config.ENV = "testing"
config.DB_NAME = db_name

from main import app
from database import client
from routes.deps import create_access_token
from services.notification_store import NotificationStore
from mongomock_motor import AsyncMongoMockClient


@pytest.fixture(scope="function", autouse=True)
def mock_client(monkeypatch):
    """Fresh in-memory database per test, swapped into the shared client proxy."""
    mock = AsyncMongoMockClient()
    monkeypatch.setattr(client, "_client", mock)
    yield mock
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(mock_client):
    return mock_client[config.DB_NAME]


@pytest.fixture(scope="function")
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture(scope="function")
def store():
    return NotificationStore()


async def _insert_user(db, user_id, name, email):
    user_data = {
        "id": user_id,
        "email": email,
        "name": name,
        "avatar": f"https://api.dicebear.com/7.x/avataaars/svg?seed={user_id}",
    }
    await db.users.update_one({"id": user_id}, {"$set": user_data}, upsert=True)
    return user_data


def _auth_headers(user):
    token = create_access_token(data={"sub": user["id"]}, expires_delta=timedelta(minutes=60))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
async def user_x(db):
    return await _insert_user(db, "user_x_id", "Xena", "xena@test.com")


@pytest.fixture(scope="function")
async def user_y(db):
    return await _insert_user(db, "user_y_id", "Yuri", "yuri@test.com")


@pytest.fixture(scope="function")
async def user_z(db):
    return await _insert_user(db, "user_z_id", "Zoe", "zoe@test.com")


@pytest.fixture(scope="function")
def x_headers(user_x):
    return _auth_headers(user_x)


@pytest.fixture(scope="function")
def y_headers(user_y):
    return _auth_headers(user_y)


@pytest.fixture(scope="function")
def z_headers(user_z):
    return _auth_headers(user_z)
