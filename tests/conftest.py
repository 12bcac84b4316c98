import os
import re

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.pop("SMTP_HOST", None)

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

import emails
import uploads
from database import init_db
from main import app

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
async def db():
    database = AsyncMongoMockClient()["places_test"]
    await init_db(database)
    yield database


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(uploads, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture(autouse=True)
def outbox():
    emails.outbox.clear()
    yield emails.outbox
    emails.outbox.clear()


class Mailbox:
    def __init__(self, messages):
        self.messages = messages

    def _latest(self, to, pattern):
        for message in reversed(self.messages):
            if message["To"] == to:
                found = re.search(pattern, message.get_content())
                if found:
                    return found.group(1)
        raise AssertionError(f"no matching mail for {to}")

    def verification_code(self, to):
        return self._latest(to, r"<b>(\d{6})</b>")

    def reset_token(self, to):
        return self._latest(to, r"reset-password/([0-9a-f]{40})")


@pytest.fixture
def mailbox(outbox):
    return Mailbox(outbox)


@pytest.fixture
async def make_client():
    clients = []

    def factory():
        c = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
        clients.append(c)
        return c

    yield factory
    for c in clients:
        await c.aclose()


@pytest.fixture
async def client(make_client):
    return make_client()


@pytest.fixture
def owner_client(make_client):
    """Sign up a shop owner; the returned client carries the session cookie."""
    async def _owner(email="owner@example.com", name="Shop Owner"):
        c = make_client()
        response = await c.post("/api/auth/signup", json={"email": email, "password": PASSWORD, "name": name})
        assert response.status_code == 201, response.text
        return c
    return _owner


@pytest.fixture
def shop_for(upload_dir):
    async def _shop(owner, name="Cafe Colombo", photo=None, **fields):
        data = {"name": name, "shopType": "restaurant", "contact": "0112345678", **fields}
        files = {"photo": photo} if photo else None
        response = await owner.post("/api/shops", data=data, files=files)
        assert response.status_code == 201, response.text
        return response.json()
    return _shop


@pytest.fixture
def site_user(client):
    """Sign up and log in a site user; returns (user json, auth headers)."""
    async def _user(email="user@example.com", name="Site User"):
        response = await client.post("/api/siteuser/signup", json={"email": email, "password": PASSWORD, "name": name})
        assert response.status_code == 201, response.text
        response = await client.post("/api/siteuser/login", json={"email": email, "password": PASSWORD})
        assert response.status_code == 200, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}
    return _user
