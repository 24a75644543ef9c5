"""
Shared fixtures: an app wired to in-memory collaborators.
"""
import copy
import itertools

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.errors import DuplicateRecordError
from app.main import create_app
from app.models import (
    NESTED_APPLICATION_FIELDS,
    PUBLIC_USER_FIELDS,
    SEARCH_TENDER_FIELDS,
    TENDER_APPLICATION_FIELDS,
    pick,
)

TEST_SECRET = "test-secret"


class InMemoryStore(object):
    """Dict-backed stand-in for MongoStore with the same method surface."""

    def __init__(self):
        self.users = []
        self.tenders = []
        self.applications = []
        self._seq = itertools.count()
        self._order = {}

    def _add(self, rows, record):
        stored = copy.deepcopy(record)
        self._order[stored["id"]] = next(self._seq)
        rows.append(stored)
        return record

    def _newest_first(self, rows):
        return sorted(rows, key=lambda r: (r["created_at"], self._order[r["id"]]), reverse=True)

    async def ensure_indexes(self):
        pass

    async def get_user_by_email(self, email):
        return next((copy.deepcopy(u) for u in self.users if u["email"] == email), None)

    async def get_user(self, user_id):
        return next((pick(u, PUBLIC_USER_FIELDS) for u in self.users if u["id"] == user_id), None)

    async def insert_user(self, user):
        if any(u["email"] == user["email"] for u in self.users):
            raise DuplicateRecordError("duplicate email")
        return self._add(self.users, user)

    async def insert_tender(self, tender):
        return self._add(self.tenders, tender)

    async def get_tender(self, tender_id):
        return next((copy.deepcopy(t) for t in self.tenders if t["id"] == tender_id), None)

    async def list_tenders(self, *, creator_id=None, exclude_creator=None):
        rows = self.tenders
        if creator_id is not None:
            rows = [t for t in rows if t["creator_id"] == creator_id]
        if exclude_creator is not None:
            rows = [t for t in rows if t["creator_id"] != exclude_creator]
        return copy.deepcopy(self._newest_first(rows))

    async def search_tenders(self, *, exclude_creator, query):
        needle = query.lower()
        results = []
        for tender in self._newest_first(self.tenders):
            if tender["creator_id"] == exclude_creator:
                continue
            if needle not in tender["title"].lower() and needle not in tender["description"].lower():
                continue
            found = pick(tender, SEARCH_TENDER_FIELDS)
            owner = next((u for u in self.users if u["id"] == tender["creator_id"]), None)
            found["owner"] = pick(owner, ("industry", "company_name"))
            results.append(found)
        return results

    async def insert_application(self, application):
        return self._add(self.applications, application)

    async def get_application(self, application_id):
        return next((copy.deepcopy(a) for a in self.applications if a["id"] == application_id), None)

    async def list_tender_applications(self, tender_id):
        rows = [a for a in self.applications if a["tender_id"] == tender_id]
        return [pick(a, TENDER_APPLICATION_FIELDS) for a in self._newest_first(rows)]

    async def update_application_status(self, application_id, status):
        for application in self.applications:
            if application["id"] == application_id:
                application["status"] = status
                return True
        return False

    async def list_applicant_applications(self, applicant_id):
        rows = [a for a in self.applications if a["applicant_id"] == applicant_id]
        results = []
        for application in self._newest_first(rows):
            found = pick(application, ("id", "proposal_text", "status", "created_at", "tender_id"))
            tender = next((t for t in self.tenders if t["id"] == application["tender_id"]), None)
            found["tenders"] = pick(tender, ("title", "deadline"))
            results.append(found)
        return results

    async def list_tenders_with_applications(self, creator_id):
        rows = [t for t in self.tenders if t["creator_id"] == creator_id]
        results = []
        for tender in self._newest_first(rows):
            found = pick(tender, ("id", "title", "description", "deadline", "budget"))
            found["applications"] = [
                pick(a, NESTED_APPLICATION_FIELDS) for a in self.applications if a["tender_id"] == tender["id"]
            ]
            results.append(found)
        return results


class FakeLogoStorage(object):
    def __init__(self):
        self.files = {}

    async def upload(self, path, data, content_type):
        self.files[path] = (data, content_type or "application/octet-stream")
        return f"http://testserver/api/files/{path}"

    async def open(self, path):
        return self.files.get(path)

    async def delete(self, path):
        self.files.pop(path, None)


@pytest.fixture
def settings():
    return Settings(JWT_SECRET=TEST_SECRET, MONGO_URI="mongodb://unused", MONGO_DB="test", ENVIRONMENT="test")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def storage():
    return FakeLogoStorage()


@pytest.fixture
def app(settings, store, storage):
    return create_app(settings=settings, store=store, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


SIGNUP_FIELDS = {
    "name": "Alice",
    "email": "alice@example.com",
    "password": "s3cret",
    "company_name": "Acme Roofing",
    "industry": "Construction",
    "industry_description": "Commercial roofing and cladding",
}


def signup(client, **overrides):
    data = dict(SIGNUP_FIELDS, **overrides)
    return client.post("/api/auth/signup", data=data)


def login(client, email, password="s3cret"):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def register(client):
    """Sign up and log in a user; returns (user, auth headers)."""
    def _register(name, email, **fields):
        resp = signup(client, name=name, email=email, **fields)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"], login(client, email)
    return _register
