"""
Test Configuration and Fixtures

Every test runs against an in-memory document store and a scripted payment
gateway; no MongoDB, Firebase or Stripe is contacted.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_NAME", "contest_verse_test")
os.environ.setdefault("SITE_DOMAIN", "http://localhost:5173")
os.environ.setdefault("PAYMENT_CURRENCY", "usd")
os.environ.setdefault("FIREBASE_PROJECT_ID", "test-project")

from contestverse.database import Database  # noqa: E402
from tests.support.fake_gateway import FakeGateway  # noqa: E402
from tests.support.fake_identity import ADMIN, ALICE, BOB, CAROL, DAVE, TOKENS, FakeIdentityService  # noqa: E402
from tests.support.fake_mongo import FakeMongoClient  # noqa: E402


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Service and gateway tests (fast, isolated)")
    config.addinivalue_line("markers", "api: API endpoint tests")


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the production indexes"""
    Database.client = FakeMongoClient()
    await Database.create_indexes()
    yield Database.get_db()
    Database.client = None


@pytest_asyncio.fixture
async def users(db):
    """alice and bob are plain users, carol and dave creators, plus one admin"""
    now = datetime.now(timezone.utc)
    seeded = {}
    for email, role, name in [
        (ALICE, "user", "Alice"),
        (BOB, "user", "Bob"),
        (CAROL, "creator", "Carol"),
        (DAVE, "creator", "Dave"),
        (ADMIN, "admin", "Admin"),
    ]:
        user = {
            "email": email,
            "role": role,
            "displayName": name,
            "photoURL": f"https://img.test/{name.lower()}.png",
            "createdAt": now,
            "updatedAt": now,
        }
        await db.users.insert_one(user)
        seeded[email] = user
    return seeded


@pytest.fixture
def make_contest(db):
    """Insert a contest straight into the store"""

    async def _make(**overrides) -> dict:
        now = datetime.now(timezone.utc)
        contest = {
            "name": "Logo Design",
            "description": "Design a logo",
            "price": 10,
            "prizeMoney": 100,
            "contestType": "design",
            "deadline": now + timedelta(days=7),
            "creatorEmail": CAROL,
            "approvalStatus": "pending",
            "participants": 0,
            "status": "open",
            "createdAt": now,
            "updatedAt": now,
        }
        contest.update(overrides)
        await db.contests.insert_one(contest)
        return contest

    return _make


@pytest.fixture
def make_submission(db):
    """Insert a pending submission straight into the store"""

    async def _make(contest: dict, user_email: str = ALICE, **overrides) -> dict:
        submission = {
            "contestId": str(contest["_id"]),
            "contestName": contest.get("name"),
            "userId": ObjectId(),
            "userName": user_email.split("@")[0].title(),
            "userEmail": user_email,
            "userImage": f"https://img.test/{user_email.split('@')[0]}.png",
            "submissionText": "https://portfolio.test/entry",
            "submittedAt": datetime.now(timezone.utc),
            "status": "pending",
        }
        submission.update(overrides)
        await db.submissions.insert_one(submission)
        return submission

    return _make


# =============================================================================
# PROVIDER FIXTURES
# =============================================================================


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def identity():
    return FakeIdentityService(TOKENS)


# =============================================================================
# APP FIXTURES
# =============================================================================


@pytest.fixture
def app(db, gateway, identity):
    """Application with store, identity and gateway dependencies overridden"""
    from contestverse.main import app
    from contestverse.routes.auth.dependencies import get_database, get_identity_service
    from contestverse.services.payment.gateways.factory import get_payment_gateway

    async def _database():
        return db

    async def _identity():
        return identity

    async def _gateway():
        return gateway

    app.dependency_overrides[get_database] = _database
    app.dependency_overrides[get_identity_service] = _identity
    app.dependency_overrides[get_payment_gateway] = _gateway

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
