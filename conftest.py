"""
Root conftest for the pytest test suite.

This file contains the main fixtures that are used across the entire test suite.

This setup uses a manual, async-native approach to database initialization
to ensure that each test runs against a fresh, isolated in-memory database,
which is the most reliable method for an async pytest environment.

Key Fixtures:
- `anyio_backend`: Specifies the asyncio backend for pytest-asyncio.
- `initialize_test_db`: (autouse) Creates a fresh DB schema for each test.
- `app_for_testing`: Provides the FastAPI application instance with its production
  lifespan disabled to allow `initialize_test_db` to manage the test DB.
- `client`: Provides a non-authenticated TestClient.
- `test_organization`: The organization the fixture users belong to.
- `test_member_token`: Logs in the member user and returns their auth token and user object.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from tortoise import Tortoise

from bizdash.features.auth.models import User
from bizdash.features.auth.security import get_password_hash
from bizdash.features.organizations.models import Organization

# Import the app
from bizdash.main import MODEL_MODULES, app as actual_app

MEMBER_USERNAME = "memberfixture"
MEMBER_PASSWORD = "memberpassword123"
ORPHAN_USERNAME = "orphanfixture"
ORPHAN_PASSWORD = "orphanpassword123"


async def add_organization() -> Organization:
    return await Organization.create(
        name="Fixture Traders", timezone="Asia/Kolkata", country="India", date_format="DD/MM/YYYY"
    )


async def add_member_user(organization: Organization) -> User:
    return await User.create(
        username=MEMBER_USERNAME,
        email="memberfixture@example.com",
        hashed_password=get_password_hash(MEMBER_PASSWORD),
        role="member",
        organization=organization,
    )


async def add_orphan_user() -> User:
    """A user whose organization was removed."""
    return await User.create(
        username=ORPHAN_USERNAME,
        email="orphanfixture@example.com",
        hashed_password=get_password_hash(ORPHAN_PASSWORD),
        role="member",
        organization=None,
    )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Specifies the asyncio backend for pytest-asyncio.
    """
    return "asyncio"


@pytest_asyncio.fixture(scope="function", autouse=True)
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """
    Initializes the database for each test function.

    This async, autouse fixture creates a fresh in-memory database and schema
    for each test and tears it down afterwards.
    """
    test_db_config = {
        "connections": {"default": "sqlite://:memory:"},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }
    await Tortoise.init(config=test_db_config)
    await Tortoise.generate_schemas()
    organization = await add_organization()
    await add_member_user(organization)
    await add_orphan_user()

    yield

    await Tortoise.close_connections()


@pytest.fixture(scope="function")
def app_for_testing() -> Generator[FastAPI, Any, None]:
    """
    Provides a FastAPI application instance for testing, with its
    production lifespan manager disabled to allow the test DB fixture
    to manage the database connection.
    """
    original_lifespan = actual_app.router.lifespan_context

    @asynccontextmanager
    async def dummy_lifespan(app: FastAPI):
        yield

    actual_app.router.lifespan_context = dummy_lifespan

    yield actual_app

    # Restore the original lifespan context and drop overrides set by the test
    actual_app.router.lifespan_context = original_lifespan
    actual_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app_for_testing: FastAPI) -> Generator[TestClient, Any, None]:
    """
    Provides a non-authenticated starlette TestClient.
    """
    with TestClient(app_for_testing) as tc:
        yield tc


@pytest_asyncio.fixture(scope="function")
async def test_organization() -> Organization:
    return await Organization.get(name="Fixture Traders")


@pytest_asyncio.fixture(scope="function")
async def test_member_token(
    app_for_testing: FastAPI,
) -> AsyncGenerator[tuple[str, User], Any]:
    """
    Logs in the member user and yields (token, user_object).
    """
    user = await User.get(username=MEMBER_USERNAME)

    with TestClient(app_for_testing) as tc:
        response = tc.post(
            "/api/v1/auth/token", data={"username": MEMBER_USERNAME, "password": MEMBER_PASSWORD}
        )
        if response.status_code != 200:
            raise Exception(f"Could not get token for {MEMBER_USERNAME}")
        auth_token = response.json()["access_token"]

    yield auth_token, user


@pytest_asyncio.fixture(scope="function")
async def test_orphan_token(
    app_for_testing: FastAPI,
) -> AsyncGenerator[str, Any]:
    with TestClient(app_for_testing) as tc:
        response = tc.post(
            "/api/v1/auth/token", data={"username": ORPHAN_USERNAME, "password": ORPHAN_PASSWORD}
        )
        if response.status_code != 200:
            raise Exception(f"Could not get token for {ORPHAN_USERNAME}")
        yield response.json()["access_token"]
