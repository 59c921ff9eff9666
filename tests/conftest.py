"""
Shared fixtures: an application on a throw-away SQLite database and a few
ready-made accounts.
"""

import pytest
from fastapi.testclient import TestClient

from rms.core.config import Settings
from rms.main import create_app

from helpers import Account, create_account

TEST_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rms-test.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def owner(client) -> Account:
    return create_account(client, "owner@bistro.com", "Bistro 21")


@pytest.fixture
def rival(client) -> Account:
    return create_account(client, "owner@cornerdiner.com", "Corner Diner")


@pytest.fixture
def customer(client) -> Account:
    return create_account(client, "guest@mail.com", "Guest", account_type="user")
