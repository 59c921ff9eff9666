"""Settings, startup checks and the CORS policy."""

import asyncio

import pytest
from fastapi.testclient import TestClient

import rms.main
from rms.core.config import EnvironmentMode, Settings
from rms.database import Database
from rms.main import create_app


def test_development_generates_ephemeral_secret():
    settings = Settings(_env_file=None, env_mode="development", jwt_secret=None)

    assert settings.jwt_secret
    assert settings.jwt_secret_is_ephemeral
    assert settings.validate_production_config() == []


def test_configured_secret_is_kept():
    settings = Settings(_env_file=None, env_mode="development", jwt_secret="configured-secret")

    assert settings.jwt_secret == "configured-secret"
    assert not settings.jwt_secret_is_ephemeral


def test_production_requires_secret():
    settings = Settings(_env_file=None, env_mode="PRODUCTION", jwt_secret=None)

    assert settings.env_mode is EnvironmentMode.PRODUCTION
    assert settings.jwt_secret is None
    assert "JWT_SECRET" in settings.validate_production_config()


def test_invalid_env_mode():
    with pytest.raises(ValueError):
        Settings(_env_file=None, env_mode="qa")


def test_startup_aborts_without_production_secret(tmp_path):
    settings = Settings(
        _env_file=None,
        env_mode="production",
        jwt_secret=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prod.db'}",
        bcrypt_rounds=4,
    )
    app = create_app(settings)

    with pytest.raises(RuntimeError, match="JWT_SECRET"):
        with TestClient(app):
            pass


def test_importing_main_builds_no_application():
    assert not hasattr(rms.main, "app")


def test_ping_before_connect_reports_disconnected(settings):
    database = Database(settings.database_url)

    assert not database.is_connected
    assert asyncio.run(database.ping()) is False

@pytest.mark.parametrize(
    "origin",
    [
        "http://localhost:3000",
        "http://127.0.0.1:5500",
        "file://",
        "null",
    ],
)
def test_cors_allows_local_origins(client, origin):
    response = client.options(
        "/api/restaurants",
        headers={"Origin": origin, "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin


def test_cors_rejects_foreign_origin(client):
    preflight = client.options(
        "/api/restaurants",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "GET"},
    )
    simple = client.get("/api/restaurants", headers={"Origin": "https://evil.example.com"})

    assert preflight.status_code == 400
    assert "access-control-allow-origin" not in simple.headers


def test_requests_without_origin_are_served(client):
    response = client.get("/api/restaurants")

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers
