"""Settings tests."""

import pytest
from pydantic import ValidationError

from accounts.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
    settings = Settings(_env_file=None)
    assert settings.port == 3000
    assert settings.bcrypt_rounds == 10
    assert settings.is_development
    assert not settings.is_production


def test_production_rejects_localhost_database():
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            environment="production",
            database_url="postgresql://u:p@localhost:5432/accounts",
        )


def test_production_settings():
    settings = Settings(
        _env_file=None,
        environment="production",
        database_url="postgresql://u:p@db.internal:5432/accounts",
    )
    assert settings.is_production
