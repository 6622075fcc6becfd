import pytest
from pydantic import ValidationError

from log_indexer.app.config import Settings


def _settings(**overrides):
    values = {
        "POSTGRES_USER": "indexer",
        "POSTGRES_PASSWORD": "p@ss word",
        "POSTGRES_SERVER": "db",
        "POSTGRES_PORT": 5433,
        "POSTGRES_DB": "logs",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_database_urls_are_assembled_and_quoted():
    settings = _settings()

    assert settings.database_url == "postgresql+asyncpg://indexer:p%40ss+word@db:5433/logs"
    assert settings.sync_database_url == "postgresql://indexer:p%40ss+word@db:5433/logs"


def test_explicit_database_url_wins():
    settings = _settings(database_url="postgresql+asyncpg://u:p@elsewhere/x")

    assert settings.database_url == "postgresql+asyncpg://u:p@elsewhere/x"


def test_default_rpc_url():
    assert _settings(RPC_URL="http://node:8545").default_rpc_url().startswith("http://node:8545")


def test_rpc_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        _settings(RPC_TIMEOUT_SECONDS=0)
