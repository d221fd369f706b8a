from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from db.config import (
    configured_database_url,
    get_database_settings,
    load_env_files,
    normalize_postgres_url,
    resolve_database_url,
)

_ENV_NAMES = (
    "DATABASE_URL",
    "CLOUD_DATABASE_URL",
    "LOCAL_DATABASE_URL",
    "ENVIRONMENT",
    "SQL_ECHO",
    "DB_POOL_SIZE",
    "DB_MAX_OVERFLOW",
    "DB_POOL_RECYCLE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("db.config.load_env_files", lambda *args, **kwargs: None)
    yield


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ("sqlite:///x.db", "sqlite:///x.db"),
    ],
)
def test_normalize_postgres_url(raw: str, expected: str) -> None:
    assert normalize_postgres_url(raw) == expected


def test_database_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://direct/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
    assert resolve_database_url() == "postgresql+psycopg://direct/db"


def test_cloud_url_only_in_cloud_environments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

    assert resolve_database_url() == "postgresql+psycopg://local/db"

    monkeypatch.setenv("ENVIRONMENT", "Production")
    assert resolve_database_url() == "postgresql+psycopg://cloud/db"


def test_missing_url_raises() -> None:
    assert configured_database_url() is None
    with pytest.raises(RuntimeError, match="No database URL"):
        resolve_database_url()


def test_database_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/db")
    monkeypatch.setenv("SQL_ECHO", "yes")
    monkeypatch.setenv("DB_POOL_SIZE", "0")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "bad")

    settings = get_database_settings()

    assert settings.url == "postgresql+psycopg://local/db"
    assert settings.echo is True
    assert settings.pool_size == 1
    assert settings.max_overflow == 10
    assert settings.pool_recycle == 1800


def test_load_env_files_keeps_existing_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / ".env").write_text(
        "# comment\nLOCAL_DATABASE_URL='postgresql://file/db'\nDATABASE_URL=from-file\nnoise\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("DATABASE_URL", "postgresql://process/db")

    load_env_files(tmp_path)
    try:
        assert os.environ["LOCAL_DATABASE_URL"] == "postgresql://file/db"
        assert os.environ["DATABASE_URL"] == "postgresql://process/db"
    finally:
        os.environ.pop("LOCAL_DATABASE_URL", None)
