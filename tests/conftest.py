"""Test fixtures and configuration for pytest."""

import pytest
import sqlalchemy
from fastapi.testclient import TestClient

from api.dependencies import get_query_service
from api.main import app
from config.settings import DatabaseConfig
from core.sql_validator import SqlValidator
from db.connection import DatabaseClient
from db.query import QueryService
from db.query_store import QueryStore


@pytest.fixture
def validator():
    return SqlValidator()


@pytest.fixture
def queries_dir(tmp_path):
    """Directory with a few stored queries, safe and unsafe."""
    directory = tmp_path / "queries"
    directory.mkdir()
    (directory / "all_users.sql").write_text("SELECT id, name, active FROM users ORDER BY id", encoding="utf-8")
    (directory / "active_users.sql").write_text(
        "-- only active accounts\nSELECT name FROM users WHERE active = 1", encoding="utf-8"
    )
    (directory / "drop_users.sql").write_text("DROP TABLE users", encoding="utf-8")
    (directory / "missing_table.sql").write_text("SELECT * FROM no_such_table", encoding="utf-8")
    (directory / "notes.txt").write_text("not a query", encoding="utf-8")
    return directory


@pytest.fixture
def sqlite_config(tmp_path):
    """SQLite database with a small users table."""
    config = DatabaseConfig(driver="sqlite", database=str(tmp_path / "test.db"))
    engine = sqlalchemy.create_engine(config.connection_string)
    with engine.begin() as conn:
        conn.execute(sqlalchemy.text(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, active INTEGER, email TEXT)"
        ))
        conn.execute(sqlalchemy.text(
            "INSERT INTO users (id, name, active, email) VALUES "
            "(1, 'Alice', 1, 'alice@example.com'), "
            "(2, 'Bob', 0, NULL), "
            "(3, 'Carol', 1, 'carol@example.com')"
        ))
    engine.dispose()
    return config


@pytest.fixture
def db_client(sqlite_config):
    client = DatabaseClient(sqlite_config)
    yield client
    client.close()


@pytest.fixture
def query_service(queries_dir, db_client, validator):
    return QueryService(
        store=QueryStore(queries_dir),
        db=db_client,
        validator=validator,
        max_sql_length=500,
    )


@pytest.fixture
def client(query_service):
    """API client wired to the temporary queries directory and database."""
    app.dependency_overrides[get_query_service] = lambda: query_service
    yield TestClient(app)
    app.dependency_overrides.clear()
