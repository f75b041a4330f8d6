"""Pytest configuration and shared fixtures."""

from typing import Iterator
from unittest.mock import Mock

import pytest

import hefestos.manager
from hefestos.builder import QueryBuilder
from hefestos.connection import Connector
from hefestos.result import StatementHandle


@pytest.fixture(autouse=True)
def reset_shared_instance() -> Iterator[None]:
    """Make sure no test leaks the process-wide builder into another."""
    yield
    hefestos.manager.close()


@pytest.fixture
def mock_connector() -> Mock:
    """Connector double whose run() succeeds with no rows."""
    connector = Mock(spec=Connector)
    connector.run.side_effect = lambda statement: StatementHandle(
        sql=statement.sql, params=statement.params, _result=Mock(returns_rows=False)
    )
    connector.last_insert_id.return_value = "7"
    return connector


@pytest.fixture
def builder(mock_connector) -> QueryBuilder:
    """QueryBuilder over the mock connector, table 'users'."""
    return QueryBuilder(mock_connector).table("users")


@pytest.fixture
def connector() -> Iterator[Connector]:
    """Connector to a fresh in-memory SQLite database."""
    conn = Connector({"driver": "sqlite", "path": ":memory:"})
    yield conn
    conn.close()


@pytest.fixture
def db(connector) -> QueryBuilder:
    """Builder over an in-memory database with a populated 'users' table."""
    qb = connector.builder()
    qb.execute(
        "CREATE TABLE users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "name TEXT NOT NULL UNIQUE, "
        "status TEXT, "
        "age INTEGER)"
    )
    qb.execute(
        "CREATE TABLE pets ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "owner_id INTEGER REFERENCES users(id), "
        "name TEXT)"
    )
    qb.table("users")
    for name, status, age in [
        ("ana", "active", 31),
        ("bruno", "active", 17),
        ("carla", "inactive", 45),
    ]:
        qb.insert({"name": name, "status": status, "age": age})
    return qb


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary connections.toml with one profile per driver."""
    config_content = """
[local]
driver = "sqlite"
path = ":memory:"

[mysql]
driver = "mysql"
host = "db.example.com"
port = 3306
database = "app"
username = "app_user"
password = "s3cret"

[mysql_env]
driver = "mysql"
host = "db.example.com"
database = "app"
username = "app_user"
password_env = "HEFESTOS_TEST_PASSWORD"

[mysql_keyring]
driver = "mysql"
host = "db.example.com"
database = "app"
username = "app_user"
use_keyring = true

[broken]
driver = "mysql"
host = "db.example.com"
"""
    config_path = tmp_path / "connections.toml"
    config_path.write_text(config_content)
    return config_path
