"""Connection descriptors and connection string formatting."""

import enum
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import keyring
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, model_validator
from sqlalchemy.engine import URL

from hefestos.config import load_profile
from hefestos.exceptions import ConfigurationError


class DriverKind(str, enum.Enum):
    """Supported database drivers"""

    SQLITE = "sqlite"  # relational file
    MYSQL = "mysql"  # client-server


class ConnectionDescriptor(BaseModel):
    """Everything needed to open one database connection

    Only the fields relevant to the chosen driver are required: ``path`` for
    SQLite, ``host`` and ``database`` for MySQL.

    Example:
        >>> ConnectionDescriptor(driver="sqlite", path="app.db").dsn
        'sqlite:app.db'
        >>> ConnectionDescriptor(driver="mysql", host="db", database="app").dsn
        'mysql:host=db;dbname=app'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    driver: DriverKind
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    path: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_driver_fields(self) -> "ConnectionDescriptor":
        if self.driver is DriverKind.SQLITE and not self.path:
            raise ValueError("SQLite connections require 'path' (use ':memory:' for in-memory)")
        if self.driver is DriverKind.MYSQL:
            missing = [name for name in ("host", "database") if not getattr(self, name)]
            if missing:
                raise ValueError(f"MySQL connections require {', '.join(missing)}")
        return self

    @classmethod
    def parse(cls, value: Union["ConnectionDescriptor", Dict[str, Any], str]) -> "ConnectionDescriptor":
        """Build a descriptor from a descriptor, a mapping or a profile name"""
        if isinstance(value, ConnectionDescriptor):
            return value
        if isinstance(value, str):
            return cls.from_profile(value)
        try:
            return cls.model_validate(value)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid connection descriptor: {e}") from e

    @classmethod
    def from_profile(
        cls,
        profile: str,
        path: Optional[Union[str, Path]] = None,
        **overrides: Any,
    ) -> "ConnectionDescriptor":
        """Load a descriptor from a connections.toml profile with optional overrides"""
        try:
            cfg = load_profile(profile, path=path)
        except (FileNotFoundError, KeyError) as e:
            raise ConfigurationError(str(e)) from e
        cfg.update(overrides)

        password_env = cfg.pop("password_env", None)
        use_keyring = cfg.pop("use_keyring", False)
        keyring_service = cfg.pop("keyring_service", f"hefestos.{profile}")
        keyring_username = cfg.pop("keyring_username", cfg.get("username"))

        if "password" not in cfg:
            password = _lookup_password(password_env, use_keyring, keyring_service, keyring_username)
            if password is not None:
                cfg["password"] = password

        try:
            return cls.model_validate(cfg)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid connection profile '{profile}': {e}") from e

    @property
    def dsn(self) -> str:
        """Connection string in ``driver:host=H;dbname=D`` / ``driver:PATH`` form"""
        if self.driver is DriverKind.MYSQL:
            return f"{self.driver.value}:host={self.host};dbname={self.database}"
        return f"{self.driver.value}:{self.path}"

    @property
    def url(self) -> URL:
        """SQLAlchemy URL for this descriptor"""
        if self.driver is DriverKind.SQLITE:
            return URL.create("sqlite", database=self.path)
        return URL.create(
            "mysql+pymysql",
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            host=self.host,
            port=self.port,
            database=self.database,
        )


def _lookup_password(
    env_var: Optional[str],
    use_keyring: bool,
    service: str,
    username: Optional[str],
) -> Optional[str]:
    """Retrieve a password from an environment variable or the system keyring"""
    if env_var:
        env_pass = os.environ.get(env_var)
        if env_pass:
            return env_pass

    if use_keyring:
        if not username:
            raise ConfigurationError(
                "Keyring usage requires 'username' in profile or 'keyring_username' override."
            )
        return keyring.get_password(service, username)

    return None


def format_connection(descriptor: ConnectionDescriptor) -> tuple[str, Optional[str], Optional[str]]:
    """Return ``(dsn, username, password)``; credentials pass through unmodified"""
    password = descriptor.password.get_secret_value() if descriptor.password is not None else None
    return descriptor.dsn, descriptor.username, password
