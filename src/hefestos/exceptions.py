"""Exceptions raised by hefestos.

Structural misuse (no configuration, no table, closed connection) is raised.
Driver failures are not: they come back as ``False`` from terminal calls and
are described by ``QueryBuilder.errors()``.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hefestos.result import ErrorInfo


class HefestosError(Exception):
    """Base class for all hefestos exceptions."""


class ConfigurationError(HefestosError):
    """Raised when no usable connection descriptor is available."""


class MissingTableError(HefestosError):
    """Raised when a statement is executed without a target table."""


class ConnectionClosedError(HefestosError):
    """Raised when an operation is issued after the connection was closed."""


class StatementError(HefestosError):
    """Raised when executing with no statement started."""


class InvalidConditionError(HefestosError, ValueError):
    """Raised when a ``where`` condition key cannot be parsed."""


class InvalidIdentifierError(HefestosError, ValueError):
    """Raised when a column name is not a plain SQL identifier."""


class DriverError(HefestosError):
    """A failure reported by the database driver.

    Raised when the connection cannot be opened, and for statement failures
    only on request through ``StatementHandle.raise_for_error()``.
    """

    def __init__(self, error_info: "ErrorInfo", sql: str = ""):
        self.error_info = error_info
        self.sql = sql
        super().__init__(
            f"[{error_info.sqlstate}] {error_info.message} (driver code: {error_info.code})"
        )
