"""Live database connection management."""

import logging
from typing import TYPE_CHECKING, Any, Literal, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, StatementError

from hefestos.exceptions import ConnectionClosedError, DriverError
from hefestos.result import ErrorInfo, StatementHandle
from hefestos.statement import Statement

from .descriptor import ConnectionDescriptor

if TYPE_CHECKING:
    from hefestos.builder import QueryBuilder

logger = logging.getLogger(__name__)


class Connector:
    """
    Owns one database connection opened from a ConnectionDescriptor.

    The connection is created lazily on first use and runs in autocommit
    mode: every statement is committed as soon as it executes. Driver
    failures never raise from ``run``; they come back as a failed
    StatementHandle.

    Args:
        descriptor: ConnectionDescriptor, mapping of descriptor fields, or profile name
        **engine_kwargs: Extra keyword arguments for ``sqlalchemy.create_engine``

    Example:
        >>> with Connector({"driver": "sqlite", "path": ":memory:"}) as connector:
        ...     db = connector.builder()
        ...     db.execute("CREATE TABLE pets (id INTEGER PRIMARY KEY, name TEXT)")
        ...     db.table("pets").insert({"name": "Rex"})
        '1'
    """

    def __init__(
        self,
        descriptor: Union[ConnectionDescriptor, dict, str],
        **engine_kwargs: Any,
    ) -> None:
        self.descriptor = ConnectionDescriptor.parse(descriptor)
        self._engine_kwargs = {**self.descriptor.options, **engine_kwargs}
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._last_insert_id: Optional[str] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once close() has been called"""
        return self._closed

    def connect(self) -> Connection:
        """
        Open the connection if not already open.

        Returns:
            The live SQLAlchemy Connection

        Raises:
            ConnectionClosedError: If the connector was closed
            DriverError: If the database refused the connection
        """
        self._ensure_open()
        if self._connection is None:
            url = self.descriptor.url
            logger.info("Connecting to %s", url.render_as_string(hide_password=True))
            if self._engine is None:
                self._engine = create_engine(url, **self._engine_kwargs)
            try:
                connection = self._engine.connect()
            except DBAPIError as e:
                error_info = ErrorInfo.from_exception(e)
                logger.error("Could not connect to %s: %s", self.descriptor.dsn, error_info.message)
                raise DriverError(error_info) from e
            self._connection = connection.execution_options(isolation_level="AUTOCOMMIT")

        return self._connection

    def run(self, statement: Statement) -> StatementHandle:
        """
        Prepare and execute a statement, returning its handle.

        Statement failures come back as a failed handle. Failing to open the
        connection is not a statement failure and raises DriverError.
        """
        connection = self.connect()
        sql, params = statement.compile()
        logger.debug("Executing: %s (%d parameters)", statement.sql, len(params))

        try:
            result = connection.execute(text(sql), params)
        except StatementError as e:
            handle = StatementHandle.failed(statement.sql, statement.params, e)
            logger.warning(
                "Statement failed [%s] %s: %s",
                handle.error_info.sqlstate,
                handle.error_info.message,
                statement.sql,
            )
            return handle

        handle = StatementHandle.from_result(statement.sql, statement.params, result)
        if handle.lastrowid is not None and _is_insert(statement.sql):
            self._last_insert_id = str(handle.lastrowid)
        return handle

    def last_insert_id(self) -> Union[str, Literal[False]]:
        """Id generated by the most recent INSERT on this connection, or False"""
        self._ensure_open()
        return self._last_insert_id if self._last_insert_id is not None else False

    def builder(self) -> "QueryBuilder":
        """Create a fresh QueryBuilder bound to this connection"""
        from hefestos.builder import QueryBuilder

        return QueryBuilder(self)

    def close(self) -> None:
        """Close the connection and dispose of the engine, releasing resources."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Closed %s connection", self.descriptor.driver.value)
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError(
                f"Connection to {self.descriptor.dsn} has been closed"
            )

    def __enter__(self) -> "Connector":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> Literal[False]:
        """Context manager exit: close connection, propagating any exception."""
        self.close()
        return False

    def __repr__(self) -> str:
        if self._closed:
            status = "closed"
        else:
            status = "connected" if self._connection is not None else "not connected"
        return f"Connector(dsn='{self.descriptor.dsn}', {status})"


def _is_insert(sql: str) -> bool:
    return sql.lstrip().upper().startswith(("INSERT", "REPLACE"))
