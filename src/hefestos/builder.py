"""Fluent statement builder and executor.

A QueryBuilder holds the statement being assembled for one target table.
Chaining methods append to it; terminal methods (``first``, ``all``,
``insert``, ``update``, ``delete``, ``execute``, ``to_df``) run it against the
connection and clear it. The table, result shape and fetch mode persist
between statements.

Example:
    >>> db = Connector({"driver": "sqlite", "path": "app.db"}).builder()
    >>> db.table("users").where({"status": "active", "age >=": 18}).all()
    [{'id': 1, 'name': 'a', 'status': 'active', 'age': 30}]
    >>> db.current_sql()
    ''
"""

import enum
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal, Optional, Union

import pandas as pd

from hefestos.conditions import parse_condition_key
from hefestos.exceptions import MissingTableError, StatementError
from hefestos.records import check_record_type, to_record
from hefestos.result import ErrorInfo, FetchMode, StatementHandle
from hefestos.statement import NamedStatement, PositionalStatement, Statement
from hefestos.utils.identifiers import validate_identifier

if TYPE_CHECKING:
    from hefestos.connection import Connector

Condition = Union[str, Mapping[str, Any], None]


class ResultShape(enum.Enum):
    """Whether rows come back as plain records or mapped objects"""
    RECORD = "record"
    OBJECT = "object"


class QueryBuilder:
    """Build, run and materialize SQL statements against one connection"""

    def __init__(self, connector: "Connector"):
        self._connector = connector
        self._table = ""
        self._statement: Optional[Statement] = None
        self._shape = ResultShape.RECORD
        self._record_type: Optional[type] = None
        self._fetch_mode = FetchMode.DICT
        self._handle: Optional[StatementHandle] = None

    @property
    def connector(self) -> "Connector":
        """The connection this builder executes against"""
        return self._connector

    @property
    def table_name(self) -> str:
        """Target table of the next statement"""
        return self._table

    # Statement building

    def table(self, name: str) -> "QueryBuilder":
        """Set the table the next statements run against"""
        self._table = name
        return self

    def select(self, columns: Union[str, Sequence[str]] = ("*",)) -> "QueryBuilder":
        """Start a SELECT of ``columns`` from the current table"""
        if isinstance(columns, str):
            columns = [columns]
        self._statement = PositionalStatement(f"SELECT {', '.join(columns)} FROM {self._table}")
        return self

    def where(self, condition: Condition) -> "QueryBuilder":
        """
        Add conditions to the current statement.

        Args:
            condition: Either a SQL string appended verbatim (no binding), or a
                mapping of ``"<column> [<operator>]"`` to value. Each entry
                becomes ``<column> <operator> ?`` with the value bound; entries
                are joined with AND. The operator defaults to ``=``.

        Starts a ``SELECT *`` when no statement has been started, adds the
        WHERE keyword only once, and joins with AND onto conditions added by
        an earlier call.

        Raises:
            InvalidConditionError: If a key is not a column with an optional operator

        Example:
            >>> db.table("users").where({"status =": "active", "age >=": 18}).current_sql()
            'SELECT * FROM users WHERE status = ? AND age >= ? '
        """
        if not condition:
            return self

        if isinstance(condition, str):
            parsed = None
        elif isinstance(condition, Mapping):
            parsed = [(*parse_condition_key(key), value) for key, value in condition.items()]
        else:
            raise TypeError(
                f"where() expects a string or a mapping, got {type(condition).__name__}"
            )

        if self._statement is None:
            self.select()
        assert self._statement is not None

        stmt = self._statement
        if stmt.has_where and stmt.open_condition:
            stmt = stmt.connect("AND")
        else:
            stmt = stmt.open_where()

        if parsed is None:
            stmt = stmt.literal_condition(condition)  # type: ignore[arg-type]
        else:
            for i, (column, operator, value) in enumerate(parsed):
                if i:
                    stmt = stmt.connect("AND")
                stmt = stmt.condition(column, operator, value)

        self._statement = stmt
        return self

    def or_where(self, condition: Condition) -> "QueryBuilder":
        """Add conditions joined to the previous ones with OR"""
        if not condition:
            return self

        stmt = self._statement
        if stmt is not None and stmt.has_where and stmt.open_condition:
            self._statement = stmt.connect("OR")
        return self.where(condition)

    def join(self, target_table: str, on_condition: str, kind: str = "INNER") -> "QueryBuilder":
        """Append ``<kind> JOIN <target_table> ON <on_condition>`` verbatim"""
        if self._statement is None:
            self.select()
        assert self._statement is not None
        self._statement = self._statement.append(f" {kind} JOIN {target_table} ON {on_condition}")
        return self

    def order_by(self, column: str, direction: str = "ASC") -> "QueryBuilder":
        """Append ``ORDER BY <column> <direction>`` verbatim"""
        if self._statement is None:
            self.select()
        assert self._statement is not None
        self._statement = self._statement.clause(f"ORDER BY {column} {direction} ")
        return self

    # Writes

    def insert(self, record: Any, return_id: bool = True) -> Union[str, bool]:
        """
        Insert one row into the current table.

        Args:
            record: Mapping, dataclass, pydantic model or plain object
            return_id: Return the generated id instead of a success flag

        Returns:
            The new id as a string (False if unavailable or the insert failed),
            or the success flag when ``return_id`` is False
        """
        fields = self._fields(record)
        columns = ", ".join(fields)
        values = ", ".join(f":{name}" for name in fields)
        self._statement = NamedStatement(
            f"INSERT INTO {self._table} ({columns}) VALUES ({values})", fields
        )

        ok = self._execute()
        if not return_id:
            return ok
        return self.last_insert_id() if ok else False

    def update(self, record: Any, where: Condition = None) -> bool:
        """Update rows of the current table matching ``where`` with the fields of ``record``"""
        fields = self._fields(record)
        assignments = ", ".join(f"{name} = :{name}" for name in fields)
        self._statement = NamedStatement(f"UPDATE {self._table} SET {assignments}", fields)
        self.where(where)
        return self._execute()

    def delete(self, where: Condition) -> bool:
        """Delete rows of the current table matching ``where``"""
        self._statement = PositionalStatement(f"DELETE FROM {self._table}")
        self.where(where)
        return self._execute()

    def execute(
        self, sql: str, params: Any = None
    ) -> Union[StatementHandle, Literal[False]]:
        """
        Run a complete caller-written statement.

        No table is required for this call. The handle stays readable until
        the builder runs its next statement, which closes it.

        Args:
            sql: SQL using ``:name`` placeholders (with a mapping or object)
                or ``?`` placeholders (with a sequence)
            params: Mapping, sequence, or object flattened like ``insert``

        Returns:
            The StatementHandle on success, False on a driver error

        Example:
            >>> db.execute("SELECT * FROM users WHERE id >= :id", {"id": 1}).fetch_all()
        """
        if params is None:
            self._statement = PositionalStatement(sql)
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes)):
            self._statement = PositionalStatement(sql, tuple(params))
        else:
            self._statement = NamedStatement(sql, to_record(params))

        handle = self._execute(return_handle=True, require_table=False)
        return handle if handle.ok else False

    # Result shape

    def as_records(self) -> "QueryBuilder":
        """Return rows as plain records from now on"""
        self._shape = ResultShape.RECORD
        self._record_type = None
        return self

    def as_objects(self, record_type: type) -> "QueryBuilder":
        """Return rows as ``record_type.from_record(row)`` from now on"""
        self._record_type = check_record_type(record_type)
        self._shape = ResultShape.OBJECT
        return self

    def fetch_mode(self, mode: Union[FetchMode, str]) -> "QueryBuilder":
        """Set how records are represented: FetchMode.DICT or FetchMode.TUPLE"""
        self._fetch_mode = FetchMode(mode)
        return self

    # Execution and materialization

    def first(self, column: Optional[str] = None) -> Any:
        """
        Run the statement and return its first row.

        Args:
            column: Return only this field of the row (None if absent)

        Returns:
            The row shaped per the result shape, or None when there is no row
        """
        handle = self._run_query()

        if column is not None:
            row = handle.fetch_one(FetchMode.DICT)
            return row.get(column) if row is not None else None

        if self._shape is ResultShape.OBJECT:
            row = handle.fetch_one(FetchMode.DICT)
            return self._record_type.from_record(row) if row is not None else None  # type: ignore[union-attr]

        return handle.fetch_one(self._fetch_mode)

    def all(self, single_column: bool = False) -> list[Any]:
        """
        Run the statement and return all rows.

        Args:
            single_column: Return the first selected column of each row as a flat list

        Example:
            >>> db.table("pets").select(["name"]).all(single_column=True)
            ['Rex', 'Tom']
        """
        handle = self._run_query()

        if single_column:
            return handle.fetch_column()

        if self._shape is ResultShape.OBJECT:
            return [
                self._record_type.from_record(row)  # type: ignore[union-attr]
                for row in handle.fetch_all(FetchMode.DICT)
            ]

        return handle.fetch_all(self._fetch_mode)

    def to_df(self, lowercase_columns: bool = False) -> pd.DataFrame:
        """Run the statement and return all rows as a DataFrame"""
        return self._run_query().to_df(lowercase_columns=lowercase_columns)

    def find(self, record_id: Any, column: Optional[str] = None) -> Any:
        """First row of the current table whose ``id`` column equals ``record_id``"""
        return self.primary_where({"id": record_id}, column)

    def primary_where(self, condition: Condition, column: Optional[str] = None) -> Any:
        """First row matching ``condition``"""
        return self.where(condition).first(column)

    def _run_query(self) -> StatementHandle:
        if self._statement is None:
            self.select()
        return self._execute(return_handle=True)

    def _execute(self, return_handle: bool = False, require_table: bool = True) -> Any:
        """
        Execute the current statement and clear it.

        Args:
            return_handle: Return the StatementHandle instead of the success flag
            require_table: Fail if no table is set

        Raises:
            MissingTableError: If ``require_table`` and no table is set
            StatementError: If no statement has been started
            ConnectionClosedError: If the connection was closed
        """
        statement, self._statement = self._statement, None

        if require_table and not self._table:
            raise MissingTableError(
                "No table set for this statement; call table(name) first "
                "or use execute() for a complete SQL statement"
            )
        if statement is None:
            raise StatementError("No statement to execute")

        if self._handle is not None:
            self._handle.close()
        self._handle = self._connector.run(statement)
        return self._handle if return_handle else self._handle.ok

    @staticmethod
    def _fields(record: Any) -> dict[str, Any]:
        fields = to_record(record)
        if not fields:
            raise StatementError("Cannot write an empty record")
        for name in fields:
            validate_identifier(name)
        return fields

    # Introspection

    def affected_rows(self) -> int:
        """Rows affected by the last statement (0 before any, and for SELECT on SQLite)"""
        return self._handle.rowcount if self._handle is not None else 0

    def last_insert_id(self) -> Union[str, Literal[False]]:
        """Id generated by the most recent INSERT on the connection, or False"""
        return self._connector.last_insert_id()

    def errors(self) -> ErrorInfo:
        """Driver error details of the last statement"""
        return self._handle.error_info if self._handle is not None else ErrorInfo.ok()

    def last_statement(self) -> Optional[StatementHandle]:
        """Handle of the last executed statement"""
        return self._handle

    def current_sql(self) -> str:
        """SQL assembled so far; empty once executed"""
        return self._statement.sql if self._statement is not None else ""

    def close(self) -> None:
        """Close the connection and release the last statement handle"""
        if self._handle is not None:
            self._handle.close()
        self._connector.close()
        self._handle = None
        self._statement = None

    def __repr__(self) -> str:
        return f"QueryBuilder(table={self._table!r}, {self._connector!r})"
