"""Handles on executed statements"""
import enum
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

import pandas as pd
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import DBAPIError, StatementError

from hefestos.exceptions import DriverError


class FetchMode(enum.Enum):
    """How fetched rows are represented"""
    DICT = "dict"
    TUPLE = "tuple"


class ErrorInfo(NamedTuple):
    """Driver error details: SQLSTATE, driver-specific code and message"""
    sqlstate: str
    code: Optional[Any]
    message: Optional[str]

    @classmethod
    def ok(cls) -> "ErrorInfo":
        return cls("00000", None, None)

    @classmethod
    def from_exception(cls, exc: StatementError) -> "ErrorInfo":
        """Extract what the driver reported from a SQLAlchemy error"""
        orig = exc.orig if isinstance(exc, DBAPIError) else None
        if orig is None:
            return cls("HY000", None, str(exc).splitlines()[0])

        # sqlite3 exposes sqlite_errorcode, pymysql puts the code in args[0]
        code = getattr(orig, "sqlite_errorcode", None)
        if code is None and orig.args and isinstance(orig.args[0], int):
            code = orig.args[0]
        message = str(orig.args[-1]) if orig.args else str(orig)
        return cls(getattr(orig, "sqlstate", None) or "HY000", code, message)


@dataclass
class StatementHandle:
    """The outcome of one executed statement

    Rows are fetched lazily from the driver result; row count and last
    insert id are captured when the statement runs.
    """
    sql: str
    params: Any
    _result: Optional[CursorResult] = field(default=None, repr=False)
    error_info: ErrorInfo = field(default_factory=ErrorInfo.ok)
    rowcount: int = 0
    lastrowid: Optional[int] = None

    @classmethod
    def from_result(cls, sql: str, params: Any, result: CursorResult) -> "StatementHandle":
        rowcount = result.rowcount
        return cls(
            sql=sql,
            params=params,
            _result=result,
            # drivers report -1 when they do not count (SQLite SELECT)
            rowcount=rowcount if rowcount is not None and rowcount >= 0 else 0,
            lastrowid=result.lastrowid,
        )

    @classmethod
    def failed(cls, sql: str, params: Any, exc: StatementError) -> "StatementHandle":
        return cls(sql=sql, params=params, error_info=ErrorInfo.from_exception(exc))

    @property
    def ok(self) -> bool:
        """True if the statement executed without a driver error"""
        return self._result is not None

    @property
    def columns(self) -> list[str]:
        """Column names of the result set, empty when there are none"""
        if not self._has_rows():
            return []
        return list(self._result.keys())  # type: ignore[union-attr]

    def _has_rows(self) -> bool:
        return self._result is not None and self._result.returns_rows

    def fetch_one(self, mode: FetchMode = FetchMode.DICT) -> Optional[Any]:
        """Fetch the next row, or None when exhausted or nothing was returned"""
        if not self._has_rows():
            return None
        if mode is FetchMode.TUPLE:
            row = self._result.fetchone()  # type: ignore[union-attr]
            return tuple(row) if row is not None else None
        mapping = self._result.mappings().fetchone()  # type: ignore[union-attr]
        return dict(mapping) if mapping is not None else None

    def fetch_all(self, mode: FetchMode = FetchMode.DICT) -> list[Any]:
        """Fetch all remaining rows"""
        if not self._has_rows():
            return []
        if mode is FetchMode.TUPLE:
            return [tuple(row) for row in self._result.fetchall()]  # type: ignore[union-attr]
        return [dict(row) for row in self._result.mappings().fetchall()]  # type: ignore[union-attr]

    def fetch_column(self) -> list[Any]:
        """Fetch the first column of all remaining rows as a flat list"""
        if not self._has_rows():
            return []
        return list(self._result.scalars().all())  # type: ignore[union-attr]

    def to_df(self, lowercase_columns: bool = False) -> pd.DataFrame:
        """Fetch all remaining rows as a DataFrame with optional column casing"""
        columns = self.columns
        df = pd.DataFrame(self.fetch_all(FetchMode.TUPLE), columns=columns)
        if lowercase_columns and len(df.columns) > 0:
            df.columns = df.columns.str.lower()
        return df

    def close(self) -> None:
        """Release the driver cursor; remaining rows are discarded"""
        if self._result is not None:
            self._result.close()

    def raise_for_error(self) -> "StatementHandle":
        """Raise DriverError if the statement failed, else return self"""
        if not self.ok:
            raise DriverError(self.error_info, sql=self.sql)
        return self

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        status = "ok" if self.ok else f"failed: {self.error_info.message}"
        return f"StatementHandle(sql={self.sql!r}, rowcount={self.rowcount}, {status})"
