"""Statement values with safe parameter binding.

A statement is either positional (values bind to ``?`` in order) or named
(values bind to ``:name``). The two never mix: conditions added to a named
statement get generated names instead of ``?``.
"""

import itertools
import re
from dataclasses import dataclass, field, replace
from typing import Any, Union

_CONDITION_NAME = "_w{}"

# quoted literals are skipped when looking for ``?`` placeholders
_QMARK_TOKENS = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")
# colons SQLAlchemy's text() would read as bind parameters
_BARE_BIND = re.compile(r"(?<![:\w\\]):(?=\w)")


def _join(sql: str, fragment: str) -> str:
    """Append a fragment, keeping one space between clauses"""
    if sql and not sql.endswith(" ") and not fragment.startswith(" "):
        return f"{sql} {fragment}"
    return sql + fragment


class _Clauses:
    """Clause-appending behaviour shared by both statement variants"""

    sql: str
    has_where: bool
    open_condition: bool

    def append(self, fragment: str):
        """Append verbatim SQL"""
        return replace(self, sql=self.sql + fragment)  # type: ignore[type-var]

    def literal_condition(self, condition: str):
        """Append a caller-written condition, no binding"""
        return replace(  # type: ignore[type-var]
            self, sql=_join(self.sql, condition), open_condition=True
        )

    def clause(self, fragment: str):
        """Append a clause separated from the previous text by a space"""
        return replace(self, sql=_join(self.sql, fragment))  # type: ignore[type-var]

    def open_where(self):
        """Add the WHERE keyword unless the statement already has one"""
        if self.has_where:
            return self
        return replace(  # type: ignore[type-var]
            self, sql=_join(self.sql, "WHERE "), has_where=True, open_condition=False
        )

    def connect(self, keyword: str):
        """Add a boolean connective (AND / OR) between conditions"""
        return replace(  # type: ignore[type-var]
            self, sql=_join(self.sql, f"{keyword} "), open_condition=False
        )

    def condition(self, column: str, operator: str, value: Any):
        """Append ``<column> <operator> <placeholder>`` and bind ``value``"""
        bound, placeholder = self._bind(value)
        return replace(
            bound,
            sql=_join(bound.sql, f"{column} {operator} {placeholder} "),
            open_condition=True,
        )

    def _bind(self, value: Any):
        raise NotImplementedError


@dataclass(frozen=True)
class PositionalStatement(_Clauses):
    """SQL with ``?`` placeholders bound left to right"""

    sql: str = ""
    params: tuple[Any, ...] = ()
    has_where: bool = False
    open_condition: bool = False

    def _bind(self, value: Any) -> tuple["PositionalStatement", str]:
        return replace(self, params=self.params + (value,)), "?"

    def compile(self) -> tuple[str, dict[str, Any]]:
        """Render for SQLAlchemy ``text()``: each ``?`` becomes ``:_p<n>``"""
        counter = itertools.count()

        def placeholder(match: "re.Match[str]") -> str:
            token = match.group(0)
            if token != "?":
                return token
            return f":_p{next(counter)}"

        sql = _QMARK_TOKENS.sub(placeholder, _BARE_BIND.sub(r"\\:", self.sql))
        return sql, {f"_p{i}": value for i, value in enumerate(self.params)}


@dataclass(frozen=True)
class NamedStatement(_Clauses):
    """SQL with ``:name`` placeholders bound by name"""

    sql: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    has_where: bool = False
    open_condition: bool = False

    def _bind(self, value: Any) -> tuple["NamedStatement", str]:
        n = 0
        while _CONDITION_NAME.format(n) in self.params:
            n += 1
        name = _CONDITION_NAME.format(n)
        return replace(self, params={**self.params, name: value}), f":{name}"

    def compile(self) -> tuple[str, dict[str, Any]]:
        """Render for SQLAlchemy ``text()``"""
        return self.sql, dict(self.params)


Statement = Union[PositionalStatement, NamedStatement]
