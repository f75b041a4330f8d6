"""Parsing of ``where`` condition keys.

A key names a column and, optionally, a trailing comparison operator::

    {"status": "active"}        -> status = ?
    {"age >=": 18}              -> age >= ?
    {"name LIKE": "a%"}         -> name LIKE ?
    {"users.id": 3}             -> usersid = ?   (dots are stripped)

Keys that do not fit this shape are rejected rather than guessed at.
"""

import re

from hefestos.exceptions import InvalidConditionError

OPERATORS = ("=", "!=", "<>", "<", ">", "<=", ">=", "LIKE", "NOT LIKE")

_KEY = re.compile(
    r"\s*(?P<column>[A-Za-z_][A-Za-z0-9_]*)"
    r"\s*(?P<operator>not\s+like|like|<=|>=|<>|!=|=|<|>)?\s*",
    re.IGNORECASE,
)


def parse_condition_key(key: str) -> tuple[str, str]:
    """Split a condition key into ``(column, operator)``; operator defaults to ``=``"""
    if not isinstance(key, str):
        raise InvalidConditionError(
            f"Condition keys must be strings, got {type(key).__name__}: {key!r}"
        )

    match = _KEY.fullmatch(key.replace(".", ""))
    if match is None:
        raise InvalidConditionError(
            f"Cannot parse condition key {key!r}: expected '<column>' or "
            f"'<column> <operator>' with operator one of {', '.join(OPERATORS)}"
        )

    operator = match.group("operator")
    if operator is None:
        return match.group("column"), "="

    # "not   like" -> "NOT LIKE"
    return match.group("column"), " ".join(operator.upper().split())
