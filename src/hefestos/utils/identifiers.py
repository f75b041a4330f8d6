"""Utilities for validating SQL identifiers"""

import re

from hefestos.exceptions import InvalidIdentifierError

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_valid_identifier(name: str) -> bool:
    """Check if a string is a plain unquoted SQL identifier"""
    if not name:
        return False

    # Pattern: starts with letter or underscore, followed by letters, digits, or underscores
    return bool(_IDENTIFIER.fullmatch(name))


def validate_identifier(name: str, what: str = "column") -> str:
    """Return ``name`` unchanged or raise InvalidIdentifierError"""
    if not is_valid_identifier(name):
        raise InvalidIdentifierError(
            f"Invalid {what} name {name!r}: must start with a letter or underscore "
            "and contain only letters, digits, and underscores"
        )
    return name
