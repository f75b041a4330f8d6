"""Small helpers shared across hefestos."""

from .identifiers import is_valid_identifier, validate_identifier

__all__ = ["is_valid_identifier", "validate_identifier"]
