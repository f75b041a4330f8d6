"""Connection module exports."""

from .connection import Connector
from .descriptor import ConnectionDescriptor, DriverKind, format_connection

__all__ = [
    "Connector",
    "ConnectionDescriptor",
    "DriverKind",
    "format_connection",
]
