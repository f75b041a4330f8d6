"""
hefestos - fluent SQL query building over a single database connection

Code is organized in layers
- config/ and connection/ describe and open the connection
- statement, conditions and result hold statements and their outcomes
- builder is the fluent interface; manager keeps one process-wide builder
"""

# Layer 1: Configuration & connection
from hefestos.config import load_profile, list_profiles
from hefestos.connection import Connector, ConnectionDescriptor, DriverKind, format_connection

# Layer 2: Statements and results
from hefestos.statement import NamedStatement, PositionalStatement
from hefestos.result import ErrorInfo, FetchMode, StatementHandle

# Layer 3: Builder
from hefestos.builder import QueryBuilder, ResultShape
from hefestos.records import FromRecord, RecordModel
from hefestos.manager import get_instance, close

from hefestos.exceptions import (
    HefestosError,
    ConfigurationError,
    MissingTableError,
    ConnectionClosedError,
    StatementError,
    DriverError,
    InvalidConditionError,
    InvalidIdentifierError,
)

__version__ = "0.1.0"
__all__ = [
    # Layer 1: Configuration & Connection
    "load_profile",
    "list_profiles",
    "Connector",
    "ConnectionDescriptor",
    "DriverKind",
    "format_connection",
    # Layer 2: Statements and results
    "NamedStatement",
    "PositionalStatement",
    "ErrorInfo",
    "FetchMode",
    "StatementHandle",
    # Layer 3: Builder
    "QueryBuilder",
    "ResultShape",
    "FromRecord",
    "RecordModel",
    "get_instance",
    "close",
    # Exceptions
    "HefestosError",
    "ConfigurationError",
    "MissingTableError",
    "ConnectionClosedError",
    "StatementError",
    "DriverError",
    "InvalidConditionError",
    "InvalidIdentifierError",
]
