"""Process-wide query builder bound to a single connection.

Code that cannot pass a builder around can use ``get_instance()``; the first
call opens the connection, later calls hand back the same builder with its
table reset. Callers that may run concurrently should use their own builder
from ``Connector.builder()`` instead.
"""

import logging
from typing import Any, Dict, Optional, Union

from hefestos.builder import QueryBuilder
from hefestos.connection import ConnectionDescriptor, Connector
from hefestos.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_instance: Optional[QueryBuilder] = None


def get_instance(
    descriptor: Union[ConnectionDescriptor, Dict[str, Any], str, None] = None,
) -> QueryBuilder:
    """
    Return the process-wide QueryBuilder, creating it on first use.

    Args:
        descriptor: ConnectionDescriptor, mapping of its fields, or profile
            name. Required on the first call, ignored afterwards.

    Returns:
        The shared QueryBuilder with no table set

    Raises:
        ConfigurationError: If no instance exists yet and no descriptor is given
    """
    global _instance

    if _instance is not None:
        return _instance.table("")

    if descriptor is None:
        raise ConfigurationError(
            "No database connection configured: pass a connection descriptor "
            "or profile name on the first call to get_instance()"
        )

    connector = Connector(descriptor)
    _instance = QueryBuilder(connector)
    logger.debug("Created shared query builder for %s", connector.descriptor.dsn)
    return _instance


def close() -> None:
    """Close the shared connection; the next get_instance() needs a descriptor again"""
    global _instance

    if _instance is not None:
        _instance.close()
        _instance = None
