"""
Helper functions for reading and changing the driver auto-commit flag.

These work on raw DBAPI connections as well as SQLAlchemy connections and
pool proxies; the dialect strategy decides how the flag is exposed.
"""
import logging
from typing import Any

from smartcommit.strategy import get_db_strategy, get_strategy
from smartcommit.utils import get_raw_connection

logger = logging.getLogger(__name__)

__all__ = [
    'get_driver_autocommit',
    'enable_auto_commit',
    'disable_auto_commit',
    'diagnose_connection',
]


def _resolve(connection: Any, dialect: str | None) -> tuple[Any, Any]:
    """Return the strategy and raw DBAPI connection for a connection."""
    strategy = get_strategy(dialect) if dialect else get_db_strategy(connection)
    return strategy, get_raw_connection(connection)


def get_driver_autocommit(connection: Any, dialect: str | None = None) -> bool:
    """Read the live auto-commit flag of the driver connection.
    """
    strategy, raw_conn = _resolve(connection, dialect)
    return strategy.get_autocommit(raw_conn)


def enable_auto_commit(connection: Any, dialect: str | None = None) -> None:
    """Enable auto-commit mode on the driver connection.

    Works with:
    - psycopg (PostgreSQL)
    - sqlite3
    - SQLAlchemy connections and pool proxies wrapping either
    """
    strategy, raw_conn = _resolve(connection, dialect)
    strategy.enable_autocommit(raw_conn)
    logger.debug(f'Enabled driver autocommit on {strategy.dialect_name} connection {id(raw_conn)}')


def disable_auto_commit(connection: Any, dialect: str | None = None) -> None:
    """Disable auto-commit mode on the driver connection.
    """
    strategy, raw_conn = _resolve(connection, dialect)
    strategy.disable_autocommit(raw_conn)
    logger.debug(f'Disabled driver autocommit on {strategy.dialect_name} connection {id(raw_conn)}')


def diagnose_connection(conn: Any) -> dict[str, Any]:
    """Diagnose connection state for debugging.
    """
    info: dict[str, Any] = {
        'type': 'unknown',
        'auto_commit': None,
        'driver_auto_commit': None,
        'smart_commit': None,
        'in_transaction': False,
        'closed': False,
    }

    if hasattr(conn, 'dialect'):
        info['type'] = conn.dialect

    info['closed'] = getattr(conn, 'closed', False)
    info['auto_commit'] = getattr(conn, 'autocommit', None)
    info['smart_commit'] = getattr(conn, 'smart_commit', None)

    if not info['closed']:
        try:
            info['driver_auto_commit'] = get_driver_autocommit(conn.dbapi_connection, info['type'])
        except (AttributeError, ValueError) as e:
            logger.debug(f'Could not read driver autocommit: {e}')

    if hasattr(conn, 'in_transaction'):
        info['in_transaction'] = conn.in_transaction

    return info
