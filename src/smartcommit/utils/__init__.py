"""Low-level connection utilities with no internal dependencies.

These utilities work with any connection type (SmartCommitConnection,
SQLAlchemy connections and pool proxies, raw DBAPI connections) and import
nothing from other smartcommit modules, so they are safe to import from
anywhere.
"""
from typing import Any

__all__ = ['get_dialect_name', 'get_raw_connection']


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection or engine.
    """
    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    if hasattr(obj, 'engine') and hasattr(obj.engine, 'dialect'):
        return str(obj.engine.dialect.name).lower()

    if hasattr(obj, 'driver_connection'):
        return get_dialect_name(obj.driver_connection)

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a wrapper.

    SQLAlchemy pool proxies forward attribute reads but not writes, so
    auto-commit flags must be set on the driver connection itself.
    """
    raw_conn = connection
    if hasattr(connection, 'driver_connection'):
        raw_conn = connection.driver_connection
    return raw_conn
