"""
SQLite-specific strategy implementation.

The sqlite3 module has no auto-commit attribute in legacy transaction
control mode; a connection is in auto-commit mode when its isolation level
is None. Setting the isolation level to None commits any open transaction.
"""
import sqlite3
from typing import TYPE_CHECKING, Any

from smartcommit.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from smartcommit.options import DatabaseOptions


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the SQLAlchemy connection URL for SQLite."""
        return f'sqlite:///{options.database}'

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        if options.timeout:
            return {'connect_args': {'timeout': options.timeout}}
        return {}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def get_autocommit(self, raw_conn: Any) -> bool:
        """Read the auto-commit flag of a sqlite3 connection.
        """
        return raw_conn.isolation_level is None

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = None

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = 'DEFERRED'

    def build_call_sql(self, procname: str, nparams: int) -> str:
        """SQLite has no stored procedures.

        Raises
            sqlite3.NotSupportedError: Always
        """
        raise sqlite3.NotSupportedError('SQLite does not support stored procedures')
