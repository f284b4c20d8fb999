"""
Base strategy interface for driver-specific operations.

Defines the abstract base class that all dialect strategies inherit from.
The smart-commit controller only ever talks to the underlying DB-API
connection through a strategy, which keeps driver differences (how the
auto-commit flag is exposed, how savepoints are spelled) out of the state
machine.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from smartcommit.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for driver-specific operations.
    """

    @contextmanager
    def _cursor(self, raw_conn: Any, sql: str):
        """Context manager for cursor lifecycle.

        Handles cursor creation, SQL execution, and cleanup.
        """
        cursor = raw_conn.cursor()
        try:
            cursor.execute(sql)
            yield cursor
        finally:
            cursor.close()

    def _execute_raw(self, raw_conn: Any, sql: str) -> None:
        """Execute a statement directly on the raw connection.

        Bypasses the smart-commit cursor, so nothing here is classified.
        """
        with self._cursor(raw_conn, sql):
            pass

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the database connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            Connection URL string suitable for SQLAlchemy
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def configure_connection(self, raw_conn: Any, autocommit: bool = True) -> None:
        """Put a freshly opened connection in its starting auto-commit mode.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
            autocommit: Initial auto-commit flag for the driver
        """
        if autocommit:
            self.enable_autocommit(raw_conn)
        else:
            self.disable_autocommit(raw_conn)

    @abstractmethod
    def get_autocommit(self, raw_conn: Any) -> bool:
        """Read the live auto-commit flag of a raw database connection.
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw database connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode on a raw database connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    def set_autocommit(self, raw_conn: Any, enable: bool) -> None:
        """Enable or disable auto-commit mode depending on `enable`."""
        if enable:
            self.enable_autocommit(raw_conn)
        else:
            self.disable_autocommit(raw_conn)

    def savepoint(self, raw_conn: Any, name: str) -> None:
        """Create a savepoint in the current transaction.
        """
        self._execute_raw(raw_conn, f'SAVEPOINT {self.quote_identifier(name)}')

    def rollback_to_savepoint(self, raw_conn: Any, name: str) -> None:
        """Undo all changes made after the savepoint was created.
        """
        self._execute_raw(raw_conn, f'ROLLBACK TO SAVEPOINT {self.quote_identifier(name)}')

    def release_savepoint(self, raw_conn: Any, name: str) -> None:
        """Forget a savepoint, keeping the changes made after it.
        """
        self._execute_raw(raw_conn, f'RELEASE SAVEPOINT {self.quote_identifier(name)}')

    def build_call_sql(self, procname: str, nparams: int) -> str:
        """Build the statement that calls a stored procedure.

        Args:
            procname: Procedure name, optionally schema-qualified
            nparams: Number of parameters to bind

        Returns
            str: CALL statement with one placeholder per parameter
        """
        placeholders = ', '.join([self.get_placeholder_style()] * nparams)
        return f'CALL {procname}({placeholders})'

    def get_placeholder_style(self) -> str:
        """Return the placeholder marker for this database.

        Returns
            str: Positional placeholder understood by the driver
        """
        return '%s'

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.

        Default implementation uses standard SQL double-quote escaping.
        Override in subclasses if the database requires different quoting.
        """
        return '"' + identifier.replace('"', '""') + '"'
