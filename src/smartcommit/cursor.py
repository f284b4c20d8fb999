"""
Smart-commit cursor implementation.

Implements Python DB-API 2.0 specification (PEP-249) by delegating to the
driver cursor. Every statement passes through the connection's
`before_execute` first, so the connection can leave driver auto-commit
mode before a statement that modifies data or schema runs.
"""
import logging
import time
from collections.abc import Iterator, Sequence
from functools import wraps
from typing import Any

from smartcommit.exceptions import IllegalStateError
from smartcommit.strategy import get_strategy

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


def dumpsql_many(func):
    """Decorator for logging executemany operations."""
    @wraps(func)
    def wrapper(self, operation: str, seq_of_parameters: Sequence, *args: Any, **kwargs: Any):
        start = time.time()
        rows = len(seq_of_parameters) if hasattr(seq_of_parameters, '__len__') else 'unknown'
        logger.debug(f'SQL:\n{operation}\nparams: {rows} rows')
        try:
            return func(self, operation, seq_of_parameters, *args, **kwargs)
        except Exception:
            logger.error(f'Error with executemany:\nSQL:\n{operation}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Executemany time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Cursor wrapper that reports every statement to its connection.

    `execute` lets the connection classify the statement text. Batches and
    procedure calls always start a transaction when the connection is
    deferring one, since their effect cannot be judged from the text.
    """

    def __init__(self, cursor: Any, connection_wrapper: Any) -> None:
        """Initialize cursor wrapper.

        Args:
            cursor: The underlying database cursor
            connection_wrapper: The SmartCommitConnection that created this cursor
        """
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    def __iter__(self) -> Iterator:
        return iter(self.dbapi_cursor)

    def __enter__(self) -> 'Cursor':
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    @property
    def connection(self) -> Any:
        """The connection this cursor was created from."""
        return self.connwrapper

    @property
    def description(self) -> list[tuple] | None:
        return self.dbapi_cursor.description

    @property
    def rowcount(self) -> int:
        """Rows affected by the last statement, -1 when unknown."""
        return self.dbapi_cursor.rowcount

    @property
    def arraysize(self) -> int:
        """Number of rows fetched by fetchmany()."""
        return self.dbapi_cursor.arraysize

    @arraysize.setter
    def arraysize(self, value: int) -> None:
        self.dbapi_cursor.arraysize = value

    def close(self) -> None:
        self.dbapi_cursor.close()

    def fetchone(self) -> tuple | None:
        return self.dbapi_cursor.fetchone()

    def fetchmany(self, size: int | None = None) -> list[tuple]:
        """Fetch up to `size` rows, `arraysize` by default."""
        if size is None:
            size = self.arraysize
        return self.dbapi_cursor.fetchmany(size)

    def fetchall(self) -> list[tuple]:
        return self.dbapi_cursor.fetchall()

    def setinputsizes(self, sizes: Sequence) -> None:
        """No-op, as DB-API allows."""

    def setoutputsize(self, size: int, column: int | None = None) -> None:
        """No-op, as DB-API allows."""

    def nextset(self) -> bool | None:
        """Advance to the next result set; None where the driver has no such concept."""
        if hasattr(self.dbapi_cursor, 'nextset'):
            return self.dbapi_cursor.nextset()
        return None

    @dumpsql
    def execute(self, operation: str, parameters: Any = None) -> 'Cursor':
        """Execute a database operation."""
        self.connwrapper.before_execute(operation)
        if parameters is None:
            self.dbapi_cursor.execute(operation)
        else:
            self.dbapi_cursor.execute(operation, parameters)
        return self

    @dumpsql_many
    def executemany(self, operation: str, seq_of_parameters: Sequence) -> 'Cursor':
        """Execute a database operation against all parameter sequences."""
        self.connwrapper.before_execute(operation, always_suspend=True)
        self.dbapi_cursor.executemany(operation, seq_of_parameters)
        return self

    @dumpsql
    def callproc(self, procname: str, parameters: Sequence = ()) -> Sequence:
        """Call a stored procedure with the given parameters.

        Returns the input parameters, as the DB-API specifies.
        """
        strategy = get_strategy(self.connwrapper.dialect)
        sql = strategy.build_call_sql(procname, len(parameters))
        self.connwrapper.before_execute(sql, always_suspend=True)
        self.dbapi_cursor.execute(sql, tuple(parameters))
        return parameters

    @dumpsql
    def executescript(self, script: str) -> 'Cursor':
        """Execute a multi-statement script (sqlite3 only).

        sqlite3 commits any pending transaction before a script and runs the
        script outside of transaction control, so scripts are only accepted
        in auto-commit mode.
        """
        if not self.connwrapper.autocommit:
            raise IllegalStateError('Cannot execute a script when not in autocommit')
        self.dbapi_cursor.executescript(script)
        return self

    def copy(self, statement: str, *args: Any, **kwargs: Any) -> Any:
        """Start a COPY operation (psycopg only), returning the driver's Copy object.
        """
        self.connwrapper.before_execute(statement, always_suspend=True)
        return self.dbapi_cursor.copy(statement, *args, **kwargs)

    def stream(self, query: str, *args: Any, **kwargs: Any) -> Iterator:
        """Iterate the rows of a query one at a time (psycopg only).
        """
        self.connwrapper.before_execute(query)
        return self.dbapi_cursor.stream(query, *args, **kwargs)
