"""
Smart-commit connection handling.

This module provides:
1. The `SmartCommitConnection` wrapper, which owns the transaction state of
   one DBAPI connection and decides when the driver leaves auto-commit mode
2. The `connect()` function for opening wrapped connections through
   SQLAlchemy engines
3. Engine creation and management through a thread-safe registry

The wrapper keeps two flags the caller can see:
- autocommit   - what the caller believes the auto-commit mode to be
- smart_commit - whether the wrapper may manage the driver flag itself

With smart commit on and autocommit off, the driver connection stays in
auto-commit mode until a statement modifies data or schema. Commit and
rollback then put it back in auto-commit mode, so queries between
transactions never hold a transaction open.

A connection and its state belong to one thread at a time; the wrapper
does no locking of its own.
"""
import atexit
import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Self

import sqlalchemy as sa
from smartcommit.exceptions import IllegalStateError
from smartcommit.options import DatabaseOptions
from smartcommit.statement import StatementParser, is_update_or_ddl
from smartcommit.strategy import get_strategy
from smartcommit.utils import get_dialect_name, get_raw_connection
from smartcommit.utils.auto_commit import disable_auto_commit
from smartcommit.utils.auto_commit import enable_auto_commit
from smartcommit.utils.auto_commit import get_driver_autocommit
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

if TYPE_CHECKING:
    from smartcommit.cursor import Cursor

__all__ = [
    'Savepoint',
    'SmartCommitConnection',
    'connect',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


@dataclass(frozen=True, slots=True)
class Savepoint:
    """A named point in a transaction that can be rolled back to."""
    id: int
    name: str


class SmartCommitConnection:
    """Wraps a DBAPI connection and manages its auto-commit flag

    This class:
    1. Tracks the logical auto-commit and smart-commit settings
    2. Takes the driver out of auto-commit mode before the first statement
       that modifies data or schema
    3. Restores driver auto-commit after commit and rollback
    4. Tracks statement execution counts and timing
    5. Delegates any other attribute access to the DBAPI connection
    """

    def __init__(self, dbapi_connection: Any, options: DatabaseOptions | None = None,
                 dialect: str | None = None,
                 sa_connection: sa.engine.Connection | None = None,
                 parser: StatementParser | None = None) -> None:
        """Initialize a connection wrapper

        The logical auto-commit flag starts out as whatever the driver
        connection is currently set to.
        """
        self.sa_connection = sa_connection
        self.dbapi_connection = dbapi_connection
        self.options = options
        self._dialect = dialect or get_dialect_name(sa_connection or dbapi_connection)
        self._strategy = get_strategy(self._dialect)
        self._parser = parser or StatementParser()
        self._savepoint_ids = itertools.count(1)
        self._closed = False
        self._autocommit = self.driver_autocommit
        self._smart_commit = True
        self.calls = 0
        self.time = 0
        self.in_transaction = False

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Close the connection when exiting the context manager
        """
        self.close()

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the DBAPI connection.
        """
        return getattr(self.dbapi_connection, name)

    def __repr__(self) -> str:
        return (f'<SmartCommitConnection {self._dialect} autocommit={self._autocommit}'
                f' smart_commit={self._smart_commit} at {id(self):#x}>')

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def closed(self) -> bool:
        return self._closed

    # Driver connection access

    @property
    def driver_autocommit(self) -> bool:
        """Live auto-commit flag of the driver connection."""
        return get_driver_autocommit(self.dbapi_connection, self._dialect)

    def _set_driver_autocommit(self, enable: bool) -> None:
        if enable:
            enable_auto_commit(self.dbapi_connection, self._dialect)
        else:
            disable_auto_commit(self.dbapi_connection, self._dialect)

    # Auto-commit and smart-commit settings

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self.set_autocommit(value)

    def get_autocommit(self) -> bool:
        """Return the auto-commit mode the caller has asked for.
        """
        return self._autocommit

    def set_autocommit(self, autocommit: bool) -> None:
        """Change the logical auto-commit mode.

        Turning auto-commit off leaves the driver in auto-commit mode when
        smart commit is on; the transaction starts with the first statement
        that needs one. With smart commit off the driver leaves auto-commit
        mode immediately.
        """
        autocommit = bool(autocommit)
        if autocommit == self._autocommit:
            return

        if autocommit:
            self._set_driver_autocommit(True)
        else:
            self._set_driver_autocommit(self._smart_commit)
        self._autocommit = autocommit
        logger.debug(f'Set autocommit={autocommit} on {self!r}')

    @property
    def smart_commit(self) -> bool:
        return self._smart_commit

    @smart_commit.setter
    def smart_commit(self, value: bool) -> None:
        self.set_smart_commit(value)

    def get_smart_commit(self) -> bool:
        """Return whether the wrapper manages the driver auto-commit flag.
        """
        return self._smart_commit

    def set_smart_commit(self, smart_commit: bool) -> None:
        """Turn smart commit on or off.
        """
        smart_commit = bool(smart_commit)
        if smart_commit == self._smart_commit:
            return

        if smart_commit:
            self._set_driver_autocommit(True)
        elif not self._autocommit and self.driver_autocommit:
            self._set_driver_autocommit(False)
        self._smart_commit = smart_commit
        logger.debug(f'Set smart_commit={smart_commit} on {self!r}')

    # Statement execution

    def before_execute(self, sql: str, always_suspend: bool = False) -> None:
        """Leave driver auto-commit mode if the statement needs a transaction.

        Must be called before any statement is sent to the driver. Batches
        and procedure calls pass `always_suspend=True` since their effect
        cannot be judged from the text.

        Nothing is suspended while logical auto-commit is on: the caller could
        not commit the resulting transaction, since `commit()` raises
        IllegalStateError in that state.
        """
        if self._autocommit or not self._smart_commit:
            return
        if not self.driver_autocommit:
            return
        if always_suspend or is_update_or_ddl(sql, self._parser):
            logger.debug(f'Turning off autocommit on {self!r}')
            self._set_driver_autocommit(False)

    def cursor(self) -> 'Cursor':
        """Get a smart-commit cursor for this connection
        """
        from smartcommit.cursor import Cursor
        return Cursor(self.dbapi_connection.cursor(), self)

    def execute(self, sql: str, parameters: Any = None) -> 'Cursor':
        """Execute a statement on a new cursor and return the cursor.

        Shortcut matching `sqlite3.Connection.execute` and psycopg
        `Connection.execute`, routed through `before_execute`.
        """
        return self.cursor().execute(sql, parameters)

    def executemany(self, sql: str, seq_of_parameters: Any) -> 'Cursor':
        """Execute a statement against all parameter sequences on a new cursor.
        """
        return self.cursor().executemany(sql, seq_of_parameters)

    def executescript(self, script: str) -> 'Cursor':
        """Execute a SQL script on a new cursor (sqlite3 only).
        """
        return self.cursor().executescript(script)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    # Transaction control

    def commit(self) -> None:
        """Commit the current transaction.

        Raises IllegalStateError when the connection is in auto-commit mode.
        """
        if self._autocommit:
            raise IllegalStateError('Cannot commit when in autocommit')
        if not self._smart_commit:
            self.dbapi_connection.commit()
            return
        if self.driver_autocommit:
            logger.debug(f'Connection {self!r} in autocommit, skipping commit')
        else:
            logger.debug(f'Committing on connection {self!r}')
            self.dbapi_connection.commit()
        self._set_driver_autocommit(True)

    def rollback(self, savepoint: Savepoint | None = None) -> None:
        """Roll back the current transaction, or to a savepoint if given.

        Raises IllegalStateError when the connection is in auto-commit mode.
        """
        if savepoint is not None:
            self._rollback_to_savepoint(savepoint)
            return
        if self._autocommit:
            raise IllegalStateError('Cannot rollback when in autocommit')
        if not self._smart_commit:
            self.dbapi_connection.rollback()
            return
        if self.driver_autocommit:
            logger.debug(f'Connection {self!r} in autocommit, skipping rollback')
        else:
            logger.debug(f'Rollback on connection {self!r}')
            self.dbapi_connection.rollback()
        self._set_driver_autocommit(True)

    def savepoint(self, name: str | None = None) -> Savepoint:
        """Create a savepoint, starting a transaction if none is open.

        Unnamed savepoints are given a generated name.
        """
        if self._autocommit:
            raise IllegalStateError('Cannot set savepoint when in autocommit')
        if self.driver_autocommit:
            self._set_driver_autocommit(False)
        ident = next(self._savepoint_ids)
        sp = Savepoint(ident, name or f'sp_{ident}')
        self._strategy.savepoint(get_raw_connection(self.dbapi_connection), sp.name)
        logger.debug(f'Set savepoint {sp.name} on {self!r}')
        return sp

    def _rollback_to_savepoint(self, savepoint: Savepoint) -> None:
        if self._autocommit:
            raise IllegalStateError('Cannot rollback savepoint when in autocommit')
        if self.driver_autocommit:
            logger.debug(f'Connection {self!r} in autocommit, skipping rollback savepoint')
            return
        logger.debug(f'Rollback savepoint {savepoint.name}')
        self._strategy.rollback_to_savepoint(get_raw_connection(self.dbapi_connection),
                                             savepoint.name)

    def release_savepoint(self, savepoint: Savepoint) -> None:
        """Release a savepoint; a no-op when no transaction is open.
        """
        if self.driver_autocommit:
            logger.debug(f'Connection {self!r} in autocommit, skipping release savepoint')
            return
        logger.debug(f'Release savepoint {savepoint.name}')
        self._strategy.release_savepoint(get_raw_connection(self.dbapi_connection),
                                         savepoint.name)

    def close(self) -> None:
        """Close the connection, returning it to its engine if it has one
        """
        if self._closed:
            return
        if self.sa_connection is not None:
            self.sa_connection.close()
        else:
            self.dbapi_connection.close()
        self._closed = True
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool connections; each `connect()` opens a new driver
    connection.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> SmartCommitConnection:
    """Open a smart-commit connection using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Transaction options:
        autocommit: Auto-commit mode the connection starts in (default: True)
        smart_commit: Defer transactions until data or schema changes (default: True)

    Returns
        SmartCommitConnection wrapping the driver connection
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)

    start = time.time()
    sa_connection = engine.connect()
    dbapi_connection = sa_connection.connection
    strategy = get_strategy(options.drivername)
    strategy.configure_connection(get_raw_connection(dbapi_connection), True)
    logger.debug(f'Opened {options.drivername} connection in {time.time() - start:.3f}s')

    cn = SmartCommitConnection(dbapi_connection, options, dialect=options.drivername,
                               sa_connection=sa_connection)
    cn.smart_commit = options.smart_commit
    cn.autocommit = options.autocommit
    return cn
