"""
Transaction context manager for smart-commit connections.
"""
import logging
import threading
from typing import Any

from smartcommit.cursor import Cursor

from libb import attrdict

logger = logging.getLogger(__name__)


_local = threading.local()


class Transaction:
    """Context manager for running multiple commands in a transaction.

    The connection is switched out of logical auto-commit mode for the
    duration of the block. With smart commit on, the driver still only
    leaves auto-commit mode when the first statement that modifies data or
    schema runs, so a block of plain queries never opens a transaction.

    This implementation uses thread-local storage to track transaction state.
    Nested transactions on the same connection within the same thread are
    not supported.

    Examples
        with Transaction(cn) as tx:
            tx.execute('delete from ...', args)
            tx.execute('update from ...', args)
    """

    def __init__(self, cn: Any) -> None:
        self.connection = cn
        self._previous_autocommit = cn.autocommit

        if not hasattr(_local, 'active_transactions'):
            _local.active_transactions = {}

        if id(cn) in _local.active_transactions:
            raise RuntimeError('Nested transactions are not supported')

    @property
    def cursor(self) -> Cursor:
        """New smart-commit cursor on the transaction's connection.
        """
        return self.connection.cursor()

    def __enter__(self) -> 'Transaction':
        _local.active_transactions[id(self.connection)] = True
        self._previous_autocommit = self.connection.autocommit
        self.connection.autocommit = False
        self.connection.in_transaction = True
        logger.debug(f'Started transaction for connection {id(self.connection)}')
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        try:
            if exc_type is not None:
                self.connection.rollback()
                logger.warning('Rolling back the current transaction')
            else:
                self.connection.commit()
                logger.debug(f'Committed transaction for connection {id(self.connection)}')
        finally:
            _local.active_transactions.pop(id(self.connection), None)
            self.connection.in_transaction = False
            logger.debug(f'Transaction cleanup complete for connection {id(self.connection)}')
        # left off when commit or rollback raised
        self.connection.autocommit = self._previous_autocommit

    def execute(self, sql: str, *args: Any) -> int:
        """Execute SQL within transaction context, returning the row count"""
        with self.cursor as cursor:
            cursor.execute(sql, args or None)
            return cursor.rowcount

    def select(self, sql: str, *args: Any) -> list[attrdict]:
        """Execute a query within transaction context, returning rows keyed by column"""
        with self.cursor as cursor:
            cursor.execute(sql, args or None)
            if cursor.description is None:
                return []
            names = [col[0] for col in cursor.description]
            rows = [attrdict(zip(names, row)) for row in cursor.fetchall()]
        logger.debug(f'Query returned {len(rows)} rows')
        return rows

    def select_row(self, sql: str, *args: Any) -> attrdict:
        """Execute a query and return a single row
        """
        data = self.select(sql, *args)
        assert len(data) == 1, f'Expected one row, got {len(data)}'
        return data[0]

    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return a single scalar value
        """
        row = self.select_row(sql, *args)
        return next(iter(row.values()))
