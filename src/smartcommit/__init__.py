"""
Smart-commit connections for PostgreSQL and SQLite.

A smart-commit connection keeps the driver in auto-commit mode until a
statement that modifies data or schema runs, even when the caller has
turned auto-commit off. Queries issued between transactions therefore
never hold a transaction open.
"""
__version__ = '0.1.0'

from smartcommit.connection import Savepoint, SmartCommitConnection, connect
from smartcommit.exceptions import DatabaseError, DbConnectionError
from smartcommit.exceptions import IllegalStateError, IntegrityError
from smartcommit.exceptions import MalformedStatement, OperationalError
from smartcommit.exceptions import ProgrammingError
from smartcommit.options import DatabaseOptions
from smartcommit.sql import cleanse, strip_hint
from smartcommit.statement import ParsedStatement, StatementParser
from smartcommit.statement import StatementType, is_dml, is_update_or_ddl
from smartcommit.transaction import Transaction as transaction
from smartcommit.utils.auto_commit import diagnose_connection

__all__ = [
    'connect',
    'transaction',
    'SmartCommitConnection',
    'Savepoint',
    'DatabaseOptions',
    'StatementParser',
    'ParsedStatement',
    'StatementType',
    'cleanse',
    'strip_hint',
    'is_dml',
    'is_update_or_ddl',
    'diagnose_connection',
    'DatabaseError',
    'MalformedStatement',
    'IllegalStateError',
    'DbConnectionError',
    'IntegrityError',
    'OperationalError',
    'ProgrammingError',
]
