"""
Exception classes for smart-commit connections.

Errors raised by the underlying driver are never wrapped; they propagate
unchanged. The tuples at the bottom of this module group the driver
exception classes so callers can catch them without importing each driver.
"""
import sqlite3

import psycopg


class DatabaseError(Exception):
    """Base class for all smartcommit errors.
    """


class MalformedStatement(DatabaseError):
    """SQL text that cannot be scanned.

    Raised when a quoted literal is never closed, or when a literal that is
    not triple-quoted contains a line break.
    """


class IllegalStateError(DatabaseError):
    """Transaction operation requested while the connection is in auto-commit.
    """


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    MalformedStatement,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )
