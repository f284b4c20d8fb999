"""
Fixtures for SQLite-specific integration tests.
"""
import pytest
import smartcommit as sc


@pytest.fixture
def reopen(sqlite_file_conn):
    """Open another connection to the file behind `sqlite_file_conn`."""
    opened = []

    def factory(**kw):
        options = {'drivername': 'sqlite', 'database': sqlite_file_conn.options.database}
        cn = sc.connect(options | kw)
        opened.append(cn)
        return cn

    yield factory
    for cn in opened:
        cn.close()
