"""
Fixtures for PostgreSQL-specific integration tests.
"""
import pytest
from psycopg.pq import TransactionStatus
from smartcommit.utils import get_raw_connection


@pytest.fixture
def transaction_status():
    """Read the server-side transaction status of a smart-commit connection."""
    def status(cn) -> TransactionStatus:
        return get_raw_connection(cn.dbapi_connection).info.transaction_status
    return status
