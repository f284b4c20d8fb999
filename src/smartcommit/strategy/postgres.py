"""
PostgreSQL-specific strategy implementation.

Works on psycopg 3 connections, which expose auto-commit as the
`autocommit` attribute and refuse to change it while a transaction is
open.
"""
import logging
from typing import TYPE_CHECKING, Any

from psycopg.pq import TransactionStatus
from smartcommit.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from smartcommit.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query_parts = []
        if options.timeout:
            query_parts.append(f'connect_timeout={options.timeout}')

        url = (f'postgresql+psycopg://{options.username}:{options.password}'
               f'@{options.hostname}:{options.port}/{options.database}')

        if query_parts:
            url += '?' + '&'.join(query_parts)

        return url

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        if options.appname:
            return {'connect_args': {'application_name': options.appname}}
        return {}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def get_autocommit(self, raw_conn: Any) -> bool:
        """Read the auto-commit flag of a psycopg connection.
        """
        return bool(raw_conn.autocommit)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for PostgreSQL.

        An open transaction is committed first, the same way sqlite3 commits
        when its isolation level is set to None.
        """
        if raw_conn.info.transaction_status == TransactionStatus.INTRANS:
            logger.debug('Committing open transaction before enabling autocommit')
            raw_conn.commit()
        raw_conn.autocommit = True

    def disable_autocommit(self, raw_conn: Any) -> None:
        """Disable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = False
