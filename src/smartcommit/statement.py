"""
Statement classification based on the first keyword.

The parser does not validate statements. It removes comments with
`smartcommit.sql.cleanse` and looks at the first word of what is left:

- SELECT, WITH            → QUERY
- INSERT, UPDATE, DELETE  → UPDATE
- CREATE, ALTER, DROP     → DDL
- anything else           → UNKNOWN
"""
import logging
from dataclasses import dataclass
from enum import Enum

from smartcommit.exceptions import MalformedStatement
from smartcommit.sql import cleanse, strip_hint

logger = logging.getLogger(__name__)

__all__ = [
    'StatementType',
    'ParsedStatement',
    'StatementParser',
    'is_update_or_ddl',
    'is_dml',
]


class StatementType(Enum):
    """The type of statement recognized by the parser."""
    DDL = 'DDL'
    QUERY = 'QUERY'
    UPDATE = 'UPDATE'
    UNKNOWN = 'UNKNOWN'


@dataclass(frozen=True, slots=True)
class ParsedStatement:
    """A classified statement and its text without comments."""
    type: StatementType
    sql_without_comments: str

    @property
    def is_query(self) -> bool:
        return self.type is StatementType.QUERY

    @property
    def is_update(self) -> bool:
        return self.type is StatementType.UPDATE

    @property
    def is_ddl(self) -> bool:
        return self.type is StatementType.DDL


class StatementParser:
    """Categorizes statements as one of the possible `StatementType` values.

    Instances hold no state, so one parser can be shared freely and any
    number of parsers may exist side by side.
    """

    QUERY_KEYWORDS = frozenset({'SELECT', 'WITH'})
    DML_KEYWORDS = frozenset({'INSERT', 'UPDATE', 'DELETE'})
    DDL_KEYWORDS = frozenset({'CREATE', 'ALTER', 'DROP'})

    __slots__ = ()

    def parse(self, sql_with_comments: str) -> ParsedStatement:
        """Parse and categorize a statement.

        Raises MalformedStatement if the statement contains an unclosed
        literal.
        """
        sql = cleanse(sql_with_comments)
        if self.is_query(sql):
            return ParsedStatement(StatementType.QUERY, sql)
        if self.is_update_statement(sql):
            return ParsedStatement(StatementType.UPDATE, sql)
        if self.is_ddl_statement(sql):
            return ParsedStatement(StatementType.DDL, sql)
        return ParsedStatement(StatementType.UNKNOWN, sql)

    def is_query(self, sql: str) -> bool:
        """Check whether a statement without comments is (probably) a query.

        Any query hint at the start of the statement is skipped.
        """
        if sql.startswith('@'):
            sql = strip_hint(sql)
        return self._starts_with(sql, self.QUERY_KEYWORDS)

    def is_update_statement(self, sql: str) -> bool:
        """Check whether a statement without comments is (probably) DML.
        """
        return self._starts_with(sql, self.DML_KEYWORDS)

    def is_ddl_statement(self, sql: str) -> bool:
        """Check whether a statement without comments is (probably) DDL.
        """
        return self._starts_with(sql, self.DDL_KEYWORDS)

    @staticmethod
    def _starts_with(sql: str, keywords: frozenset[str]) -> bool:
        tokens = sql.split(maxsplit=1)
        return bool(tokens) and tokens[0].upper() in keywords


_parser = StatementParser()


def is_update_or_ddl(sql: str, parser: StatementParser = _parser) -> bool:
    """Check whether raw SQL text modifies data or schema.

    Text the scanner cannot handle is reported as not modifying anything;
    the driver is left to reject it when it is executed.
    """
    try:
        parsed = parser.parse(sql)
    except MalformedStatement as e:
        logger.debug(f'Could not classify statement: {e}')
        return False
    return parsed.is_update or parsed.is_ddl


def is_dml(sql: str, parser: StatementParser = _parser) -> bool:
    """Check whether raw SQL text is an INSERT, UPDATE or DELETE statement.
    """
    try:
        return parser.parse(sql).is_update
    except MalformedStatement as e:
        logger.debug(f'Could not classify statement: {e}')
        return False
