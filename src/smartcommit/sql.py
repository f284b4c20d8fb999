"""
Lexical cleanup of raw SQL text.

The scanner makes a single left-to-right pass over the statement and
produces the text the classifier looks at:

    SQL → Skip Comments → Track Literals → Drop Terminator → Trim
           (--, #, /**/)   (' " ` and '''...''')   (one ;)

Comments are removed, quoted literals are copied verbatim (delimiters
included) so that comment markers inside literals are left alone.

Main entry points:
- `cleanse(sql)` - Remove comments, trailing terminator and whitespace
- `strip_hint(sql)` - Remove a leading `@{...}` query hint
"""
import re
from enum import Enum, auto

from smartcommit.exceptions import MalformedStatement

__all__ = ['cleanse', 'strip_hint', 'QUOTE_CHARS']

# =============================================================================
# Constants
# =============================================================================

QUOTE_CHARS = frozenset({"'", '"', '`'})

_LINE_BREAKS = frozenset({'\n', '\r'})

_TERMINATOR = ';'

# Query keywords that may follow a statement hint
_QUERY_KEYWORD = re.compile(r'\b(?:SELECT|WITH)\b', re.IGNORECASE)


class _Mode(Enum):
    """Scanner modes. Exactly one is active at any position."""
    NORMAL = auto()
    QUOTED = auto()
    SINGLE_LINE_COMMENT = auto()
    MULTI_LINE_COMMENT = auto()


# =============================================================================
# Core Functions
# =============================================================================

def cleanse(sql: str) -> str:
    """Remove comments from a statement and trim it.

    Three comment styles are recognized outside of quoted literals:

    - Single line comments starting with `--`
    - Single line comments starting with `#`
    - Multi line comments between `/*` and `*/`

    The line feed that ends a single line comment is kept. A single
    trailing `;` is dropped.

    Parameters
        sql: SQL statement, possibly containing comments

    Returns
        Statement without comments, terminator and surrounding whitespace

    Raises
        MalformedStatement: a literal is not closed, or a literal that is not
            triple-quoted spans a line break
    """
    mode = _Mode.NORMAL
    quote = ''
    triple = False
    escaped = False
    out: list[str] = []
    n = len(sql)
    i = 0

    while i < n:
        c = sql[i]

        if mode is _Mode.QUOTED:
            if c in _LINE_BREAKS and not triple:
                raise MalformedStatement(f'SQL statement contains an unclosed literal: {sql}')
            if escaped:
                escaped = False
            elif c == '\\':
                escaped = True
            elif c == quote:
                if not triple:
                    mode = _Mode.NORMAL
                elif sql[i + 1:i + 3] == quote * 2:
                    out.append(quote * 2)
                    i += 2
                    mode = _Mode.NORMAL
            out.append(c)

        elif mode is _Mode.SINGLE_LINE_COMMENT:
            if c == '\n':
                mode = _Mode.NORMAL
                out.append(c)

        elif mode is _Mode.MULTI_LINE_COMMENT:
            if c == '*' and i + 1 < n and sql[i + 1] == '/':
                mode = _Mode.NORMAL
                i += 1

        elif c == '#' or (c == '-' and i + 1 < n and sql[i + 1] == '-'):
            mode = _Mode.SINGLE_LINE_COMMENT

        elif c == '/' and i + 1 < n and sql[i + 1] == '*':
            mode = _Mode.MULTI_LINE_COMMENT
            i += 1

        else:
            if c in QUOTE_CHARS:
                mode = _Mode.QUOTED
                quote = c
                triple = sql[i + 1:i + 3] == c * 2
                if triple:
                    out.append(c * 2)
                    i += 2
            out.append(c)

        i += 1

    if mode is _Mode.QUOTED:
        raise MalformedStatement(f'SQL statement contains an unclosed literal: {sql}')

    result = ''.join(out).rstrip()
    if result.endswith(_TERMINATOR):
        result = result[:-1]
    return result.strip()


def strip_hint(sql: str) -> str:
    """Remove a statement hint such as `@{FORCE_INDEX=_BASE_TABLE}` from the
    start of a query.

    Hints are only valid in front of a query, so the end of the hint is the
    last `}` before the first SELECT/WITH keyword. A hint without an opening
    brace is left in place for the database to reject.

    Parameters
        sql: Cleansed statement starting with `@`

    Returns
        The cleansed query without the hint, or `sql` unchanged if no
        well-formed hint was found
    """
    start_hint = sql.find('{')
    match = _QUERY_KEYWORD.search(sql)
    if match is None:
        return sql

    end_hint = sql.rfind('}', 0, match.start())
    if start_hint == -1 or start_hint > end_hint:
        return sql
    return cleanse(sql[end_hint + 1:])
