import re

from sqlparse import lexer
from sqlparse import tokens as T

_WHITESPACE = re.compile(r'\s+')
_PUNCTUATION = re.compile(r' ?([(),]) ?')
_QUOTED_WORD = re.compile(r'"(\w+)"')


def strip_comments(sql: str) -> str:
    """
    Drops SQL comments, leaving string literals and quoted identifiers intact.

    Works on the raw token stream rather than sqlparse's statement grouping,
    which gives up on very wide tables and deeply nested expressions.
    """
    return ''.join(
        ' ' if ttype in T.Comment else value
        for ttype, value in lexer.tokenize(sql)
    )


def canonicalize(sql: str) -> str:
    """
    Normalizes a CREATE TABLE / CREATE INDEX statement so that two
    definitions compare equal regardless of comments, whitespace or
    redundant identifier quoting.

    The result is only ever compared, never executed.

    Args:
        sql (str): The raw SQL string.

    Returns:
        str: The canonical SQL string.
    """
    if not sql:
        return ""

    canonical = strip_comments(sql)

    # Collapse all whitespace to single spaces
    canonical = _WHITESPACE.sub(' ', canonical)

    # Remove the space either side of ( ) ,
    canonical = _PUNCTUATION.sub(r'\1', canonical)

    # Unquote plain identifiers; "E F G" keeps its quotes
    while True:
        unquoted = _QUOTED_WORD.sub(r'\1', canonical)
        if unquoted == canonical:
            break
        canonical = unquoted

    return canonical.strip()
