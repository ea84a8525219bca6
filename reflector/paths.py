"""Path queries over nested data structures.

This module provides the query evaluators used by reflector mappings to pull
values out of an input object. Queries are JSONPath expressions, supporting:
- Member access ($.a.b, $['a']['b'])
- Index access ($.items[2])
- Wildcards ($.items[*].name, $.obj[*] for every value of a mapping)
- Recursive descent ($..name)
- Filters ($.items[?(@.price > 10)], $.items[?(@.qty && @.price === 3)])

Member names outside ASCII identifiers (e.g. '名前' or 'first-name') only
work in bracket notation: $['名前'] resolves, $.名前 is an InvalidPathError.

Filters accept both the jsonpath-ng operators (==, !=, &) and their
JavaScript spellings (===, !==, &&). A wildcard selects list elements or
mapping values; over a string, number or None it matches nothing.

The query language itself comes from jsonpath-ng; evaluators only decide how
matches are turned into values.
"""

import logging
import re
from typing import Any, List
from collections.abc import Mapping

from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError
from jsonpath_ng.ext import parse
from jsonpath_ng.jsonpath import DatumInContext, Fields, Index, JSONPath, Slice

logger = logging.getLogger(__name__)

COMPLEX_QUERY_MARKERS = ('*', '?', '..')

# Longest first, so '!==' is not read as '!=' followed by '='
FILTER_OPERATORS = (('!==', '!='), ('===', '=='), ('&&', '&'))

QUOTED_STRING = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""")


class InvalidPathError(Exception):
    """Raised when a path is malformed or invalid."""
    pass


def is_simple_query(path: str) -> bool:
    """Check whether a query resolves to at most one value.

    A query is simple when it uses no wildcard, filter or recursive descent.

    Examples:
        >>> is_simple_query("$['data'][0]['name']")
        True
        >>> is_simple_query('$.data[*].name')
        False
        >>> is_simple_query('$..name')
        False
        >>> is_simple_query('$.data[?(@.name)]')
        False
    """
    return not any(marker in path for marker in COMPLEX_QUERY_MARKERS)


def normalize_operators(path: str) -> str:
    """Rewrite JavaScript filter operators into jsonpath-ng's spelling.

    Quoted strings are left untouched.

    Examples:
        >>> normalize_operators('$.a[?(@.b && @.c === 1)]')
        '$.a[?(@.b & @.c == 1)]'
        >>> normalize_operators("$.a[?(@.b == 'x && y')]")
        "$.a[?(@.b == 'x && y')]"
    """
    parts = QUOTED_STRING.split(path)
    # Quoted strings land on odd indices
    for i in range(0, len(parts), 2):
        for operator, replacement in FILTER_OPERATORS:
            parts[i] = parts[i].replace(operator, replacement)
    return ''.join(parts)


class Wildcard(Slice):
    """[*] over every list element or mapping value, and nothing else."""

    def find(self, datum):
        datum = DatumInContext.wrap(datum)
        value = datum.value
        if isinstance(value, Mapping):
            return [
                DatumInContext(item, path=Fields(key), context=datum)
                for key, item in value.items()
            ]
        if isinstance(value, (list, tuple)):
            return [
                DatumInContext(item, path=Index(i), context=datum)
                for i, item in enumerate(value)
            ]
        return []


def _replace_wildcards(expr: JSONPath) -> JSONPath:
    if isinstance(expr, Slice) and expr.start is None and expr.end is None and expr.step is None:
        return Wildcard()
    for side in ('left', 'right'):
        child = getattr(expr, side, None)
        if isinstance(child, JSONPath):
            setattr(expr, side, _replace_wildcards(child))
    return expr


class QueryEvaluator:
    """Base class for query evaluators.

    An evaluator answers two questions about a path and an object: what is
    the single value at the path, and what are all the values matching it.
    Any object with these two methods can be passed to a Reflector.
    """

    def value(self, obj: Any, path: str) -> Any:
        """Return the first value matching path, or None if nothing matches."""
        raise NotImplementedError

    def query(self, obj: Any, path: str) -> List[Any]:
        """Return all values matching path (possibly empty)."""
        raise NotImplementedError


class JsonPathEvaluator(QueryEvaluator):
    """JSONPath evaluator backed by jsonpath-ng's extended parser.

    Examples:
        >>> data = {'store': {'books': [{'title': 'A', 'price': 8},
        ...                             {'title': 'B', 'price': 12}]}}
        >>> evaluator = JsonPathEvaluator()
        >>> evaluator.value(data, '$.store.books[1].title')
        'B'
        >>> evaluator.query(data, '$.store.books[*].title')
        ['A', 'B']
        >>> evaluator.query(data, '$.store.books[?(@.price > 10)].title')
        ['B']
        >>> evaluator.value(data, '$.store.missing') is None
        True
    """

    def compile(self, path: str):
        """Parse a JSONPath expression.

        Args:
            path: JSONPath expression

        Returns:
            Parsed jsonpath-ng expression, with JavaScript filter operators
            accepted and [*] replaced by Wildcard

        Raises:
            InvalidPathError: If the expression cannot be parsed
        """
        if not isinstance(path, str):
            raise InvalidPathError(f"Query must be a string: {path!r}")
        try:
            expr = parse(normalize_operators(path))
        except (JsonPathLexerError, JsonPathParserError) as e:
            raise InvalidPathError(f"Cannot parse query {path!r}: {e}") from e
        return _replace_wildcards(expr)

    def find(self, obj: Any, path: str) -> list:
        """Return the jsonpath-ng matches (values with their context)."""
        return self.compile(path).find(obj)

    def value(self, obj: Any, path: str) -> Any:
        matches = self.find(obj, path)
        if not matches:
            logger.debug("Query %r matched nothing", path)
            return None
        return matches[0].value

    def query(self, obj: Any, path: str) -> List[Any]:
        return [match.value for match in self.find(obj, path)]


# Default evaluator, exposed for direct raw query evaluation
jsonpath = JsonPathEvaluator()
