"""Build new objects from existing ones with declarative reflector mappings.

A reflector mapping says, field by field, how an output object is derived
from an input object. Each field is one of:
- A JSONPath query ($.user.name, $.items[*].price, $..id, $.items[?(@.qty > 1)])
- A function receiving the whole input
- A nested mapping, applied to the same input

Queried values are checked for circular references before they are returned.

Basic usage:
    >>> from reflector import reflect
    >>> mapping = {'name': '$.user.name', 'prices': '$.items[*].price'}
    >>> reflect(mapping, {'user': {'name': 'Alice'}, 'items': [{'price': 3}, {'price': 5}]})
    {'name': 'Alice', 'prices': [3, 5]}

Advanced usage:
    >>> from reflector import Reflector
    >>> reflector = Reflector({
    ...     'total': lambda order: sum(i['price'] for i in order['items']),
    ...     'customer': {'name': '$.user.name'},
    ... })
    >>> reflector({'user': {'name': 'Bob'}, 'items': [{'price': 3}, {'price': 5}]})
    {'total': 8, 'customer': {'name': 'Bob'}}
"""

from reflector.base import (
    reflect,
    Reflector,
)

from reflector.extractors import (
    BaseExtractor,
    QueryExtractor,
    FunctionExtractor,
    NestedExtractor,
    as_extractor,
    DEFAULT_MAX_DEPTH,
    InvalidExtractorError,
    InvalidExtractorSpecError,
    MappingDepthError,
)

from reflector.paths import (
    QueryEvaluator,
    JsonPathEvaluator,
    jsonpath,
    is_simple_query,
    normalize_operators,
    Wildcard,
    InvalidPathError,
)

from reflector.util import (
    has_cycle,
    ensure_acyclic,
    is_composite,
    CircularReferenceError,
)

__version__ = "0.1.0"  # Keep in sync with package version

__all__ = [
    # Core functions
    "reflect",
    "Reflector",
    # Extractors
    "BaseExtractor",
    "QueryExtractor",
    "FunctionExtractor",
    "NestedExtractor",
    "as_extractor",
    "DEFAULT_MAX_DEPTH",
    # Queries
    "QueryEvaluator",
    "JsonPathEvaluator",
    "jsonpath",
    "is_simple_query",
    "normalize_operators",
    "Wildcard",
    # Cycle detection
    "has_cycle",
    "ensure_acyclic",
    "is_composite",
    # Exceptions
    "CircularReferenceError",
    "InvalidExtractorError",
    "InvalidExtractorSpecError",
    "MappingDepthError",
    "InvalidPathError",
]
