"""Extractors: the three ways a reflector mapping derives an output field.

Every value in a reflector mapping is one of:
- QueryExtractor: a JSONPath string evaluated against the input
- FunctionExtractor: a callable receiving the whole input
- NestedExtractor: another mapping, applied to the same input

as_extractor() is the single place where a raw spec is classified; anything
that is not a string, a callable or a mapping is rejected there.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from collections.abc import Mapping

from reflector.paths import QueryEvaluator, is_simple_query
from reflector.util import (
    CIRCULAR_REFERENCE_MESSAGE,
    CircularReferenceError,
    ensure_acyclic,
    has_cycle,
    is_composite,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32


class InvalidExtractorError(Exception):
    """Raised when a mapping value is not a query, a function or a mapping."""
    pass


InvalidExtractorSpecError = InvalidExtractorError


class MappingDepthError(Exception):
    """Raised when nested mappings exceed the allowed depth."""
    pass


def _key_path(path: Tuple) -> str:
    return '.'.join(str(part) for part in path) or '<root>'


class BaseExtractor:
    """Base class for extractors."""

    kind: Optional[str] = None

    def __init__(self, spec: Any):
        self.spec = spec

    def extract(
        self,
        obj: Any,
        evaluator: QueryEvaluator,
        check_cycles: bool = True
    ) -> Any:
        """Derive a value from obj.

        Args:
            obj: The whole input object
            evaluator: Evaluator used for query strings
            check_cycles: If True, reject queried values containing cycles

        Returns:
            The extracted value
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.spec!r})"


class QueryExtractor(BaseExtractor):
    """Extract by JSONPath query.

    Simple queries (no wildcard, filter or recursive descent) yield a single
    value, or None when the path does not resolve. Complex queries yield the
    list of all matches, possibly empty.

    Examples:
        >>> from reflector.paths import jsonpath
        >>> QueryExtractor('$.user.name').extract({'user': {'name': 'Ann'}}, jsonpath)
        'Ann'
        >>> QueryExtractor('$.tags[*]').extract({'tags': ['a', 'b']}, jsonpath)
        ['a', 'b']
    """

    kind = 'query'

    def __init__(self, spec: str):
        super().__init__(spec)
        self.simple = is_simple_query(spec)

    def extract(
        self,
        obj: Any,
        evaluator: QueryEvaluator,
        check_cycles: bool = True
    ) -> Any:
        """Evaluate the query, checking composite results for cycles.

        Raises:
            CircularReferenceError: If a result (or any element of a
                multi-value result) contains a circular reference, or a
                recursive query cannot finish because the input is cyclic
        """
        if self.simple:
            value = evaluator.value(obj, self.spec)
            if check_cycles and value is not None and is_composite(value):
                ensure_acyclic(value)
            return value

        try:
            values = evaluator.query(obj, self.spec)
        except RecursionError as e:
            # Recursive descent never terminates on cyclic input
            if check_cycles and has_cycle(obj):
                raise CircularReferenceError(CIRCULAR_REFERENCE_MESSAGE) from e
            raise
        if check_cycles and isinstance(values, list):
            for value in values:
                ensure_acyclic(value)
        return values


class FunctionExtractor(BaseExtractor):
    """Extract by calling a function with the whole input.

    Whatever the function raises propagates unchanged.
    """

    kind = 'function'

    def extract(
        self,
        obj: Any,
        evaluator: QueryEvaluator,
        check_cycles: bool = True
    ) -> Any:
        return self.spec(obj)


class NestedExtractor(BaseExtractor):
    """Extract a nested object from a nested mapping.

    Every field of the nested mapping sees the same input object as the
    enclosing mapping; nesting composes mappings, it does not narrow the input.

    Examples:
        >>> from reflector.paths import jsonpath
        >>> nested = as_extractor({'b': '$.x'})
        >>> nested.extract({'x': 5}, jsonpath)
        {'b': 5}
    """

    kind = 'nested'

    def __init__(self, spec: Mapping, fields: Dict[Any, BaseExtractor]):
        super().__init__(spec)
        self.fields = fields

    def extract(
        self,
        obj: Any,
        evaluator: QueryEvaluator,
        check_cycles: bool = True
    ) -> dict:
        # Fields are evaluated in order; the first error aborts the rest
        result = {}
        for key, extractor in self.fields.items():
            result[key] = extractor.extract(obj, evaluator, check_cycles)
        return result


def as_extractor(
    spec: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    path: Tuple = ()
) -> BaseExtractor:
    """Classify a raw mapping value into an extractor.

    Nested mappings are classified recursively, so an invalid value anywhere
    in the mapping is reported before anything is extracted.

    Args:
        spec: A query string, a callable or a mapping
        max_depth: Maximum nesting of mappings below this one
        path: Output keys leading to spec (for error reporting)

    Returns:
        The matching extractor

    Raises:
        InvalidExtractorError: If spec (or a nested value) has another type
        MappingDepthError: If nested mappings go deeper than max_depth

    Examples:
        >>> as_extractor('$.a').kind
        'query'
        >>> as_extractor(len).kind
        'function'
        >>> as_extractor({'a': '$.a'}).kind
        'nested'
        >>> as_extractor(42)
        Traceback (most recent call last):
        ...
        reflector.extractors.InvalidExtractorError: Invalid reflector value at <root>: expected a query string, a callable or a mapping, got int
    """
    if isinstance(spec, Mapping):
        if len(path) > max_depth:
            raise MappingDepthError(
                f"Nested mappings deeper than {max_depth} levels at {_key_path(path)}"
            )
        fields = {
            key: as_extractor(value, max_depth, path + (key,))
            for key, value in spec.items()
        }
        return NestedExtractor(spec, fields)
    elif callable(spec):
        return FunctionExtractor(spec)
    elif isinstance(spec, str):
        extractor = QueryExtractor(spec)
        logger.debug(
            "Field %s: %s query %r",
            _key_path(path), 'simple' if extractor.simple else 'complex', spec
        )
        return extractor

    raise InvalidExtractorError(
        f"Invalid reflector value at {_key_path(path)}: expected a query string, "
        f"a callable or a mapping, got {type(spec).__name__}"
    )
