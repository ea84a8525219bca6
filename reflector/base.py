"""Core classes for reflector: Reflector and reflect.

This module implements the pattern: obj = reflect(mapping, input), where the
mapping declares, field by field, how each output value is derived from the
input object.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from collections.abc import Mapping

from reflector.extractors import (
    DEFAULT_MAX_DEPTH,
    NestedExtractor,
    QueryExtractor,
    as_extractor,
)
from reflector.paths import QueryEvaluator, jsonpath
from reflector.util import CircularReferenceError, CIRCULAR_REFERENCE_MESSAGE, has_cycle

logger = logging.getLogger(__name__)


class Reflector:
    """Main class for reflecting input objects through a mapping.

    The mapping is classified once, when the Reflector is built, and can then
    be applied to any number of inputs. Each value of the mapping is one of:
    - a JSONPath query string
    - a callable taking the whole input
    - a nested mapping (applied to the same input)

    Examples:
        >>> reflector = Reflector({'name': '$.user.name', 'tags': '$.tags[*]'})
        >>> reflector({'user': {'name': 'Alice'}, 'tags': ['x', 'y']})
        {'name': 'Alice', 'tags': ['x', 'y']}

        >>> reflector = Reflector({'count': lambda d: len(d['items'])})
        >>> reflector({'items': [1, 2, 3]})
        {'count': 3}
    """

    def __init__(
        self,
        mapping: Mapping,
        evaluator: Optional[QueryEvaluator] = None,
        check_cycles: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH
    ):
        """Initialize a Reflector.

        Args:
            mapping: Output key -> query string, callable or nested mapping
            evaluator: Query evaluator (defaults to the JSONPath evaluator)
            check_cycles: If True, reject circular mappings and cyclic query results
            max_depth: Maximum nesting depth of the mapping

        Raises:
            InvalidExtractorError: If a mapping value has an unsupported type
            CircularReferenceError: If check_cycles and the mapping contains itself
            MappingDepthError: If nested mappings exceed max_depth
        """
        if not isinstance(mapping, Mapping):
            raise TypeError(
                f"Reflector mapping must be a mapping, got {type(mapping).__name__}"
            )
        if check_cycles and has_cycle(mapping):
            raise CircularReferenceError(
                f"Reflector mapping contains circular reference. {CIRCULAR_REFERENCE_MESSAGE}"
            )

        self.mapping = mapping
        self.evaluator = evaluator if evaluator is not None else jsonpath
        self.check_cycles = check_cycles
        self.max_depth = max_depth

        self._root = as_extractor(mapping, max_depth=max_depth)

    def __call__(self, obj: Any) -> Dict[Any, Any]:
        """Reflect obj through the mapping.

        Args:
            obj: Input object

        Returns:
            New dict with exactly the mapping's keys

        Raises:
            CircularReferenceError: If a queried value contains a cycle
            Exception: Whatever a function extractor raises, unchanged
        """
        logger.debug("Reflecting %d fields", len(self._root.fields))
        return self._root.extract(obj, self.evaluator, self.check_cycles)

    def keys(self) -> list:
        """Get the output field names."""
        return list(self._root.fields)

    def get_queries(self) -> Dict[Tuple, str]:
        """Get every query string in the mapping, keyed by tuple output path.

        Tuple paths stay unambiguous when output keys contain dots.

        Examples:
            >>> reflector = Reflector({'a': '$.x', 'b': {'c': '$.y[*]', 'd': len}})
            >>> reflector.get_queries()
            {('a',): '$.x', ('b', 'c'): '$.y[*]'}
        """
        queries = {}
        self._collect_queries(self._root, (), queries)
        return queries

    def _collect_queries(self, extractor: NestedExtractor, parent_path: Tuple, queries: dict):
        for key, field in extractor.fields.items():
            current_path = parent_path + (key,)
            if isinstance(field, QueryExtractor):
                queries[current_path] = field.spec
            elif isinstance(field, NestedExtractor):
                self._collect_queries(field, current_path, queries)

    def __repr__(self) -> str:
        return f"Reflector({self.mapping!r})"


def reflect(mapping: Mapping, obj: Any, **kwargs) -> Dict[Any, Any]:
    """Convenience function for reflecting an object through a mapping.

    This is the main entry point for simple use cases.

    Args:
        mapping: Output key -> query string, callable or nested mapping
        obj: Input object
        **kwargs: Reflector options (evaluator, check_cycles, max_depth)

    Returns:
        New dict with exactly the mapping's keys

    Examples:
        >>> reflect({'b': '$.x'}, {'x': 5})
        {'b': 5}

        >>> reflect({'a': {'b': '$.x'}}, {'x': 5})
        {'a': {'b': 5}}

        >>> reflect({'k': '$.missing'}, {})
        {'k': None}

        >>> reflect({'k': '$.data[*].x'}, {'data': []})
        {'k': []}
    """
    return Reflector(mapping, **kwargs)(obj)
