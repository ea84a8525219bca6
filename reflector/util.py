"""Utility functions for reflector: cycle detection and structure inspection.

This module provides the Cycle Guard run over every queried value before it
is allowed into a reflected object, plus small helpers for inspecting nested
data structures.
"""

from typing import Any, Iterator, List, Tuple
from collections.abc import Mapping

CIRCULAR_REFERENCE_MESSAGE = 'Circular data structure detected.'


class CircularReferenceError(Exception):
    """Raised when a circular reference is detected in a data structure."""
    pass


def is_composite(obj: Any) -> bool:
    """Return True if obj is a container the Cycle Guard descends into.

    Examples:
        >>> is_composite({'a': 1}), is_composite([1, 2]), is_composite('abc')
        (True, True, False)
        >>> is_composite(None)
        False
    """
    return isinstance(obj, (Mapping, list, tuple, set, frozenset))


def _children(obj: Any) -> Iterator:
    if isinstance(obj, Mapping):
        return iter(obj.values())
    return iter(obj)


def has_cycle(obj: Any) -> bool:
    """Check whether a circular reference is reachable from obj.

    Only identities currently on the traversal path count, so a sub-object
    shared by two branches (a diamond) is not a cycle. The traversal uses an
    explicit stack, so deep acyclic chains never hit the recursion limit.

    Args:
        obj: The value to check

    Returns:
        True if some container contains itself, directly or indirectly

    Examples:
        >>> has_cycle({'a': 1, 'b': [2, 3]})
        False
        >>> circular = {'a': 1}
        >>> circular['self'] = circular
        >>> has_cycle(circular)
        True
        >>> shared = {'x': 1}
        >>> has_cycle({'left': shared, 'right': shared})
        False
        >>> has_cycle(42)
        False
    """
    if not is_composite(obj):
        return False

    on_path = set()
    # Stack of (container, leaving) pairs; leaving marks a finished subtree
    stack: List[Tuple[Any, bool]] = [(obj, False)]

    while stack:
        node, leaving = stack.pop()
        node_id = id(node)

        if leaving:
            on_path.discard(node_id)
            continue

        if node_id in on_path:
            return True

        on_path.add(node_id)
        stack.append((node, True))
        for child in _children(node):
            if is_composite(child):
                stack.append((child, False))

    return False


def ensure_acyclic(obj: Any) -> Any:
    """Return obj unchanged, or raise if it contains a circular reference.

    Raises:
        CircularReferenceError: If has_cycle(obj) is True

    Examples:
        >>> ensure_acyclic([1, {'a': 2}])
        [1, {'a': 2}]
        >>> loop = []
        >>> loop.append(loop)
        >>> ensure_acyclic(loop)
        Traceback (most recent call last):
        ...
        reflector.util.CircularReferenceError: Circular data structure detected.
    """
    if has_cycle(obj):
        raise CircularReferenceError(CIRCULAR_REFERENCE_MESSAGE)
    return obj
