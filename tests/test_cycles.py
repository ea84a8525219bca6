"""Tests for cycle detection."""

import copy

import pytest
from reflector import has_cycle, ensure_acyclic, is_composite, CircularReferenceError


@pytest.mark.parametrize('value', [0, 1.5, 'text', '', True, False, None, b'bytes'])
def test_primitives_are_never_cyclic(value):
    """Test primitives return False."""
    assert not has_cycle(value)
    assert not is_composite(value)


def test_flat_structures():
    """Test acyclic containers of every kind."""
    assert not has_cycle({})
    assert not has_cycle([])
    assert not has_cycle({'a': 1, 'b': [2, 3], 'c': (4, {5})})


def test_deep_linear_chain():
    """Test a 100-level chain of single-field objects is not a cycle."""
    chain = {'value': 42}
    for _ in range(100):
        chain = {'nested': chain}
    assert not has_cycle(chain)


def test_very_deep_chain():
    """Test chains deeper than the recursion limit are handled."""
    chain = []
    for _ in range(5000):
        chain = [chain]
    assert not has_cycle(chain)


def test_diamond_is_not_a_cycle():
    """Test a sub-object shared by two branches is not a cycle."""
    shared = {'x': [1, 2]}
    assert not has_cycle({'left': shared, 'right': shared})
    assert not has_cycle([shared, [shared, {'again': shared}]])


def test_structurally_equal_objects():
    """Test equal but distinct objects are not a cycle."""
    assert not has_cycle({'a': {'k': 1}, 'b': {'k': 1}})


def test_self_reference():
    """Test containers that contain themselves."""
    d = {'a': 1}
    d['self'] = d
    assert has_cycle(d)

    lst = [1, 2]
    lst.append(lst)
    assert has_cycle(lst)


def test_mutual_reference():
    """Test two objects referencing each other."""
    obj1 = {'name': 'Recursive1'}
    obj2 = {'name': 'Recursive2'}
    obj1['ref'] = obj2
    obj2['ref'] = obj1
    assert has_cycle(obj1)
    assert has_cycle(obj2)
    assert has_cycle([obj1])


def test_cycle_through_mixed_containers():
    """Test a cycle passing through a dict, a list and a tuple."""
    inner = []
    outer = {'items': (inner,)}
    inner.append(outer)
    assert has_cycle({'root': outer})


def test_cycle_below_shared_node():
    """Test a cycle is found even after the node was first seen acyclically."""
    shared = {'x': 1}
    looping = {'shared': shared}
    looping['back'] = looping
    assert has_cycle([shared, looping])


def test_has_cycle_does_not_mutate():
    """Test detection leaves the structure unchanged."""
    data = {'a': [1, {'b': 2}], 'c': (3,)}
    before = copy.deepcopy(data)
    has_cycle(data)
    assert data == before


def test_ensure_acyclic():
    """Test ensure_acyclic returns the value or raises with a stable message."""
    value = {'a': [1, 2]}
    assert ensure_acyclic(value) is value

    loop = {}
    loop['loop'] = loop
    with pytest.raises(CircularReferenceError) as excinfo:
        ensure_acyclic(loop)
    assert str(excinfo.value) == 'Circular data structure detected.'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
