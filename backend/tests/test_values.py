"""Unit tests for the linked list value model."""

import pytest

from backend.ppl.values import ListValue, copy_element, render_element


def _nodes(lst):
    node = lst._head
    while node is not None:
        yield node
        node = node.next


def test_prepend_and_append_order():
    lst = ListValue()
    lst.append(2).append(3)
    lst.prepend(1)
    assert list(lst) == [1, 2, 3]
    assert len(lst) == 3
    assert lst.first_element() == 1


def test_append_after_prepend_on_empty_list():
    lst = ListValue()
    lst.prepend(5)
    lst.append(6)
    assert list(lst) == [5, 6]


def test_first_element_of_empty_list_is_none():
    lst = ListValue()
    assert lst.is_empty()
    assert lst.first_element() is None
    assert len(lst) == 0


def test_render_nested():
    lst = ListValue.from_elements([1, [2, 3], 4])
    assert str(lst) == "[1, [2, 3], 4]"
    assert str(ListValue()) == "[]"
    assert str(ListValue.from_elements([[], [[-1]]])) == "[[], [[-1]]]"


def test_deep_copy_is_independent():
    src = ListValue.from_elements([1, [2, [3]]])
    copy = src.deep_copy()
    assert str(copy) == str(src)

    copy.prepend(0)
    nested = list(copy)[2]
    nested.prepend(99)

    assert str(src) == "[1, [2, [3]]]"
    assert str(copy) == "[0, 1, [99, 2, [3]]]"
    src_ids = {id(n) for n in _nodes(src)}
    assert not src_ids & {id(n) for n in _nodes(copy)}


def test_tail_of_short_lists_is_empty():
    assert ListValue().tail_as_new_list().is_empty()
    assert ListValue.from_elements([7]).tail_as_new_list().is_empty()


def test_tail_keeps_order_and_shares_nothing():
    src = ListValue.from_elements([1, [2], 3, 4])
    tail = src.tail_as_new_list()
    assert str(tail) == "[[2], 3, 4]"
    assert len(tail) == len(src) - 1

    src_nested = list(src)[1]
    tail_nested = tail.first_element()
    assert tail_nested is not src_nested
    tail_nested.append(5)
    assert str(src) == "[1, [2], 3, 4]"
    assert not {id(n) for n in _nodes(src)} & {id(n) for n in _nodes(tail)}


def test_from_elements_copies_list_values():
    inner = ListValue.from_elements([1])
    outer = ListValue.from_elements([inner])
    assert outer.first_element() is not inner
    inner.prepend(0)
    assert str(outer) == "[[1]]"


def test_from_elements_rejects_other_types():
    with pytest.raises(TypeError):
        ListValue.from_elements([1.5])
    with pytest.raises(TypeError):
        ListValue.from_elements([True])


def test_to_python():
    lst = ListValue.from_elements([1, [2, []], 3])
    assert lst.to_python() == [1, [2, []], 3]


def test_element_helpers():
    nested = ListValue.from_elements([1, 2])
    copied = copy_element(nested)
    assert copied is not nested
    assert str(copied) == "[1, 2]"
    assert copy_element(-4) == -4
    assert render_element(-4) == "-4"
    assert render_element(nested) == "[1, 2]"


def _nest(depth):
    lst = ListValue()
    for _ in range(depth):
        lst = ListValue().prepend(lst)
    return lst


def test_deep_nesting_copies_renders_and_converts():
    depth = 5000
    deep = _nest(depth)
    copy = deep.deep_copy()
    assert str(copy) == "[" * (depth + 1) + "]" * (depth + 1)

    a, b, levels = deep, copy, 0
    while not a.is_empty():
        assert a is not b
        a, b = a.first_element(), b.first_element()
        levels += 1
    assert levels == depth
    assert b.is_empty()

    converted, levels = deep.to_python(), 0
    while converted:
        converted = converted[0]
        levels += 1
    assert levels == depth

    tail = ListValue.from_elements([1, deep]).tail_as_new_list()
    assert len(tail) == 1
    assert str(tail) == "[" * (depth + 2) + "]" * (depth + 2)
