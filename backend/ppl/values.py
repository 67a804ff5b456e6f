"""List values for PPL programs.

A `ListValue` is a singly-linked chain of nodes whose elements are either
Python ints or nested `ListValue` instances. The language copies by value
everywhere: whenever a list (or a nested list inside one) moves from one
variable to another it goes through `deep_copy`, so two symbol-table slots
never share a mutable node.
"""

from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union, assert_never

_END = object()


class _Node:
    __slots__ = ("value", "next")

    def __init__(self, value: "Element", next: Optional["_Node"] = None):
        self.value = value
        self.next = next


class ListValue:
    """Ordered sequence of elements backed by linked nodes.

    `prepend` is O(1). `append` keeps a tail pointer so building a fresh list
    element by element stays linear; it is only used on lists nobody else can
    see yet (copies and tails under construction).
    """

    def __init__(self):
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None
        self._size = 0

    @classmethod
    def from_elements(cls, items: Iterable[Any]) -> "ListValue":
        """Build a list from ints, ListValues and nested Python sequences.

        ListValue items are deep-copied so the result never aliases its input.
        """
        result = cls()
        for item in items:
            if isinstance(item, ListValue):
                result.append(item.deep_copy())
            elif isinstance(item, int) and not isinstance(item, bool):
                result.append(item)
            elif isinstance(item, (list, tuple)):
                result.append(cls.from_elements(item))
            else:
                raise TypeError(f"Unsupported list element: {item!r}")
        return result

    def prepend(self, element: "Element") -> "ListValue":
        node = _Node(element, self._head)
        self._head = node
        if self._tail is None:
            self._tail = node
        self._size += 1
        return self

    def append(self, element: "Element") -> "ListValue":
        node = _Node(element)
        if self._tail is None:
            self._head = node
        else:
            self._tail.next = node
        self._tail = node
        self._size += 1
        return self

    def first_element(self) -> Optional["Element"]:
        """Return the head element, or None when the list is empty."""
        if self._head is None:
            return None
        return self._head.value

    def is_empty(self) -> bool:
        return self._head is None

    def tail_as_new_list(self) -> "ListValue":
        """Return a new list holding deep copies of all but the first element.

        Empty and single-element lists both produce an empty list.
        """
        tail = ListValue()
        if self._head is None:
            return tail
        current = self._head.next
        while current is not None:
            tail.append(copy_element(current.value))
            current = current.next
        return tail

    def deep_copy(self) -> "ListValue":
        """Return a fully independent copy, nested lists included.

        Nested lists are walked with an explicit stack of (source, copy)
        pairs, so nesting depth is not bounded by the interpreter stack.
        """
        root = ListValue()
        pending = [(self, root)]
        while pending:
            source, dest = pending.pop()
            for element in source:
                if isinstance(element, ListValue):
                    child = ListValue()
                    dest.append(child)
                    pending.append((element, child))
                elif isinstance(element, int):
                    dest.append(element)
                else:
                    assert_never(element)
        return root

    def to_python(self) -> List[Any]:
        """Convert to nested Python lists (JSON friendly)."""
        root: List[Any] = []
        pending = [(self, root)]
        while pending:
            source, dest = pending.pop()
            for element in source:
                if isinstance(element, ListValue):
                    child: List[Any] = []
                    dest.append(child)
                    pending.append((element, child))
                elif isinstance(element, int):
                    dest.append(element)
                else:
                    assert_never(element)
        return root

    def __iter__(self) -> Iterator["Element"]:
        current = self._head
        while current is not None:
            yield current.value
            current = current.next

    def __len__(self) -> int:
        return self._size

    def __str__(self) -> str:
        parts = ["["]
        # one iterator per list still being rendered, innermost last
        stack: List[Tuple[Iterator["Element"], List[bool]]] = [(iter(self), [False])]
        while stack:
            elements, started = stack[-1]
            element = next(elements, _END)
            if element is _END:
                stack.pop()
                parts.append("]")
                continue
            if started[0]:
                parts.append(", ")
            started[0] = True
            if isinstance(element, ListValue):
                parts.append("[")
                stack.append((iter(element), [False]))
            elif isinstance(element, int):
                parts.append(str(element))
            else:
                assert_never(element)
        return "".join(parts)

    def __repr__(self) -> str:
        return f"ListValue({self})"


Element = Union[int, ListValue]


def copy_element(element: Element) -> Element:
    """Copy one element by value; nested lists are deep-copied."""
    if isinstance(element, ListValue):
        return element.deep_copy()
    if isinstance(element, int):
        return element
    assert_never(element)


def render_element(element: Element) -> str:
    if isinstance(element, ListValue):
        return str(element)
    if isinstance(element, int):
        return str(element)
    assert_never(element)
