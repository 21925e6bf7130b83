import pytest

from tinyredis.datastruct.linkedlist import LinkedList


def make(values):
    lst = LinkedList()
    for v in values:
        lst.push_back(v)
    return lst


def test_basic_operations():
    lst = LinkedList()
    assert len(lst) == 0
    assert lst.head is None and lst.tail is None

    node1 = lst.push_front("first")
    assert len(lst) == 1
    assert lst.head is node1 and lst.tail is node1

    node2 = lst.push_back("second")
    assert len(lst) == 2
    assert lst.head is node1 and lst.tail is node2
    assert node1.next is node2 and node2.prev is node1

    assert lst.pop_front() == "first"
    assert len(lst) == 1
    assert lst.pop_back() == "second"
    assert len(lst) == 0


def test_pop_from_empty_raises():
    lst = LinkedList()
    with pytest.raises(IndexError):
        lst.pop_front()
    with pytest.raises(IndexError):
        lst.pop_back()


def test_get_and_set():
    lst = make(["a", "b", "c"])
    assert lst.get(1) == "b"
    assert lst.get(-1) == "c"
    assert lst.get(-3) == "a"
    with pytest.raises(IndexError):
        lst.get(3)
    with pytest.raises(IndexError):
        lst.get(-4)

    lst.set(1, "B")
    assert lst.get(1) == "B"
    with pytest.raises(IndexError):
        lst.set(10, "X")


def test_range():
    lst = make(["a", "b", "c", "d", "e"])
    assert lst.range(1, 3) == ["b", "c", "d"]
    assert lst.range(-3, -1) == ["c", "d", "e"]
    assert lst.range(-10, 10) == ["a", "b", "c", "d", "e"]
    assert lst.range(3, 1) == []
    assert LinkedList().range(0, 1) == []


def test_remove_by_value():
    lst = make(["x", "y", "x", "z", "x"])
    assert lst.remove_by_value(2, "x") == 2
    assert list(lst) == ["y", "z", "x"]

    lst = make(["a", "b", "a", "c", "a"])
    assert lst.remove_by_value(0, "a") == 3
    assert list(lst) == ["b", "c"]

    lst = make(["p", "q", "p", "r", "p"])
    assert lst.remove_by_value(-1, "p") == 1
    assert list(lst) == ["p", "q", "p", "r"]

    assert lst.remove_by_value(1, "nonexistent") == 0
    assert list(lst) == ["p", "q", "p", "r"]


def test_insert_before_and_after():
    lst = LinkedList()
    lst.push_back("A")
    node_c = lst.push_back("C")

    node_b = lst.insert_before(node_c, "B")
    assert node_b.value == "B"
    assert list(lst) == ["A", "B", "C"]

    lst.insert_after(node_c, "D")
    assert list(lst) == ["A", "B", "C", "D"]

    lst.insert_before(lst.head, "0")
    assert list(lst) == ["0", "A", "B", "C", "D"]
    assert lst.head.value == "0"

    lst.insert_after(lst.tail, "Z")
    assert list(lst) == ["0", "A", "B", "C", "D", "Z"]
    assert lst.tail.value == "Z"
    assert len(lst) == 6

    with pytest.raises(ValueError):
        lst.insert_before(None, "X")
    with pytest.raises(ValueError):
        lst.insert_after(None, "X")


def test_remove_node():
    lst = LinkedList()
    node1 = lst.push_back("1")
    node2 = lst.push_back("2")
    node3 = lst.push_back("3")

    lst.remove(node2)
    assert list(lst) == ["1", "3"]

    lst.remove(node1)
    assert list(lst) == ["3"]

    lst.remove(node3)
    assert len(lst) == 0
    assert lst.head is None and lst.tail is None

    lst.remove(node1)
    assert len(lst) == 0


def test_remove_detached_node_is_ignored():
    lst = make(["a", "b"])
    other = make(["x"])
    lst.remove(other.head)
    assert list(lst) == ["a", "b"]
    assert list(other) == ["x"]


def test_binary_safety():
    lst = LinkedList()
    binary = bytes([0, 1, 255])

    lst.push_back(binary)
    assert lst.get(0) == binary
    assert lst.pop_front() == binary

    node = lst.push_back("test")
    lst.insert_after(node, binary)
    assert lst.get(1) == binary