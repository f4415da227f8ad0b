import math
import random

import pytest

from shardavl.avl_tree import AVLTree, BinarySearchTree

KINDS = ["bst", "avl"]


def _avl_bound(n):
    return 1.45 * math.log2(n + 2)


@pytest.mark.parametrize("kind", KINDS)
def test_insert_and_get(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for i in range(100):
        tree.insert(i, i * 10)
    assert len(tree) == 100
    assert tree.get(50) == 500
    assert tree.get(1000) is None
    assert tree.get(1000, -1) == -1


@pytest.mark.parametrize("kind", KINDS)
def test_duplicate_insert_updates_value(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    tree.insert(42, 100)
    tree.insert(42, 200)
    assert tree.get(42) == 200
    assert len(tree) == 1


@pytest.mark.parametrize("kind", KINDS)
def test_remove_returns_presence(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for i in range(10):
        tree.insert(i, i)
    assert tree.remove(5) is True
    assert tree.remove(5) is False
    assert 5 not in tree
    assert len(tree) == 9
    assert tree.remove(9999) is False
    assert len(tree) == 9


@pytest.mark.parametrize("kind", KINDS)
def test_contains_and_dunder(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    tree.insert(3, "c")
    assert tree.contains(3)
    assert 3 in tree
    assert not tree.contains(4)
    assert 4 not in tree


@pytest.mark.parametrize("kind", KINDS)
def test_min_max(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for key in [17, 3, 99, -5, 42]:
        tree.insert(key, key)
    assert tree.min_key() == -5
    assert tree.max_key() == 99


@pytest.mark.parametrize("kind", KINDS)
def test_min_max_empty_raises(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    with pytest.raises(ValueError):
        tree.min_key()
    with pytest.raises(ValueError):
        tree.max_key()


@pytest.mark.parametrize("kind", KINDS)
def test_items_sorted(kind):
    rng = random.Random(7)
    keys = rng.sample(range(10000), 500)
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for k in keys:
        tree.insert(k, str(k))
    assert list(tree.items()) == [(k, str(k)) for k in sorted(keys)]
    assert list(tree) == sorted(keys)


@pytest.mark.parametrize("kind", KINDS)
def test_range_items_inclusive(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for i in range(0, 100, 2):
        tree.insert(i, i)
    got = [k for k, _ in tree.range_items(10, 20)]
    assert got == [10, 12, 14, 16, 18, 20]
    got_odd = [k for k, _ in tree.range_items(11, 19)]
    assert got_odd == [12, 14, 16, 18]


@pytest.mark.parametrize("kind", KINDS)
def test_range_matches_filter(kind):
    rng = random.Random(3)
    keys = rng.sample(range(5000), 300)
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for k in keys:
        tree.insert(k, k)
    lo, hi = 1000, 3000
    expected = [(k, k) for k in sorted(keys) if lo <= k <= hi]
    assert list(tree.range_items(lo, hi)) == expected


@pytest.mark.parametrize("kind", KINDS)
def test_clear(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for i in range(50):
        tree.insert(i, i)
    tree.clear()
    assert len(tree) == 0
    assert list(tree.items()) == []
    assert tree.height() == 0
    tree.insert(1, "x")
    assert tree.get(1) == "x"


@pytest.mark.parametrize("kind", KINDS)
def test_string_keys(kind):
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    for word, n in [("hello", 1), ("world", 2), ("foo", 3), ("bar", 4)]:
        tree.insert(word, n)
    assert len(tree) == 4
    assert tree.get("foo") == 3
    tree.remove("bar")
    assert "bar" not in tree
    assert list(tree) == ["foo", "hello", "world"]


@pytest.mark.parametrize("kind", KINDS)
def test_random_ops_match_dict(kind):
    rng = random.Random(12345)
    tree = AVLTree() if kind == "avl" else BinarySearchTree()
    model = {}
    for _ in range(3000):
        key = rng.randrange(400)
        if rng.random() < 0.6:
            tree.insert(key, key * 3)
            model[key] = key * 3
        else:
            assert tree.remove(key) == (key in model)
            model.pop(key, None)
    assert len(tree) == len(model)
    assert list(tree.items()) == sorted(model.items())


def test_bst_sequential_degenerates():
    tree = BinarySearchTree()
    n = 2000
    for i in range(n):
        tree.insert(i, i)
    assert tree.height() == n
    assert list(tree) == list(range(n))


def test_avl_sequential_stays_balanced():
    tree = AVLTree()
    n = 5000
    for i in range(n):
        tree.insert(i, i)
    assert tree.height() <= _avl_bound(n)
    assert list(tree) == list(range(n))


def test_avl_balanced_after_removals():
    rng = random.Random(99)
    tree = AVLTree()
    keys = list(range(4000))
    rng.shuffle(keys)
    for k in keys:
        tree.insert(k, k)
    for k in keys[:3000]:
        assert tree.remove(k)
    assert len(tree) == 1000
    assert tree.height() <= _avl_bound(len(tree))
    assert list(tree) == sorted(keys[3000:])


def test_avl_remove_with_two_children():
    tree = AVLTree()
    for k in [50, 30, 70, 20, 40, 60, 80]:
        tree.insert(k, k)
    assert tree.remove(50)
    assert list(tree) == [20, 30, 40, 60, 70, 80]
    assert tree.min_key() == 20
    assert tree.max_key() == 80


def test_avl_height_of_single_and_empty():
    tree = AVLTree()
    assert tree.height() == 0
    tree.insert(1, 1)
    assert tree.height() == 1
    tree.remove(1)
    assert tree.height() == 0
    assert len(tree) == 0