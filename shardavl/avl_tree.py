"""Ordered maps backed by a plain binary search tree and a self-balancing AVL tree."""

from __future__ import annotations

from typing import Any, Generic, Iterator, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class _Node(Generic[K, V]):
    __slots__ = ("key", "value", "left", "right", "parent", "height")

    def __init__(self, key: K, value: V) -> None:
        self.key = key
        self.value = value
        self.left: Optional[_Node[K, V]] = None
        self.right: Optional[_Node[K, V]] = None
        self.parent: Optional[_Node[K, V]] = None
        self.height = 1


def _height(node: Optional[_Node]) -> int:
    return node.height if node is not None else 0


def _subtree_min(node: _Node) -> _Node:
    while node.left is not None:
        node = node.left
    return node


def _subtree_max(node: _Node) -> _Node:
    while node.right is not None:
        node = node.right
    return node


class BinarySearchTree(Generic[K, V]):
    """Unbalanced binary search tree mapping comparable keys to values.

    Subclasses keep the tree balanced by overriding ``_rebalance``, which is
    called with the lowest node whose subtree changed after each insertion or
    removal.
    """

    def __init__(self) -> None:
        self._root: Optional[_Node[K, V]] = None
        self._size = 0

    # -- structural hooks ---------------------------------------------------

    def _rebalance(self, start: _Node[K, V]) -> None:
        """Restore the tree's shape invariant; a plain BST has none."""

    def _find_node(self, key: K) -> Optional[_Node[K, V]]:
        current = self._root
        while current is not None:
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                return current
        return None

    def _transplant(self, u: _Node[K, V], v: Optional[_Node[K, V]]) -> None:
        parent = u.parent
        if parent is None:
            self._root = v
        elif u is parent.left:
            parent.left = v
        else:
            parent.right = v
        if v is not None:
            v.parent = parent

    # -- public API ---------------------------------------------------------

    def insert(self, key: K, value: V = None) -> None:
        """Insert ``key`` with ``value``; an existing key has its value replaced."""
        parent: Optional[_Node[K, V]] = None
        current = self._root
        while current is not None:
            parent = current
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                current.value = value
                return

        node = _Node(key, value)
        node.parent = parent
        if parent is None:
            self._root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node
        self._size += 1
        self._rebalance(node)

    def remove(self, key: K) -> bool:
        """Remove ``key``; return whether it was present."""
        node = self._find_node(key)
        if node is None:
            return False

        if node.left is None:
            start = node.parent
            self._transplant(node, node.right)
        elif node.right is None:
            start = node.parent
            self._transplant(node, node.left)
        else:
            successor = _subtree_min(node.right)
            start = successor if successor.parent is node else successor.parent
            if successor.parent is not node:
                self._transplant(successor, successor.right)
                successor.right = node.right
                successor.right.parent = successor
            self._transplant(node, successor)
            successor.left = node.left
            successor.left.parent = successor

        node.left = node.right = node.parent = None
        self._size -= 1
        if start is not None:
            self._rebalance(start)
        return True

    def contains(self, key: K) -> bool:
        return self._find_node(key) is not None

    def get(self, key: K, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` if absent."""
        node = self._find_node(key)
        return node.value if node is not None else default

    def min_key(self) -> K:
        """Smallest key; raises ValueError on an empty tree."""
        if self._root is None:
            raise ValueError("min_key() of an empty tree")
        return _subtree_min(self._root).key

    def max_key(self) -> K:
        """Largest key; raises ValueError on an empty tree."""
        if self._root is None:
            raise ValueError("max_key() of an empty tree")
        return _subtree_max(self._root).key

    def clear(self) -> None:
        self._root = None
        self._size = 0

    def items(self) -> Iterator[Tuple[K, V]]:
        """Yield ``(key, value)`` pairs in ascending key order."""
        stack: list[_Node[K, V]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.key, node.value
            node = node.right

    def range_items(self, lo: K, hi: K) -> Iterator[Tuple[K, V]]:
        """Yield pairs with ``lo <= key <= hi`` in ascending key order."""
        stack: list[_Node[K, V]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                if node.key < lo:
                    node = node.right
                else:
                    stack.append(node)
                    node = node.left
            node = stack.pop()
            if node.key > hi:
                return
            yield node.key, node.value
            node = node.right

    def height(self) -> int:
        """Number of nodes on the longest root-to-leaf path (0 when empty)."""
        if self._root is None:
            return 0
        depth = 0
        level = [self._root]
        while level:
            depth += 1
            level = [
                child
                for n in level
                for child in (n.left, n.right)
                if child is not None
            ]
        return depth

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[K]:
        return (key for key, _ in self.items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"


class AVLTree(BinarySearchTree[K, V]):
    """Binary search tree kept height-balanced with AVL rotations."""

    @staticmethod
    def _update_height(node: _Node) -> None:
        node.height = 1 + max(_height(node.left), _height(node.right))

    @staticmethod
    def _balance_factor(node: _Node) -> int:
        return _height(node.right) - _height(node.left)

    def _replace_child(self, old: _Node, new: _Node) -> None:
        parent = old.parent
        new.parent = parent
        if parent is None:
            self._root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new
        old.parent = new

    def _rotate_left(self, x: _Node) -> _Node:
        y = x.right
        b = y.left
        self._replace_child(x, y)
        y.left = x
        x.right = b
        if b is not None:
            b.parent = x
        self._update_height(x)
        self._update_height(y)
        return y

    def _rotate_right(self, x: _Node) -> _Node:
        y = x.left
        b = y.right
        self._replace_child(x, y)
        y.right = x
        x.left = b
        if b is not None:
            b.parent = x
        self._update_height(x)
        self._update_height(y)
        return y

    def _rebalance_node(self, node: _Node) -> _Node:
        self._update_height(node)
        bf = self._balance_factor(node)
        if bf == 2:
            if self._balance_factor(node.right) < 0:
                self._rotate_right(node.right)
            return self._rotate_left(node)
        if bf == -2:
            if self._balance_factor(node.left) > 0:
                self._rotate_left(node.left)
            return self._rotate_right(node)
        return node

    def _rebalance(self, start: _Node[K, V]) -> None:
        node: Optional[_Node[K, V]] = start
        while node is not None:
            node = self._rebalance_node(node).parent

    def height(self) -> int:
        return _height(self._root)