"""Index-based tree container.

`NodeArena` stores arbitrary payloads as nodes addressed by integer ids.
Parent and child relations are ids held inside the arena rather than object
references, so a node never keeps its parent alive and there are no reference
cycles to manage. Anything that needs to point at a node (a chain, a
traversal) holds its id.
"""

import numbers
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

from ..errors import NotFoundError, TreeStructureError

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class _Node(Generic[T]):
    data: T
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)


class NodeArena(Generic[T]):
    """Owner of every node of one (or several disjoint) trees.

    Attributes:
        shape_version: Counter bumped by every successful `attach`/`detach`.
            Containers that flatten the tree compare it to decide when their
            traversal cache must be rebuilt.
    """

    def __init__(self):
        self._nodes: List[_Node[T]] = []
        self.shape_version = 0

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: int) -> bool:
        return (isinstance(node, numbers.Integral) and not isinstance(node, bool)
                and 0 <= node < len(self._nodes))

    def _get(self, node: int) -> _Node[T]:
        if node not in self:
            raise NotFoundError(node, what="node")
        return self._nodes[node]

    def add(self, data: T) -> int:
        """Store `data` as a new detached node and return its id."""
        self._nodes.append(_Node(data))
        return len(self._nodes) - 1

    def data(self, node: int) -> T:
        return self._get(node).data

    def parent(self, node: int) -> Optional[int]:
        return self._get(node).parent

    def children(self, node: int) -> Tuple[int, ...]:
        return tuple(self._get(node).children)

    def attach(self, parent: int, child: int) -> None:
        """Make `child` the last child of `parent`.

        Raises:
            TreeStructureError: if `child` already has a parent or if the link
                would close a cycle. Neither node is modified in that case.
        """
        parent_node = self._get(parent)
        child_node = self._get(child)
        parent, child = int(parent), int(child)
        if child_node.parent is not None:
            raise TreeStructureError(
                f"node {child} already has parent {child_node.parent}; detach it first"
            )
        if child in self.ancestors(parent):
            raise TreeStructureError(f"attaching {child} under {parent} would create a cycle")

        parent_node.children.append(child)
        child_node.parent = parent
        self.shape_version += 1

    def detach(self, child: int) -> None:
        """Cut `child` (and its subtree) loose from its parent. No-op for roots."""
        child_node = self._get(child)
        if child_node.parent is None:
            return
        self._nodes[child_node.parent].children.remove(child)
        child_node.parent = None
        self.shape_version += 1

    def root_of(self, node: int) -> int:
        return self.ancestors(node)[-1]

    def ancestors(self, node: int) -> List[int]:
        """Ids from `node` up to its root, both inclusive."""
        order = []
        current: Optional[int] = node
        while current is not None:
            order.append(current)
            current = self._get(current).parent
        return order

    def descendants(self, node: int) -> List[int]:
        """Ids of the subtree under `node`: depth-first, pre-order, children in insertion order."""
        order = []
        stack = [node]
        while stack:
            current = stack.pop()
            order.append(current)
            # reversed so the first child is visited first
            stack.extend(reversed(self._get(current).children))
        return order

    def map_ancestors(self, node: int, f: Callable[[int], R]) -> Iterator[R]:
        """Lazily yield `f(n)` for each id in `ancestors(node)`.

        The visit order is captured before the first call to `f`, so `f` may
        mutate payloads freely.
        """
        order = self.ancestors(node)
        return (f(n) for n in order)

    def map_descendants(self, node: int, f: Callable[[int], R]) -> Iterator[R]:
        """Lazily yield `f(n)` for each id in `descendants(node)`; see `map_ancestors`."""
        order = self.descendants(node)
        return (f(n) for n in order)
