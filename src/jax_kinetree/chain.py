"""Kinematic chains: root-to-end paths through a link tree.

A chain does not own its links. It keeps the arena of the tree it was cut
from and the ids of the nodes on the path, so angle changes made through a
chain are visible from the tree and from every other chain sharing links.
"""

from typing import Iterable, Iterator, List, Optional, Sequence

import jax
import jax.numpy as jnp
from jax import Array

from .core.joint import Range
from .core.link import Link
from .core.node import NodeArena
from .errors import NotFoundError, SizeMismatchError
from .transforms import se3


@jax.jit
def _accumulate(base: Array, local_transforms: Array) -> Array:
    """Running products base @ T0, base @ T0 @ T1, ... as an (n, 4, 4) array."""
    def scan_body(carry, local):
        carry = carry @ local
        return carry, carry

    _, cumulative = jax.lax.scan(scan_body, base, local_transforms)
    return cumulative


def invalidate_world_transforms(arena: NodeArena[Link], nodes: Iterable[int]) -> None:
    """Clear the cached world transform of every link below (and at) `nodes`."""
    seen = set()
    for node in nodes:
        if node in seen:
            continue
        for descendant in arena.descendants(node):
            seen.add(descendant)
            arena.data(descendant).clear_world_transform()


def assign_joint_angles(arena: NodeArena[Link], joint_nodes: Sequence[int],
                        angles: Sequence[float]) -> None:
    """Positional assignment shared by chains and trees.

    The size check happens before any write. A joint rejecting its value
    stops the loop; joints assigned before it keep their new values.
    """
    angles = list(angles)
    if len(angles) != len(joint_nodes):
        raise SizeMismatchError(len(joint_nodes), len(angles))

    touched = []
    try:
        for node, angle in zip(joint_nodes, angles):
            arena.data(node).set_joint_angle(angle)
            touched.append(node)
    finally:
        invalidate_world_transforms(arena, touched)


class KinematicChain:
    """Ordered root-to-end sequence of links.

    Args:
        name: Chain name.
        arena: Arena holding the links.
        end: Id of the last node; the chain runs from its root to it.
        transform: Optional (4, 4) base transform the chain starts from.
            Defaults to identity.
    """

    def __init__(self, name: str, arena: NodeArena[Link], end: int,
                 transform: Optional[Array] = None):
        self.name = name
        self.arena = arena
        nodes = list(arena.map_ancestors(end, lambda n: n))
        nodes.reverse()
        self.nodes = nodes
        if transform is None:
            transform = se3.identity()
        self.transform = jnp.asarray(transform, dtype=jnp.float64)
        self._end_link_name: Optional[str] = None

    @property
    def end_link_name(self) -> Optional[str]:
        return self._end_link_name

    def set_end_link_name(self, name: Optional[str]) -> None:
        """Stop `calc_end_transform` at the link called `name` (None resets).

        Raises:
            NotFoundError: if no link of the chain has that name.
        """
        if name is not None and name not in self.get_link_names():
            raise NotFoundError(name)
        self._end_link_name = name

    def iter_links(self) -> Iterator[Link]:
        return (self.arena.data(node) for node in self.nodes)

    def _joint_nodes(self) -> List[int]:
        return [node for node in self.nodes if self.arena.data(node).has_joint_angle()]

    def iter_joint_links(self) -> Iterator[Link]:
        return (self.arena.data(node) for node in self._joint_nodes())

    def dof(self) -> int:
        return len(self._joint_nodes())

    def get_joint_angles(self) -> List[float]:
        """Values of the non-fixed joints, root first."""
        return [link.get_joint_angle() for link in self.iter_joint_links()]

    def set_joint_angles(self, angles: Sequence[float]) -> None:
        """Assign `angles` to the non-fixed joints in chain order.

        Raises:
            SizeMismatchError: if len(angles) != dof(); nothing is written.
            OutOfLimitError: from the first joint rejecting its value. Earlier
                joints in the chain keep their new values.
        """
        assign_joint_angles(self.arena, self._joint_nodes(), angles)

    def get_joint_limits(self) -> List[Optional[Range]]:
        return [link.joint.limits for link in self.iter_joint_links()]

    def get_joint_names(self) -> List[str]:
        return [link.joint_name for link in self.iter_joint_links()]

    def get_link_names(self) -> List[str]:
        return [link.name for link in self.iter_links()]

    def calc_end_transform(self) -> Array:
        """Pose of the end link (or of the link set by `set_end_link_name`)."""
        end_transform = self.transform
        for link in self.iter_links():
            end_transform = se3.multiply(end_transform, link.calc_transform())
            if link.name == self._end_link_name:
                return end_transform
        return end_transform

    def calc_link_transforms(self) -> List[Array]:
        """Cumulative pose of every link of the chain, ignoring the end link name."""
        local_transforms = jnp.stack([link.calc_transform() for link in self.iter_links()])
        return list(_accumulate(self.transform, local_transforms))

    def __repr__(self):
        return f"KinematicChain({self.name!r}, links={self.get_link_names()})"
