"""Kinematic trees: every link of a mechanism and whole-tree kinematics."""

import logging
from typing import Iterator, List, Optional, Sequence

import jax.numpy as jnp
from jax import Array

from .chain import KinematicChain, assign_joint_angles
from .core.joint import Range
from .core.link import Link
from .core.node import NodeArena
from .core.robot_model import RobotModel
from .errors import NotFoundError, TransformCacheError, TreeStructureError
from .transforms import se3

logger = logging.getLogger(__name__)


class LinkTree:
    """A mechanism as a tree of links.

    The tree owns the arena holding its links. It keeps a flattened list of
    its node ids in traversal order (depth-first, pre-order, children in the
    order they were attached), rebuilt only when the arena's shape changes.

    Args:
        name: Robot name.
        arena: Arena holding the links.
        root: Id of the root link; it must not have a parent.

    Raises:
        TreeStructureError: if `root` has a parent.
    """

    def __init__(self, name: str, arena: NodeArena[Link], root: int):
        if arena.parent(root) is not None:
            raise TreeStructureError(f"root node {root} has parent {arena.parent(root)}")
        self.name = name
        self.arena = arena
        self.root = root
        self._expanded: List[int] = []
        self._shape_version = -1

    @property
    def nodes(self) -> List[int]:
        """Node ids in traversal order."""
        if self._shape_version != self.arena.shape_version:
            if self.arena.parent(self.root) is not None:
                raise TreeStructureError(f"root node {self.root} was attached under another node")
            self._expanded = self.arena.descendants(self.root)
            self._shape_version = self.arena.shape_version
            logger.debug("Rebuilt node list of '%s': %d links", self.name, len(self._expanded))
        return self._expanded

    def iter_links(self) -> Iterator[Link]:
        return (self.arena.data(node) for node in self.nodes)

    def _joint_nodes(self) -> List[int]:
        return [node for node in self.nodes if self.arena.data(node).has_joint_angle()]

    def iter_joint_links(self) -> Iterator[Link]:
        """Links whose joint is not fixed."""
        return (self.arena.data(node) for node in self._joint_nodes())

    def dof(self) -> int:
        return len(self._joint_nodes())

    def get_joint_angles(self) -> List[float]:
        """Values of all non-fixed joints, in traversal order; length is `dof()`."""
        return [link.get_joint_angle() for link in self.iter_joint_links()]

    def set_joint_angles(self, angles: Sequence[float]) -> None:
        """Assign `angles` to all non-fixed joints in traversal order.

        Raises:
            SizeMismatchError: if len(angles) != dof(); nothing is written.
            OutOfLimitError: from the first joint rejecting its value; joints
                before it keep their new values.
        """
        assign_joint_angles(self.arena, self._joint_nodes(), angles)

    def get_joint_limits(self) -> List[Optional[Range]]:
        return [link.joint.limits for link in self.iter_joint_links()]

    def get_joint_names(self) -> List[str]:
        return [link.joint_name for link in self.iter_joint_links()]

    def get_link_names(self) -> List[str]:
        return [link.name for link in self.iter_links()]

    def _find_node(self, name: str) -> Optional[int]:
        for node in self.nodes:
            if self.arena.data(node).name == name:
                return node
        return None

    def find_link(self, name: str) -> Link:
        node = self._find_node(name)
        if node is None:
            raise NotFoundError(name)
        return self.arena.data(node)

    def calc_link_transforms(self) -> List[Array]:
        """Compute every link's world transform and cache it on the link.

        Parents come before children in traversal order, so each link reads
        its parent's transform cached earlier in this same pass. The root is
        composed with the identity.

        Returns:
            List of (4, 4) world transforms in traversal order.
        """
        transforms = []
        for node in self.nodes:
            link = self.arena.data(node)
            if node == self.root:
                parent_transform = se3.identity()
            else:
                parent_transform = self.arena.data(self.arena.parent(node)).world_transform
                if parent_transform is None:
                    raise TransformCacheError(
                        f"parent of '{link.name}' has no cached transform during the update pass"
                    )
            world_transform = se3.multiply(parent_transform, link.calc_transform())
            link.cache_world_transform(world_transform)
            transforms.append(world_transform)
        return transforms

    def _is_cache_current(self, node: int) -> bool:
        # a link's cache is only valid while every link above it is cached too
        return all(
            self.arena.data(n).world_transform is not None for n in self.arena.ancestors(node)
        )

    def cached_link_transforms(self) -> List[Optional[Array]]:
        """Last cached world transforms without recomputing.

        An entry is None when the link's cache, or the cache of any link
        above it, has been cleared since the last `calc_link_transforms()`.
        """
        stale = set()
        transforms = []
        for node in self.nodes:
            link = self.arena.data(node)
            parent = self.arena.parent(node)
            if link.world_transform is None or (node != self.root and parent in stale):
                stale.add(node)
                transforms.append(None)
            else:
                transforms.append(link.world_transform)
        return transforms

    def link_world_transform(self, name: str) -> Array:
        """Cached world transform of the link called `name`.

        Raises:
            NotFoundError: if there is no such link.
            TransformCacheError: if the cache of this link or of one of its
                ancestors is stale; call `calc_link_transforms()` first.
        """
        node = self._find_node(name)
        if node is None:
            raise NotFoundError(name)
        if not self._is_cache_current(node):
            raise TransformCacheError(f"world transform of '{name}' is not up to date")
        return self.arena.data(node).world_transform

    def chain_from_end_link_name(self, name: str) -> Optional[KinematicChain]:
        """Chain from the root to the link called `name`, or None if absent."""
        node = self._find_node(name)
        if node is None:
            return None
        return KinematicChain(name, self.arena, node)

    def to_robot_model(self) -> RobotModel:
        """Export the current structure as an immutable `RobotModel`."""
        nodes = self.nodes
        index = {node: i for i, node in enumerate(nodes)}
        links = [self.arena.data(node) for node in nodes]

        parent_indices = [
            0 if node == self.root else index[self.arena.parent(node)] for node in nodes
        ]
        actuated = [i for i, link in enumerate(links) if link.has_joint_angle()]

        return RobotModel(
            link_names=tuple(link.name for link in links),
            joint_names=tuple(links[i].joint_name for i in actuated),
            parent_indices=jnp.array(parent_indices, dtype=jnp.int32),
            joint_transforms=jnp.stack([link.offset for link in links]),
            joint_axes=jnp.stack([link.joint.twist() for link in links]),
            actuated_link_indices=jnp.array(actuated, dtype=jnp.int32),
        )

    def __repr__(self):
        return f"LinkTree({self.name!r}, links={len(self.nodes)}, dof={self.dof()})"
