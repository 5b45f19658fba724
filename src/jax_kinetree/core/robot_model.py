"""RobotModel PyTree: a frozen, array-based snapshot of a link tree.

`LinkTree` is mutable and object based, which suits incremental updates and
the IK loop. For batched or differentiated forward kinematics the same
structure is exported once into this immutable PyTree, usable under
`jax.jit`, `jax.vmap` and `jax.grad`.
"""

from typing import Tuple

from jax import Array
from flax import struct


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a robot's kinematic structure.

    Links are stored in the tree's traversal order (parents before children),
    with the root at index 0.

    Attributes:
        link_names: Tuple of all link names. Index corresponds to link ID.
                    Static field for JIT compilation.
        joint_names: Tuple of actuated (non-fixed) joint names in traversal
                     order. Static field for JIT compilation.
        parent_indices: Array of shape (num_links,); parent_indices[i] is the
                       parent link index of link i. The root parents itself.
        joint_transforms: Array of shape (num_links, 4, 4) with each link's
                         fixed offset from its parent frame.
        joint_axes: Array of shape (num_links, 6) of unit twists
                   [vx,vy,vz,wx,wy,wz]; zero for fixed joints.
        actuated_link_indices: Array of shape (num_dof,) mapping the i-th
                              joint value to the link it drives.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_link_indices: Array

    @property
    def num_dof(self) -> int:
        return len(self.joint_names)
