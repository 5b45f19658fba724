"""Functional forward kinematics and Jacobians over a `RobotModel`.

These functions are pure and work on the frozen snapshot returned by
`LinkTree.to_robot_model()`, so they can be jitted, vmapped over batches of
configurations and differentiated. They produce the same poses as
`LinkTree.calc_link_transforms()` for the same joint values.
"""

from typing import Dict

import jax
import jax.numpy as jnp
from jax import Array

from .core import RobotModel
from .errors import NotFoundError
from .transforms import se3, so3


def _joint_motion(axis: Array, value) -> Array:
    """Motion of a unit twist axis [v, w] scaled by a joint value.

    For unit axes this equals se3.exp(axis * value) for both revolute
    (v == 0) and prismatic (w == 0) joints, but has no norm or division, so
    derivatives stay finite at zero.
    """
    v, w = axis[:3], axis[3:]
    return se3.from_position_and_rotation(v * value, so3.from_axis_angle(w, value))


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute forward kinematics for all links in the robot.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values array of shape (num_dof,) for actuated joints only

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) world poses
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """Array form of `forward_kinematics`, used for jit and differentiation.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values array of shape (num_dof,) for actuated joints only

    Returns:
        Array of shape (num_links, 4, 4) with world poses for all links
    """
    num_links = len(robot.link_names)
    dtype = robot.joint_transforms.dtype

    # Scatter actuated values onto their links; fixed links stay at zero
    q_full = jnp.zeros(num_links, dtype=dtype)
    q_full = q_full.at[robot.actuated_link_indices].set(jnp.asarray(q, dtype=dtype))

    motions = jax.vmap(_joint_motion)(robot.joint_axes, q_full)
    local_transforms = jnp.matmul(robot.joint_transforms, motions)

    def scan_body(carry, i):
        """Processes link `i` using its parent's world pose from `carry`."""
        T_world_to_parent = jnp.where(i == 0, jnp.eye(4, dtype=dtype), carry[robot.parent_indices[i]])
        carry = carry.at[i].set(T_world_to_parent @ local_transforms[i])
        return carry, None

    # Links are stored parents-first, so a single ordered pass is enough
    initial = jnp.zeros_like(local_transforms)
    world_transforms, _ = jax.lax.scan(scan_body, initial, jnp.arange(num_links))
    return world_transforms


def jacobian(robot: RobotModel, q: Array, link_name: str) -> Array:
    """Compute the 6D geometric Jacobian of a link w.r.t. joint values.

    Rows 0-2 are the derivative of the link origin's world position, rows
    3-5 the world-frame angular velocity per unit joint velocity, recovered
    from dR/dq @ R^T.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values array of shape (num_dof,) for actuated joints only
        link_name: Name of the target link

    Returns:
        6x(num_dof) Jacobian matrix

    Raises:
        NotFoundError: if `link_name` is not part of the model.
    """
    try:
        link_idx = robot.link_names.index(link_name)
    except ValueError:
        raise NotFoundError(link_name) from None

    def link_pose(joint_values: Array) -> Array:
        return forward_kinematics_world(robot, joint_values)[link_idx]

    q = jnp.asarray(q, dtype=robot.joint_transforms.dtype)
    T = link_pose(q)
    dT = jax.jacfwd(link_pose)(q)  # (4, 4, num_dof)

    J_linear = dT[:3, 3, :]
    # (dR/dq_k) R^T is the skew matrix of the k-th angular velocity column
    W = jnp.einsum("ijk,lj->kil", dT[:3, :3, :], se3.get_rotation(T))
    J_angular = jnp.stack([W[:, 2, 1], W[:, 0, 2], W[:, 1, 0]], axis=0)

    return jnp.concatenate([J_linear, J_angular], axis=0)
