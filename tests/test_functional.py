"""Tests for functional forward kinematics and Jacobian computation."""

import jax
import jax.numpy as jnp
import jax.random as jrandom
import numpy as np
import pytest

from jax_kinetree import NotFoundError, forward_kinematics, forward_kinematics_world, jacobian
from jax_kinetree.io import load_urdf
from jax_kinetree.transforms import se3

from conftest import branching_tree


def test_fk_matches_tree():
    """Functional FK reproduces the tree's world transforms."""
    tree = branching_tree()
    q = jnp.array([0.3, -0.2, 0.1, 0.5, -0.4, 0.2])
    tree.set_joint_angles(q.tolist())
    expected = dict(zip(tree.get_link_names(), tree.calc_link_transforms()))

    poses = forward_kinematics(tree.to_robot_model(), q)

    assert set(poses) == set(expected)
    for name, T in poses.items():
        np.testing.assert_allclose(T, expected[name], atol=1e-12)


def test_fk_matches_tree_with_fixed_and_linear_joints(dual_arm_urdf):
    """Fixed and prismatic links are handled the same way in both code paths."""
    tree = load_urdf(dual_arm_urdf)
    q = [0.4, -0.6, 1.2, 0.1, -0.3, 0.8]
    tree.set_joint_angles(q)
    expected = tree.calc_link_transforms()

    world = forward_kinematics_world(tree.to_robot_model(), jnp.array(q))

    assert world.shape == (len(expected), 4, 4)
    np.testing.assert_allclose(world, jnp.stack(expected), atol=1e-12)


def test_fk_jit_and_vmap():
    """FK works under jit and over a batch of configurations."""
    robot = branching_tree().to_robot_model()
    fk = jax.jit(forward_kinematics_world)

    q_batch = jrandom.uniform(jrandom.PRNGKey(0), (8, robot.num_dof), minval=-1.0, maxval=1.0)
    batched = jax.vmap(fk, in_axes=(None, 0))(robot, q_batch)

    assert batched.shape == (8, 6, 4, 4)
    for q, world in zip(q_batch, batched):
        np.testing.assert_allclose(world, forward_kinematics_world(robot, q), atol=1e-12)


def test_fk_poses_are_rigid():
    """Every pose has an orthonormal rotation and a homogeneous last row."""
    robot = branching_tree().to_robot_model()
    world = forward_kinematics_world(robot, jnp.array([0.5, -1.0, 0.2, 2.0, -0.7, 1.1]))

    for T in world:
        np.testing.assert_allclose(T[3], jnp.array([0.0, 0.0, 0.0, 1.0]), atol=1e-12)
        R = se3.get_rotation(T)
        np.testing.assert_allclose(R @ R.T, jnp.eye(3), atol=1e-12)


def test_jacobian_against_finite_differences(dual_arm_urdf):
    """Linear rows match central differences of the link position."""
    robot = load_urdf(dual_arm_urdf).to_robot_model()
    q = jnp.array([0.4, -0.6, 1.2, 0.1, -0.3, 0.8])
    link = "l_hand"
    link_idx = robot.link_names.index(link)

    J = jacobian(robot, q, link)
    assert J.shape == (6, robot.num_dof)

    eps = 1e-6
    for k in range(robot.num_dof):
        dq = jnp.zeros(robot.num_dof).at[k].set(eps)
        p_plus = se3.get_position(forward_kinematics_world(robot, q + dq)[link_idx])
        p_minus = se3.get_position(forward_kinematics_world(robot, q - dq)[link_idx])
        np.testing.assert_allclose(J[:3, k], (p_plus - p_minus) / (2 * eps), atol=1e-6)


def test_jacobian_columns_for_unrelated_joints_are_zero(dual_arm_urdf):
    """Joints of the other arm do not move the left hand."""
    robot = load_urdf(dual_arm_urdf).to_robot_model()
    J = jacobian(robot, jnp.zeros(robot.num_dof), "l_hand")

    for name in ("r_slider_joint", "r_shoulder_joint", "r_elbow_joint"):
        np.testing.assert_allclose(J[:, robot.joint_names.index(name)], jnp.zeros(6), atol=1e-12)


def test_revolute_angular_column_is_world_axis():
    """For a revolute joint the angular rows are its axis in the world frame."""
    robot = branching_tree().to_robot_model()
    q = jnp.array([0.3, -0.2, 0.1, 0.5, -0.4, 0.2])

    J = jacobian(robot, q, "link3")

    # every joint turns about y and y is preserved by rotations about y
    for k in range(4):
        np.testing.assert_allclose(J[3:, k], jnp.array([0.0, 1.0, 0.0]), atol=1e-10)
    np.testing.assert_allclose(J[:, 4:], jnp.zeros((6, 2)), atol=1e-12)


def test_prismatic_column_is_pure_translation(dual_arm_urdf):
    robot = load_urdf(dual_arm_urdf).to_robot_model()
    J = jacobian(robot, jnp.zeros(robot.num_dof), "r_slider")
    k = robot.joint_names.index("r_slider_joint")

    np.testing.assert_allclose(J[:3, k], jnp.array([0.0, 0.0, 1.0]), atol=1e-10)
    np.testing.assert_allclose(J[3:, k], jnp.zeros(3), atol=1e-10)


def test_jacobian_unknown_link():
    robot = branching_tree().to_robot_model()
    with pytest.raises(NotFoundError):
        jacobian(robot, jnp.zeros(robot.num_dof), "link_nono")
