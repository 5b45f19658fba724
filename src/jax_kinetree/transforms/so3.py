"""SO(3) and so(3) operations in JAX.

Rotations are (..., 3, 3) matrices; their tangent vectors are (..., 3)
axis-angle ("rotation vector") arrays. Every function is pure and JIT-able.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector(s) to the matching cross-product matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix such that skew(v) @ u == cross(v, u)
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def from_axis_angle(axis: Array, angle) -> Array:
    """
    Rotation about a unit axis by an angle (Rodrigues' formula).

    Unlike `exp`, no normalisation happens here, so the axis must already be
    a unit vector. This keeps the function branch-free for joint motion.

    Args:
        axis: (3,) unit rotation axis
        angle: scalar angle in radians

    Returns:
        (3, 3) rotation matrix
    """
    K = skew_symmetric(axis)
    I = jnp.eye(3, dtype=K.dtype)
    return I + jnp.sin(angle) * K + (1.0 - jnp.cos(angle)) * jnp.matmul(K, K)


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector(s) to rotation matrices.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)
    small_angle = angle < 1e-8

    # Taylor expansion near zero keeps the division below well defined
    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))
    safe_angle = jnp.where(small_angle, 1.0, angle)
    axis = jnp.where(small_angle, log_r, log_r / safe_angle)

    K = skew_symmetric(axis)
    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    return (I +
            sin_angle[..., None] * K +
            (1.0 - cos_angle)[..., None] * jnp.matmul(K, K))


def log(R: Array) -> Array:
    """
    SO(3) logarithm map: convert rotation matrices to axis-angle vectors.

    Used for orientation errors in IK, so both ends of the angle range are
    handled explicitly: a Taylor expansion near zero and an eigenvector
    construction near pi, where the skew-symmetric part vanishes.

    Args:
        R: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 3) array of axis-angle vectors with norm in [0, pi]
    """
    vee = jnp.stack([
        R[..., 2, 1] - R[..., 1, 2],
        R[..., 0, 2] - R[..., 2, 0],
        R[..., 1, 0] - R[..., 0, 1]
    ], axis=-1)
    # |vee| = 2 sin(theta); atan2 keeps the angle accurate at both ends of [0, pi]
    sin2 = jnp.linalg.norm(vee, axis=-1)
    cos_angle = (jnp.trace(R, axis1=-2, axis2=-1) - 1.0) / 2.0
    angle = jnp.arctan2(sin2 / 2.0, cos_angle)

    small_angle = angle < 1e-6
    near_pi = angle > jnp.pi - 1e-3

    # theta / (2 sin theta) tends to 1/2 + theta^2 / 12
    safe_sin2 = jnp.where(small_angle | near_pi, 1.0, sin2)
    scale = jnp.where(small_angle, 0.5 + angle**2 / 12.0, angle / safe_sin2)
    w_general = scale[..., None] * vee

    # (R + R^T) / 2 - cos(theta) I = (1 - cos(theta)) n n^T exactly;
    # its dominant column gives the axis up to sign
    I = jnp.eye(3, dtype=R.dtype)
    S = (R + jnp.swapaxes(R, -1, -2)) / 2.0 - cos_angle[..., None, None] * I
    diag_vals = jnp.diagonal(S, axis1=-2, axis2=-1)
    max_idx = jnp.argmax(diag_vals, axis=-1)
    axis_pi = jnp.take_along_axis(S, max_idx[..., None, None], axis=-1)[..., 0]
    axis_pi = axis_pi / jnp.linalg.norm(axis_pi, axis=-1, keepdims=True)
    sign = jnp.where(jnp.sum(axis_pi * vee, axis=-1, keepdims=True) < 0.0, -1.0, 1.0)
    w_pi = sign * angle[..., None] * axis_pi

    return jnp.where(near_pi[..., None], w_pi, w_general)


def from_rpy(rpy: Array) -> Array:
    """
    Convert roll-pitch-yaw angles to a rotation matrix.

    Args:
        rpy: (3,) [roll, pitch, yaw] in radians (fixed X, Y, Z axes)

    Returns:
        (3, 3) rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    """
    rpy = jnp.asarray(rpy, dtype=jnp.float64)
    R_x = from_axis_angle(jnp.array([1.0, 0.0, 0.0]), rpy[0])
    R_y = from_axis_angle(jnp.array([0.0, 1.0, 0.0]), rpy[1])
    R_z = from_axis_angle(jnp.array([0.0, 0.0, 1.0]), rpy[2])
    return R_z @ R_y @ R_x


def from_quaternion(quaternions: Array) -> Array:
    """
    Rotation matrices from (..., 4) quaternions in (w, x, y, z) order.

    Uses R = (w^2 - |v|^2) I + 2 v v^T + 2 w skew(v); the input does not need
    to be normalised.
    """
    q = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)
    w, v = q[..., :1], q[..., 1:]

    I = jnp.eye(3, dtype=q.dtype)
    scale = (w * w - jnp.sum(v * v, axis=-1, keepdims=True))[..., None]
    outer = v[..., :, None] * v[..., None, :]
    return scale * I + 2.0 * outer + 2.0 * w[..., None] * skew_symmetric(v)
