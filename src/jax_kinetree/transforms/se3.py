"""SE(3) rigid body transforms in JAX.

Transforms are (..., 4, 4) homogeneous matrices. All functions are pure and
JIT-able; composition is plain matrix multiplication, so `multiply(A, B)`
applies B first.
"""


import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def identity(dtype=jnp.float64) -> Array:
    """Return the (4, 4) identity transform."""
    return jnp.eye(4, dtype=dtype)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=jnp.result_type(p, R))
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def from_translation(p: Array) -> Array:
    """Pure translation by the (3,) vector `p`."""
    p = jnp.asarray(p, dtype=jnp.float64)
    return from_position_and_rotation(p, jnp.eye(3, dtype=p.dtype))


def multiply(T1: Array, T2: Array) -> Array:
    """Compose two transforms: the result maps through T2, then T1."""
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    Uses the block structure T^-1 = [[R^T, -R^T t], [0, 1]].

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 4, 4) inverse transformation matrix
    """
    R_inv = jnp.swapaxes(T[..., :3, :3], -1, -2)
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, T[..., :3, 3])
    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(3) transformation to points.

    Args:
        T: (4, 4) transformation matrix
        points: (3,) or (N, 3) points to transform

    Returns:
        Transformed points with the same shape as `points`
    """
    return jnp.einsum("ij,...j->...i", T[:3, :3], points) + T[:3, 3]


def get_position(T: Array) -> Array:
    """Extract the (..., 3) position from a transform."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """Extract the (..., 3, 3) rotation matrix from a transform."""
    return T[..., :3, :3]


@jax.jit
def pose_error(current: Array, target: Array) -> Array:
    """
    Six-component error that moves `current` onto `target`.

    Both parts are expressed in the world frame: the translation part is the
    position difference and the rotation part is the axis-angle vector of the
    relative rotation R_target @ R_current^T.

    Args:
        current: (4, 4) current pose
        target: (4, 4) desired pose

    Returns:
        (6,) array [dx, dy, dz, rx, ry, rz]
    """
    dp = get_position(target) - get_position(current)
    dR = jnp.matmul(get_rotation(target), jnp.swapaxes(get_rotation(current), -1, -2))
    return jnp.concatenate([dp, so3.log(dR)], axis=-1)
