"""Single degree-of-freedom joints.

A joint is the movable part of a link: it turns its scalar value (an angle
for rotational joints, a displacement for linear ones) into a local rigid
transform. Fixed joints contribute the identity and carry no value at all.
"""

import enum
from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np
from flax import struct
from jax import Array

from ..errors import OutOfLimitError, UnsupportedJointOperationError
from ..transforms import se3, so3

AXIS_NORM_TOLERANCE = 1e-6


class JointType(enum.Enum):
    FIXED = "fixed"
    ROTATIONAL = "rotational"
    LINEAR = "linear"


@struct.dataclass
class Range:
    """Inclusive [min, max] range of a joint value.

    Attributes:
        min: Lower bound (radians or meters).
        max: Upper bound, must not be smaller than `min`.
    """
    min: float = struct.field(pytree_node=False)
    max: float = struct.field(pytree_node=False)

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"invalid range: min {self.min} > max {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def clamp(self, value: float) -> float:
        return min(max(value, self.min), self.max)


@jax.jit
def _rotation_about(axis: Array, angle) -> Array:
    R = so3.from_axis_angle(axis, angle)
    return se3.from_position_and_rotation(jnp.zeros(3, dtype=R.dtype), R)


@jax.jit
def _translation_along(axis: Array, distance) -> Array:
    return se3.from_position_and_rotation(axis * distance, jnp.eye(3, dtype=axis.dtype))


class Joint:
    """A fixed, rotational or linear joint and its current value.

    Args:
        name: Joint name, reported by `get_joint_names()` of chains and trees.
        joint_type: One of `JointType`. Defaults to fixed.
        axis: Unit 3-vector, required for rotational and linear joints and
            expressed in the frame of the owning link's offset.
        limits: Optional `Range`; assignments outside it are rejected.

    Raises:
        ValueError: for a missing or non-unit axis, or limits on a fixed joint.
    """

    def __init__(self, name: str, joint_type: JointType = JointType.FIXED,
                 axis=None, limits: Optional[Range] = None):
        self.name = name
        self.joint_type = joint_type
        self.limits = limits

        if joint_type is JointType.FIXED:
            if limits is not None:
                raise ValueError(f"fixed joint '{name}' cannot have limits")
            self.axis = None
            self._value = None
            return

        if axis is None:
            raise ValueError(f"{joint_type.value} joint '{name}' needs an axis")
        axis = np.asarray(axis, dtype=np.float64)
        if axis.shape != (3,):
            raise ValueError(f"joint '{name}': axis must have shape (3,), got {axis.shape}")
        if abs(np.linalg.norm(axis) - 1.0) > AXIS_NORM_TOLERANCE:
            raise ValueError(f"joint '{name}': axis {axis.tolist()} is not a unit vector")
        self.axis = jnp.asarray(axis)

        # start at zero, or at the closest bound when zero is not allowed
        self._value = limits.clamp(0.0) if limits is not None else 0.0

    @classmethod
    def fixed(cls, name: str) -> "Joint":
        return cls(name, JointType.FIXED)

    @classmethod
    def rotational(cls, name: str, axis, limits: Optional[Range] = None) -> "Joint":
        return cls(name, JointType.ROTATIONAL, axis, limits)

    @classmethod
    def linear(cls, name: str, axis, limits: Optional[Range] = None) -> "Joint":
        return cls(name, JointType.LINEAR, axis, limits)

    @property
    def is_fixed(self) -> bool:
        return self.joint_type is JointType.FIXED

    def get_value(self) -> Optional[float]:
        """Current angle/displacement, or None for a fixed joint."""
        return self._value

    def set_value(self, value: float) -> None:
        """Assign a new joint value.

        Raises:
            UnsupportedJointOperationError: on a fixed joint.
            OutOfLimitError: if `value` is outside `limits`; the stored value
                is left unchanged.
        """
        if self.is_fixed:
            raise UnsupportedJointOperationError(f"fixed joint '{self.name}' has no value to set")
        value = float(value)
        if self.limits is not None and not self.limits.contains(value):
            raise OutOfLimitError(self.name, value, self.limits)
        self._value = value

    def local_transform(self) -> Array:
        """(4, 4) motion induced by the current value."""
        if self.joint_type is JointType.ROTATIONAL:
            return _rotation_about(self.axis, self._value)
        if self.joint_type is JointType.LINEAR:
            return _translation_along(self.axis, self._value)
        return se3.identity()

    def twist(self) -> Array:
        """Unit twist [v, w] whose exponential, scaled by the value, is the joint motion."""
        if self.joint_type is JointType.ROTATIONAL:
            return jnp.concatenate([jnp.zeros(3), self.axis])
        if self.joint_type is JointType.LINEAR:
            return jnp.concatenate([self.axis, jnp.zeros(3)])
        return jnp.zeros(6)

    def __repr__(self):
        return f"Joint({self.name!r}, {self.joint_type.value}, value={self._value})"
