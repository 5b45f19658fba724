"""Rigid links and their cached world transforms."""

from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np
from jax import Array

from ..transforms import se3
from .joint import Joint


@jax.jit
def _compose(offset: Array, motion: Array) -> Array:
    return se3.multiply(offset, motion)


class Link:
    """One rigid body of a mechanism.

    The link frame sits at `offset` relative to the parent link's frame and
    is then moved by the link's own joint, so

        local transform = offset @ joint.local_transform()

    Args:
        name: Link name; should be unique within a tree.
        joint: The joint driving this link. Defaults to a fixed joint named
            after the link.
        translation: (3,) offset position in the parent frame. Defaults to zero.
        rotation: (3, 3) offset rotation in the parent frame. Defaults to identity.
    """

    def __init__(self, name: str, joint: Optional[Joint] = None,
                 translation=None, rotation=None):
        self.name = name
        self.joint = joint if joint is not None else Joint.fixed(name)

        p = np.zeros(3) if translation is None else np.asarray(translation, dtype=np.float64)
        R = np.eye(3) if rotation is None else np.asarray(rotation, dtype=np.float64)
        if p.shape != (3,):
            raise ValueError(f"link '{name}': translation must have shape (3,), got {p.shape}")
        if R.shape != (3, 3):
            raise ValueError(f"link '{name}': rotation must have shape (3, 3), got {R.shape}")
        self.offset = se3.from_position_and_rotation(jnp.asarray(p), jnp.asarray(R))

        self._world_transform: Optional[Array] = None

    def calc_transform(self) -> Array:
        """Transform from the parent link frame to this link frame."""
        if self.joint.is_fixed:
            return self.offset
        return _compose(self.offset, self.joint.local_transform())

    def has_joint_angle(self) -> bool:
        return not self.joint.is_fixed

    def get_joint_angle(self) -> Optional[float]:
        return self.joint.get_value()

    def set_joint_angle(self, value: float) -> None:
        """Set the joint value; a successful set invalidates this link's cache."""
        self.joint.set_value(value)
        self._world_transform = None

    @property
    def joint_name(self) -> str:
        return self.joint.name

    # Cache of the world transform, written by LinkTree.calc_link_transforms().
    # The tree clears it for a whole subtree whenever angles change through a
    # chain or the tree; a direct set_joint_angle() only clears this link.
    @property
    def world_transform(self) -> Optional[Array]:
        return self._world_transform

    def cache_world_transform(self, transform: Array) -> None:
        self._world_transform = transform

    def clear_world_transform(self) -> None:
        self._world_transform = None

    def __repr__(self):
        return f"Link({self.name!r}, joint={self.joint!r})"
