"""Structural interfaces shared by chains and trees.

The IK solver only relies on `ChainLike`, so anything providing these
methods (a sub-chain of a tree, a hand-written mock) can be solved.
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from jax import Array

from .joint import Range


@runtime_checkable
class JointContainer(Protocol):
    def dof(self) -> int:
        ...

    def get_joint_angles(self) -> List[float]:
        ...

    def set_joint_angles(self, angles: Sequence[float]) -> None:
        ...

    def get_joint_limits(self) -> List[Optional[Range]]:
        ...

    def get_joint_names(self) -> List[str]:
        ...


@runtime_checkable
class LinkContainer(Protocol):
    def calc_link_transforms(self) -> List[Array]:
        ...

    def get_link_names(self) -> List[str]:
        ...


@runtime_checkable
class ChainLike(JointContainer, Protocol):
    def calc_end_transform(self) -> Array:
        ...
