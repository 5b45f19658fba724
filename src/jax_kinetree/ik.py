"""Numerical inverse kinematics with a finite-difference Jacobian.

The solver only talks to a chain through the `ChainLike` methods
(`get_joint_angles`, `set_joint_angles`, `get_joint_limits`,
`calc_end_transform`), so it works the same on a free-standing chain and on
a chain cut out of a larger tree.
"""

import logging
from typing import List, Optional

import jax
import jax.numpy as jnp
import numpy as np
from flax import struct
from jax import Array

from .core.interfaces import ChainLike
from .core.joint import Range
from .errors import NotConvergedError, SolverError
from .transforms import se3

logger = logging.getLogger(__name__)


@struct.dataclass
class IKSolverConfig:
    """Parameters of `JacobianIKSolver`.

    Attributes:
        jacobian_move_epsilon: Joint perturbation used for the numerical
            Jacobian (radians or meters).
        allowable_target_distance: Position tolerance (meters).
        allowable_target_angle: Orientation tolerance (radians).
        num_max_try: Maximum number of joint updates before giving up.
        damping: Constant part of the Levenberg-Marquardt damping term.
        max_step: Largest change of a single joint value in one update.
    """
    jacobian_move_epsilon: float = struct.field(pytree_node=False, default=1e-3)
    allowable_target_distance: float = struct.field(pytree_node=False, default=1e-3)
    allowable_target_angle: float = struct.field(pytree_node=False, default=1e-3)
    num_max_try: int = struct.field(pytree_node=False, default=100)
    damping: float = struct.field(pytree_node=False, default=1e-6)
    max_step: float = struct.field(pytree_node=False, default=0.5)

    def __post_init__(self):
        for name in ("jacobian_move_epsilon", "allowable_target_distance",
                     "allowable_target_angle", "damping", "max_step"):
            if not getattr(self, name) > 0.0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if isinstance(self.num_max_try, bool) or not isinstance(self.num_max_try, int):
            raise ValueError(f"num_max_try must be an integer, got {self.num_max_try!r}")
        if self.num_max_try <= 0:
            raise ValueError(f"num_max_try must be positive, got {self.num_max_try}")


@jax.jit
def _damped_least_squares(J: Array, err: Array, damping) -> Array:
    """Solve (J^T J + lambda I) dq = J^T err.

    lambda = |err|^2 / 2 + damping: strong damping far from the target or
    near singularities, close to Gauss-Newton as the error vanishes.
    """
    lam = 0.5 * jnp.dot(err, err) + damping
    A = J.T @ J + lam * jnp.eye(J.shape[1], dtype=J.dtype)
    return jnp.linalg.solve(A, J.T @ err)


def _clamp(values: np.ndarray, limits: List[Optional[Range]]) -> List[float]:
    return [
        float(v) if limit is None else limit.clamp(float(v))
        for v, limit in zip(values, limits)
    ]


class JacobianIKSolver:
    """Damped least-squares IK solver.

    Args:
        config: Solver parameters; defaults to `IKSolverConfig()`.
        **overrides: Individual `IKSolverConfig` fields replacing the ones
            in `config`, e.g. ``JacobianIKSolver(num_max_try=200)``.
    """

    def __init__(self, config: Optional[IKSolverConfig] = None, **overrides):
        config = config if config is not None else IKSolverConfig()
        if overrides:
            config = config.replace(**overrides)
        self.config = config

    def _errors(self, chain: ChainLike, target: Array):
        err = se3.pose_error(chain.calc_end_transform(), target)
        return err, float(jnp.linalg.norm(err[:3])), float(jnp.linalg.norm(err[3:]))

    def _is_reached(self, position_error: float, rotation_error: float) -> bool:
        return (position_error <= self.config.allowable_target_distance
                and rotation_error <= self.config.allowable_target_angle)

    def numerical_jacobian(self, chain: ChainLike, target: Array, err: Array) -> Array:
        """6 x dof Jacobian of the pose error, by one-sided finite differences.

        Each joint is moved by +epsilon, or by -epsilon when +epsilon would
        leave its limits; a joint whose range is narrower than epsilon in
        both directions gets a zero column. The starting angles are restored
        before returning.
        """
        eps = self.config.jacobian_move_epsilon
        angles = chain.get_joint_angles()
        limits = chain.get_joint_limits()

        columns = []
        try:
            for i, (angle, limit) in enumerate(zip(angles, limits)):
                step = eps
                if limit is not None and not limit.contains(angle + eps):
                    step = -eps
                    if not limit.contains(angle - eps):
                        columns.append(jnp.zeros_like(err))
                        continue
                perturbed = list(angles)
                perturbed[i] = angle + step
                chain.set_joint_angles(perturbed)
                err_i = se3.pose_error(chain.calc_end_transform(), target)
                # moving toward the target shrinks the error, hence err - err_i
                columns.append((err - err_i) / step)
        finally:
            chain.set_joint_angles(angles)

        return jnp.stack(columns, axis=1)

    def solve(self, chain: ChainLike, target_pose: Array) -> None:
        """Move the chain's joints until its end transform reaches `target_pose`.

        The chain's current angles are the initial guess. On success the
        chain holds the solution; on failure it keeps the last attempted
        angles.

        The tolerances bound the pose error only. How close the joint values
        end up to any particular solution depends on the chain's Jacobian;
        tighten `allowable_target_distance` and `allowable_target_angle` when
        joint-space accuracy matters.

        Args:
            chain: Object implementing `ChainLike`.
            target_pose: (4, 4) desired end transform.

        Raises:
            NotConvergedError: if both tolerances are not met within
                `num_max_try` updates.
            SolverError: if an update is not finite, or the chain has no
                movable joint and is not already at the target.
            SizeMismatchError, OutOfLimitError: propagated from a malformed
                chain.
        """
        target = jnp.asarray(target_pose, dtype=jnp.float64)
        limits = chain.get_joint_limits()

        for iteration in range(self.config.num_max_try):
            err, position_error, rotation_error = self._errors(chain, target)
            logger.debug("IK iteration %d: position error %.3e, rotation error %.3e",
                         iteration, position_error, rotation_error)
            if self._is_reached(position_error, rotation_error):
                logger.debug("IK converged after %d updates", iteration)
                return
            if not limits:
                raise SolverError("chain has no movable joint to reach the target with")

            J = self.numerical_jacobian(chain, target, err)
            dq = np.asarray(_damped_least_squares(J, err, self.config.damping))
            if not np.all(np.isfinite(dq)):
                raise SolverError(f"damped least-squares step is not finite at iteration {iteration}")

            largest = np.max(np.abs(dq))
            if largest > self.config.max_step:
                dq = dq * (self.config.max_step / largest)

            angles = np.asarray(chain.get_joint_angles(), dtype=np.float64)
            chain.set_joint_angles(_clamp(angles + dq, limits))

        _, position_error, rotation_error = self._errors(chain, target)
        if self._is_reached(position_error, rotation_error):
            logger.debug("IK converged after %d updates", self.config.num_max_try)
            return
        logger.warning("IK gave up after %d updates (position error %.3e, rotation error %.3e)",
                       self.config.num_max_try, position_error, rotation_error)
        raise NotConvergedError(self.config.num_max_try, position_error, rotation_error)
