"""Exception hierarchy for jax_kinetree.

Every error raised by the library derives from `KinematicsError`. Where an
error is also a natural instance of a builtin category (a bad value, a
missing name), it subclasses that builtin too, so callers can catch either.
"""


class KinematicsError(Exception):
    """Base class for all jax_kinetree errors."""


class JointError(KinematicsError):
    """Errors raised while reading or assigning joint values."""


class SizeMismatchError(JointError, ValueError):
    """The number of joint values does not match the addressed dof."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected} joint values, got {actual}")


class OutOfLimitError(JointError, ValueError):
    """A joint value lies outside the joint's declared range."""

    def __init__(self, joint_name: str, value: float, limits):
        self.joint_name = joint_name
        self.value = value
        self.limits = limits
        super().__init__(
            f"joint '{joint_name}': value {value} outside [{limits.min}, {limits.max}]"
        )


class UnsupportedJointOperationError(JointError, TypeError):
    """The operation does not apply to this joint type (e.g. setting a fixed joint)."""


class NotFoundError(KinematicsError, LookupError):
    """A link, joint or node name/id does not exist."""

    def __init__(self, name, what: str = "link"):
        self.name = name
        super().__init__(f"{what} '{name}' not found")


class TreeStructureError(KinematicsError, ValueError):
    """An operation would break the tree shape (re-parenting, cycles, several roots)."""


class TransformCacheError(KinematicsError, RuntimeError):
    """A cached world transform was read before it was computed."""


class IKError(KinematicsError):
    """Base class for inverse kinematics failures."""


class NotConvergedError(IKError):
    """The solver used its whole iteration budget without meeting both tolerances."""

    def __init__(self, iterations: int, position_error: float, rotation_error: float):
        self.iterations = iterations
        self.position_error = position_error
        self.rotation_error = rotation_error
        super().__init__(
            f"IK did not converge after {iterations} iterations "
            f"(position error {position_error:.3g}, rotation error {rotation_error:.3g})"
        )


class SolverError(IKError):
    """The per-iteration linear solve produced no usable update."""
