"""Shared robot builders for the test suite."""

from pathlib import Path

import pytest

from jax_kinetree import Joint, KinematicChain, Link, LinkTree, NodeArena

FIXTURES = Path(__file__).parent / "fixtures"

X_AXIS = [1.0, 0.0, 0.0]
Y_AXIS = [0.0, 1.0, 0.0]
Z_AXIS = [0.0, 0.0, 1.0]


def serial_arm(specs):
    """Wire (link name, joint name, axis, translation) tuples into one chain."""
    arena = NodeArena()
    previous = None
    for link_name, joint_name, axis, translation in specs:
        node = arena.add(Link(link_name, Joint.rotational(joint_name, axis), translation))
        if previous is not None:
            arena.attach(previous, node)
        previous = node
    return KinematicChain("arm", arena, previous)


ARM6 = [
    ("shoulder_link1", "shoulder_pitch", Y_AXIS, [0.0, 0.0, 0.0]),
    ("shoulder_link2", "shoulder_roll", X_AXIS, [0.0, 0.1, 0.0]),
    ("shoulder_link3", "shoulder_yaw", Z_AXIS, [0.0, 0.0, -0.30]),
    ("elbow_link1", "elbow_pitch", Y_AXIS, [0.0, 0.0, -0.15]),
    ("wrist_link1", "wrist_yaw", Z_AXIS, [0.0, 0.0, -0.15]),
    ("wrist_link2", "wrist_pitch", Y_AXIS, [0.0, 0.0, -0.15]),
]

ARM7 = ARM6 + [("wrist_link3", "wrist_roll", X_AXIS, [0.0, 0.0, -0.10])]


@pytest.fixture
def arm6():
    return serial_arm(ARM6)


@pytest.fixture
def arm7():
    return serial_arm(ARM7)


def branching_tree():
    """Six rotational links around y: link0 -> link1 -> link2 -> link3 and link0 -> link4 -> link5."""
    offsets = [
        [0.0, 0.1, 0.0],
        [0.0, 0.1, 0.1],
        [0.0, 0.1, 0.1],
        [0.0, 0.1, 0.2],
        [0.0, 0.1, 0.1],
        [0.0, 0.1, 0.1],
    ]
    arena = NodeArena()
    nodes = [
        arena.add(Link(f"link{i}", Joint.rotational(f"j{i}", Y_AXIS), offset))
        for i, offset in enumerate(offsets)
    ]
    for parent, child in [(0, 1), (1, 2), (2, 3), (0, 4), (4, 5)]:
        arena.attach(nodes[parent], nodes[child])
    return LinkTree("robo1", arena, nodes[0])


@pytest.fixture
def tree():
    return branching_tree()


@pytest.fixture
def dual_arm_urdf():
    return FIXTURES / "dual_arm.urdf"
