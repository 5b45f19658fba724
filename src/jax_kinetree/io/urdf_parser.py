"""URDF loader building a `LinkTree` from a robot description.

Each URDF joint becomes the joint of its child link, and the joint's
`<origin>` becomes that link's fixed offset. The root link gets a fixed
joint named after itself.
"""

import logging
from typing import Dict, List, Optional

import numpy as np
from lxml import etree

from jax_kinetree.core import Joint, JointType, Link, NodeArena, Range
from jax_kinetree.errors import TreeStructureError
from jax_kinetree.transforms import so3
from jax_kinetree.tree import LinkTree

logger = logging.getLogger(__name__)

_JOINT_TYPES = {
    "revolute": JointType.ROTATIONAL,
    "continuous": JointType.ROTATIONAL,
    "prismatic": JointType.LINEAR,
    "fixed": JointType.FIXED,
}


def load_urdf(urdf_path) -> LinkTree:
    """Load a URDF file and convert it to a LinkTree.

    Args:
        urdf_path: Path (str or os.PathLike) of the URDF file to load.

    Returns:
        LinkTree: The robot, with every joint at its initial value.
    """
    return _build_tree(etree.parse(str(urdf_path)).getroot())


def load_urdf_string(urdf: str) -> LinkTree:
    """Same as `load_urdf` for a URDF document held in a string."""
    return _build_tree(etree.fromstring(urdf.encode("utf-8")))


def _parse_vector(text: Optional[str], default: str) -> np.ndarray:
    return np.array([float(x) for x in (text or default).split()])


def _parse_joint(joint_elem) -> Joint:
    name = joint_elem.get("name")
    urdf_type = joint_elem.get("type")
    joint_type = _JOINT_TYPES.get(urdf_type)
    if joint_type is None:
        logger.warning("Joint '%s' has unsupported type '%s'; treating it as fixed", name, urdf_type)
        joint_type = JointType.FIXED
    if joint_type is JointType.FIXED:
        return Joint.fixed(name)

    axis_elem = joint_elem.find("axis")
    axis = _parse_vector(axis_elem.get("xyz") if axis_elem is not None else None, "1 0 0")
    norm = np.linalg.norm(axis)
    if norm == 0.0:
        raise ValueError(f"joint '{name}' has a zero axis")

    limits = None
    limit_elem = joint_elem.find("limit")
    if urdf_type != "continuous" and limit_elem is not None:
        lower = limit_elem.get("lower")
        upper = limit_elem.get("upper")
        if lower is not None or upper is not None:
            limits = Range(float(lower or 0.0), float(upper or 0.0))

    return Joint(name, joint_type, axis / norm, limits)


def _origin(joint_elem):
    origin_elem = joint_elem.find("origin")
    if origin_elem is None:
        return np.zeros(3), np.eye(3)
    xyz = _parse_vector(origin_elem.get("xyz"), "0 0 0")
    rpy = _parse_vector(origin_elem.get("rpy"), "0 0 0")
    return xyz, np.asarray(so3.from_rpy(rpy))


def _build_tree(root) -> LinkTree:
    link_names: List[str] = [link.get("name") for link in root.findall("link")]
    duplicates = sorted({name for name in link_names if link_names.count(name) > 1})
    if duplicates:
        raise TreeStructureError(f"duplicate link names: {duplicates}")
    joint_by_child: Dict[str, object] = {}
    children_of: Dict[str, List[str]] = {name: [] for name in link_names}

    for joint_elem in root.findall("joint"):
        parent_elem = joint_elem.find("parent")
        child_elem = joint_elem.find("child")
        if parent_elem is None or child_elem is None:
            raise TreeStructureError(f"joint '{joint_elem.get('name')}' needs a parent and a child")
        parent_name = parent_elem.get("link")
        child_name = child_elem.get("link")
        for name in (parent_name, child_name):
            if name not in children_of:
                raise TreeStructureError(f"joint '{joint_elem.get('name')}' refers to unknown link '{name}'")
        if child_name in joint_by_child:
            raise TreeStructureError(f"link '{child_name}' is the child of more than one joint")
        joint_by_child[child_name] = joint_elem
        children_of[parent_name].append(child_name)

    # Find root link (not a child of any joint)
    root_links = [name for name in link_names if name not in joint_by_child]
    if len(root_links) != 1:
        raise TreeStructureError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links[0]

    arena: NodeArena[Link] = NodeArena()
    nodes: Dict[str, int] = {}
    for name in link_names:
        if name == root_link:
            nodes[name] = arena.add(Link(name))
            continue
        joint_elem = joint_by_child[name]
        translation, rotation = _origin(joint_elem)
        nodes[name] = arena.add(Link(name, _parse_joint(joint_elem), translation, rotation))

    # Attach in document order so traversal follows the file
    for parent_name, child_names in children_of.items():
        for child_name in child_names:
            arena.attach(nodes[parent_name], nodes[child_name])

    tree = LinkTree(root.get("name", ""), arena, nodes[root_link])
    if len(tree.nodes) != len(link_names):
        raise TreeStructureError("URDF links are not all connected to the root")
    logger.info("Loaded robot '%s': %d links, %d dof", tree.name, len(link_names), tree.dof())
    return tree
