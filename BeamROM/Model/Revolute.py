"""
Revolute joints by node duplication.

A pin joint on node ``n`` is emulated instead of modeled directly:

1. Every element with ``n`` as an end node is collected, in element-table
   order. Elements that only use ``n`` as their orientation reference keep
   it untouched, since a reference node carries no DOFs.
2. The first element keeps ``n``.
3. Each further element gets its own copy of ``n`` (same coordinates, new
   ID) and all its references to ``n`` are rewritten to the copy.
4. Each copy is tied to ``n`` by two equality constraints on Ux and Uy.
   Rz stays independent, which is what turns the rigid connection into a
   pin.

The preprocessing is a pure function of its input: same tables in, same
nodes, elements and constraints out. Running it again on its own output
adds nothing, since each jointed node is then used by a single element.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from BeamROM.Errors import ModelValidationError, TopologyWarning
from BeamROM.Model.Dof import Component, DofLabel
from BeamROM.Model.Tables import Element, EqualityConstraint, Node, RevoluteJoint

TIED_COMPONENTS = (Component.UX, Component.UY)


class NodeIdAllocator:
    """
    Hands out node IDs that collide with no ID seen so far.

    IDs are issued in increasing order starting above the largest taken ID,
    so the result only depends on the set of IDs the allocator was seeded
    with and on the number of calls.
    """

    def __init__(self, taken: Iterable[int] = ()):
        self._taken = set(int(i) for i in taken)
        self._next = max(self._taken, default=0) + 1

    def reserve(self, node_id: int):
        self._taken.add(int(node_id))
        if node_id >= self._next:
            self._next = int(node_id) + 1

    def allocate(self) -> int:
        while self._next in self._taken:
            self._next += 1
        node_id = self._next
        self._taken.add(node_id)
        self._next += 1
        return node_id

    def __contains__(self, node_id):
        return node_id in self._taken


@dataclass(frozen=True)
class RevoluteResult:
    """
    Output of the revolute preprocessing.

    Attributes
    ----------
    nodes : tuple of Node
        Input nodes followed by the duplicates, in creation order.
    elements : tuple of Element
        Element table with jointed node references rewritten.
    constraints : tuple of EqualityConstraint
        Ux/Uy ties, two per duplicate, concatenated over all joints.
    duplicates : tuple of (int, int)
        (duplicate node ID, original node ID) pairs in creation order.
    skipped_joints : tuple of int
        IDs of joints used by fewer than two elements.
    """
    nodes: Tuple[Node, ...]
    elements: Tuple[Element, ...]
    constraints: Tuple[EqualityConstraint, ...]
    duplicates: Tuple[Tuple[int, int], ...]
    skipped_joints: Tuple[int, ...]

    @property
    def duplicate_map(self) -> Dict[int, int]:
        return dict(self.duplicates)


def find_elements_using_node(elements: Sequence[Element], node_id: int, ends_only: bool = False) -> Tuple[int, ...]:
    """
    Positions (in table order) of the elements referencing ``node_id``.

    With ``ends_only`` an element that only uses the node as its orientation
    reference is not counted.
    """
    if ends_only:
        return tuple(i for i, elem in enumerate(elements) if elem.connects(node_id))
    return tuple(i for i, elem in enumerate(elements) if elem.references(node_id))


def revolute_ties(master_node: int, slave_node: int) -> Tuple[EqualityConstraint, ...]:
    """``slave.Ux = master.Ux`` and ``slave.Uy = master.Uy``."""
    return tuple(
        EqualityConstraint.tie(DofLabel.encode(master_node, comp), DofLabel.encode(slave_node, comp))
        for comp in TIED_COMPONENTS
    )


def process_revolute_joints(nodes: Sequence[Node], elements: Sequence[Element],
                            joints: Sequence[RevoluteJoint], verbose: bool = False) -> RevoluteResult:
    """
    Duplicate jointed nodes and generate the tying constraints.

    Args:
        nodes: Validated node records
        elements: Validated element records
        joints: Revolute joint specifications
        verbose: Print one line per processed joint

    Returns:
        RevoluteResult with the augmented tables and the constraint list.

    Raises:
        ModelValidationError: If a joint names a node absent from ``nodes``.
    """
    nodes = tuple(nodes)
    elements = list(elements)
    node_by_id = {node.id: node for node in nodes}

    allocator = NodeIdAllocator(node_by_id)
    for elem in elements:
        for n in elem.connected_nodes:
            allocator.reserve(n)

    new_nodes = []
    constraints = []
    duplicates = []
    skipped = []

    for joint in joints:
        node_id = joint.node_id
        if node_id not in node_by_id:
            raise ModelValidationError(f"Joint {joint.id}: node {node_id} is not defined")

        users = find_elements_using_node(elements, node_id, ends_only=True)
        if len(users) < 2:
            warnings.warn(
                f"Node {node_id} is an end node of {len(users)} element(s); a revolute joint needs at "
                f"least 2. Joint {joint.id} skipped.",
                TopologyWarning, stacklevel=2)
            skipped.append(joint.id)
            continue

        origin = node_by_id[node_id]
        for position in users[1:]:
            new_id = allocator.allocate()
            new_nodes.append(origin.duplicate(new_id))
            elements[position] = elements[position].replace_node(node_id, new_id)
            duplicates.append((new_id, node_id))
            constraints.extend(revolute_ties(node_id, new_id))

        if verbose:
            print(f"  Revolute joint {joint.id} on node {node_id}: "
                  f"{len(users) - 1} duplicate node(s), {2 * (len(users) - 1)} constraint(s)")

    return RevoluteResult(
        nodes=nodes + tuple(new_nodes),
        elements=tuple(elements),
        constraints=tuple(constraints),
        duplicates=tuple(duplicates),
        skipped_joints=tuple(skipped),
    )
