# skyline_fem/kernel/dof.py
"""
EQUATION NUMBERING: Boundary Codes to Global Equation Numbers
=============================================================

PURPOSE:
--------
This module turns the per-node boundary codes into global equation
numbers. Only FREE degrees of freedom get an equation; constrained ones
are eliminated from the system before it is ever assembled.

    node 1: bcode [1, 1, 1]   ->  [0, 0, 0]      (fully fixed)
    node 2: bcode [0, 1, 1]   ->  [1, 0, 0]      (free in x)
    node 3: bcode [0, 0, 1]   ->  [2, 3, 0]      (free in x, y)

                                   NEQ = 3

Numbering is node-major, DOF-minor, in node order. That is what keeps
the skyline narrow for meshes whose node numbering follows the geometry.

USAGE:
------
    neq = number_equations(nodes)          # rewrites node.bcode in place
    eqs = EquationMap(nodes)
    eqs.idx(node_id=3, local_dof=2)        # -> 3
    element_location([n2, n3])             # -> [1, 0, 0, 2, 3, 0]
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import ModelError
from ..model import NDF, Node

logger = logging.getLogger(__name__)


def number_equations(nodes: Sequence[Node]) -> int:
    """
    Assign equation numbers to every free DOF, in place.

    Parameters:
    -----------
    nodes : Sequence[Node]
        Nodes in node-number order, with boundary codes still holding
        constraint flags (non-zero = constrained)

    Returns:
    --------
    int
        NEQ, the number of equations in the global system

    Raises:
    -------
    ModelError
        If a node does not carry exactly NDF boundary codes
    """
    neq = 0
    for node in nodes:
        if len(node.bcode) != NDF:
            raise ModelError(
                f"Node {node.id} has {len(node.bcode)} boundary codes, expected {NDF}"
            )
        for dof in range(NDF):
            if node.bcode[dof]:
                node.bcode[dof] = 0
            else:
                neq += 1
                node.bcode[dof] = neq

    logger.info("Numbered %d equations over %d nodes", neq, len(nodes))
    return neq


def free_dofs(nodes: Sequence[Node]) -> List[Tuple[int, int, int]]:
    """
    List (node_id, dof, equation) for every free DOF of numbered nodes.

    dof is 1-based, like the node id.
    """
    result = []
    for node in nodes:
        for dof, eq in enumerate(node.bcode, start=1):
            if eq:
                result.append((node.id, dof, eq))
    return result


@dataclass
class EquationMap:
    """
    Lookup of equation numbers for numbered nodes.

    All ids are 1-based, the way they appear in the model data.
    An equation number of 0 means the DOF is constrained.
    """
    nodes: Sequence[Node]

    def idx(self, node_id: int, local_dof: int) -> int:
        """
        Equation number of DOF local_dof (1..NDF) at node node_id (1..NUMNP).

        Raises:
        -------
        ModelError
            If the node or DOF is out of range
        """
        if not 1 <= node_id <= len(self.nodes):
            raise ModelError(
                f"Node {node_id} out of range (model has {len(self.nodes)} nodes)"
            )
        if not 1 <= local_dof <= NDF:
            raise ModelError(f"DOF {local_dof} out of range (1..{NDF})")
        return self.nodes[node_id - 1].bcode[local_dof - 1]

    def node_dofs(self, node_id: int) -> List[int]:
        """All NDF equation numbers of one node."""
        return [self.idx(node_id, dof) for dof in range(1, NDF + 1)]


def element_location(element_nodes: Sequence[Node]) -> List[int]:
    """
    Location matrix of an element: equation numbers of its DOFs, node by node.

    >>> element_location([n2, n3])
    [1, 0, 0, 2, 3, 0]
    """
    result = []
    for node in element_nodes:
        result.extend(node.bcode)
    return result
