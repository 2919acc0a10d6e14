# skyline_fem/model.py
"""
MODEL DEFINITIONS: Node, Load, LoadCase, ElementGroup
=====================================================

PURPOSE:
--------
Plain data holders for a discretized structural model. Everything the
assembly pipeline needs to know about the structure lives here, except
the element types themselves (see elements.py).

BOUNDARY CODES:
---------------
Each node carries one code per degree of freedom (ux, uy, uz):

    before numbering:  non-zero = constrained, 0 = free
    after numbering:   equation number (1..NEQ) for a free DOF, 0 if constrained

The numbering pass (kernel/dof.py) rewrites the codes in place, exactly once.

NUMBERING CONVENTION:
---------------------
Node, load-case and material-set ids are 1-based, as they appear in the
input data. Python containers holding them are 0-based, so node `n` is
`nodes[n - 1]`.
"""

from dataclasses import dataclass, field
from typing import List

# Degrees of freedom per node (ux, uy, uz)
NDF = 3


@dataclass
class Node:
    """
    A nodal point with coordinates and per-DOF boundary codes.

    Parameters:
    -----------
    id : int
        1-based node number

    x, y, z : float
        Coordinates in the global system

    bcode : List[int]
        NDF boundary codes (see module docstring)

    Examples:
    ---------
    >>> Node(1, 0.0, 0.0, 0.0, bcode=[1, 1, 1])   # fully fixed
    >>> Node(2, 1.0, 0.0, 0.0, bcode=[0, 1, 1])   # free along x only
    """
    id: int
    x: float
    y: float
    z: float
    bcode: List[int] = field(default_factory=lambda: [0] * NDF)

    @property
    def xyz(self):
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Load:
    """A concentrated load: magnitude applied at (1-based) node and DOF."""
    node: int
    dof: int
    magnitude: float


@dataclass
class LoadCase:
    """One independent set of concentrated loads."""
    id: int
    loads: List[Load] = field(default_factory=list)

    def __len__(self):
        return len(self.loads)


@dataclass
class ElementGroup:
    """
    Elements sharing one element type and one list of material sets.

    element_type is the integer type code used by the input format
    (see elements.ELEMENT_TYPES).
    """
    element_type: int
    materials: list = field(default_factory=list)
    elements: list = field(default_factory=list)

    def __len__(self):
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)
