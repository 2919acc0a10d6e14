# skyline_fem/elements.py
"""
ELEMENTS: The Element Contract, Bar Element, and Type Registry
==============================================================

PURPOSE:
--------
The kernel treats every element as a black box that can answer three
questions:

    location_matrix()   which global equations do my local DOFs map to?
    stiffness()         what is my dense, symmetric stiffness matrix?
    dof_count           how big is that matrix?

From those, the base class provides the two pipeline operations every
element takes part in: widening the skyline (update_column_heights) and
scattering its stiffness (assemble).

ELEMENT TYPES:
--------------
Element groups in the input data name their type by an integer code.
Each concrete class registers itself under its code:

    @register_element(1)
    class Bar(Element): ...

    element_class(1)    # -> Bar
    element_class(7)    # -> ModelError: not implemented

Each element class also names the material class its group uses.

THE BAR ELEMENT (type 1):
-------------------------
A 3D two-node axial bar. In local coordinates (x' along the bar):

    k_local = (EA/L) × [ 1  -1 ]
                       [-1   1 ]

Transformed by the direction cosines (l, m, n) to global coordinates:

    ke = (EA/L) × [  B  -B ]        B = [ l²  lm  ln ]
                  [ -B   B ]            [ lm  m²  mn ]
                                        [ ln  mn  n² ]

DOF order: [ux_i, uy_i, uz_i, ux_j, uy_j, uz_j]
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .errors import ElementContractError, ModelError
from .kernel.assemble import assemble_element
from .kernel.dof import element_location
from .kernel.skyline import SkylineMatrix
from .model import NDF, Node


# Registered element classes, keyed by type code
ELEMENT_TYPES: Dict[int, type] = {}


def register_element(type_code: int):
    """Class decorator registering an Element subclass under type_code."""
    def decorator(cls):
        if type_code in ELEMENT_TYPES:
            raise ValueError(
                f"Element type {type_code} already registered to {ELEMENT_TYPES[type_code].__name__}"
            )
        cls.type_code = type_code
        ELEMENT_TYPES[type_code] = cls
        return cls
    return decorator


def element_class(type_code: int) -> type:
    """Look up the element class for a type code."""
    try:
        return ELEMENT_TYPES[type_code]
    except KeyError:
        raise ModelError(f"Element type {type_code} has not been implemented") from None


class Element(ABC):
    """
    Base class for all element types.

    Subclasses set node_count, dof_count and material_class, register
    themselves with @register_element, and implement stiffness().
    Elements hold references to shared Node objects; they never own them.
    """
    type_code: int = 0
    node_count: int = 0
    dof_count: int = 0
    material_class: type = None

    # Fields in one input record (see reader.py)
    n_fields: int = 0

    def __init__(self, id: int, nodes: Sequence[Node], material):
        if len(nodes) != self.node_count:
            raise ModelError(
                f"{type(self).__name__} {id} needs {self.node_count} nodes, got {len(nodes)}"
            )
        self.id = id
        self.nodes = list(nodes)
        self.material = material

    def __repr__(self):
        node_ids = ', '.join(str(n.id) for n in self.nodes)
        return f"{type(self).__name__}(id={self.id}, nodes=[{node_ids}])"

    def location_matrix(self) -> List[int]:
        """Equation number of each local DOF (0 = constrained)."""
        location = element_location(self.nodes)
        if len(location) != self.dof_count:
            raise ElementContractError(
                f"{type(self).__name__} {self.id}: location matrix has {len(location)} "
                f"entries, expected {self.dof_count}"
            )
        return location

    @abstractmethod
    def stiffness(self) -> np.ndarray:
        """Dense symmetric stiffness, shape (dof_count, dof_count)."""

    def update_column_heights(self, sky: SkylineMatrix) -> None:
        """Widen the skyline for this element's couplings."""
        sky.update_column_heights(self.location_matrix())

    def assemble(self, sky: SkylineMatrix) -> None:
        """Scatter-add this element's stiffness into skyline storage."""
        ke = self.stiffness()
        if ke.shape != (self.dof_count, self.dof_count):
            raise ElementContractError(
                f"{type(self).__name__} {self.id}: stiffness shape {ke.shape}, "
                f"expected ({self.dof_count}, {self.dof_count})"
            )
        assemble_element(sky, self.location_matrix(), ke)

    @classmethod
    def from_record(cls, fields: Sequence[str], nodes: Sequence[Node], materials: Sequence):
        """Build an element from one input record (type-specific)."""
        raise NotImplementedError(f"{cls.__name__} cannot be read from input data")


@dataclass(frozen=True)
class BarMaterial:
    """
    Material/section set of a bar element group.

    Parameters:
    -----------
    id : int
        1-based set number

    E : float
        Young's modulus

    area : float
        Cross-sectional area
    """
    id: int
    E: float
    area: float

    n_fields = 3

    @classmethod
    def from_record(cls, fields: Sequence[str]) -> 'BarMaterial':
        """SET E AREA"""
        return cls(id=int(fields[0]), E=float(fields[1]), area=float(fields[2]))


def element_geometry_3d(ni: Node, nj: Node) -> Tuple[float, float, float, float]:
    """
    Length and direction cosines (L, l, m, n) of the line ni -> nj.

    Raises:
    -------
    ModelError
        If both nodes are at the same location
    """
    dx = nj.x - ni.x
    dy = nj.y - ni.y
    dz = nj.z - ni.z

    L = float(np.sqrt(dx*dx + dy*dy + dz*dz))
    if L <= 0.0:
        raise ModelError(
            f"Zero-length element between nodes {ni.id} and {nj.id} "
            f"at ({ni.x}, {ni.y}, {ni.z})"
        )
    return L, dx / L, dy / L, dz / L


@register_element(1)
class Bar(Element):
    """
    3D two-node axial bar (truss) element.

    Carries only axial force; 6 DOFs (3 translations at each node).
    """
    node_count = 2
    dof_count = 2 * NDF
    material_class = BarMaterial
    n_fields = 4

    def length(self) -> float:
        return element_geometry_3d(self.nodes[0], self.nodes[1])[0]

    def stiffness(self) -> np.ndarray:
        L, l, m, n = element_geometry_3d(self.nodes[0], self.nodes[1])
        EA_L = self.material.E * self.material.area / L

        # Outer product of the direction cosines
        c = np.array([l, m, n], dtype=float)
        B = np.outer(c, c)

        ke = np.zeros((6, 6), dtype=float)
        ke[0:3, 0:3] = B
        ke[0:3, 3:6] = -B
        ke[3:6, 0:3] = -B
        ke[3:6, 3:6] = B
        return EA_L * ke

    def axial_force(self, d: np.ndarray) -> float:
        """
        Axial force from the global displacement vector d (length NEQ).

        Positive = tension. Constrained DOFs contribute zero displacement.
        """
        L, l, m, n = element_geometry_3d(self.nodes[0], self.nodes[1])
        u = np.array([d[eq - 1] if eq else 0.0 for eq in self.location_matrix()])
        delta = u[3:6] - u[0:3]
        return self.material.E * self.material.area / L * float(np.dot([l, m, n], delta))

    @classmethod
    def from_record(cls, fields: Sequence[str], nodes: Sequence[Node], materials: Sequence) -> 'Bar':
        """N NODE_I NODE_J MSET (all 1-based)"""
        id, i, j, mset = (int(f) for f in fields[:4])
        for node_id in (i, j):
            if not 1 <= node_id <= len(nodes):
                raise ModelError(f"Bar {id}: node {node_id} out of range (1..{len(nodes)})")
        if not 1 <= mset <= len(materials):
            raise ModelError(f"Bar {id}: material set {mset} out of range (1..{len(materials)})")
        bar = cls(id, [nodes[i - 1], nodes[j - 1]], materials[mset - 1])
        bar.length()
        return bar
