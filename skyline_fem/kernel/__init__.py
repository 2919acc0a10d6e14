# skyline_fem/kernel - Equation numbering, skyline layout and assembly
"""
KERNEL: THE ELEMENT-AGNOSTIC CORE
=================================

Everything here works for ANY element type. The kernel only needs:
- Numbered nodes (boundary codes rewritten to equation numbers)
- Per element: a location matrix and a dense stiffness matrix
- Concentrated loads as (node, dof, magnitude)

The pipeline, in order:

    number_equations  ->  SkylineMatrix layout  ->  assemble_stiffness
                                                ->  assemble_loads (per case)
"""

from .dof import EquationMap, element_location, number_equations
from .skyline import SkylineMatrix, compute_layout
from .assemble import assemble_element, assemble_loads, assemble_stiffness

__all__ = [
    'EquationMap', 'element_location', 'number_equations',
    'SkylineMatrix', 'compute_layout',
    'assemble_element', 'assemble_loads', 'assemble_stiffness',
]
