# skyline_fem - Skyline stiffness assembly for finite element models
"""
SKYLINE_FEM: Global System Assembly in Skyline Storage
======================================================

This package turns a discretized structural model into the linear system
K·u = F that a solver consumes:

- Equation numbering from per-node boundary codes
- Minimum-footprint skyline layout from element connectivity
- Scatter-add assembly of element stiffness and concentrated loads

ARCHITECTURE:
-------------
    kernel/         Element-agnostic core (numbering, skyline, assembly)
    model.py        Node, Load, LoadCase, ElementGroup
    elements.py     Element contract, Bar element, type registry
    domain.py       Staged pipeline owning one model
    reader.py       STAP90 input deck reader
    cli.py          Command-line driver
    config.py       AssemblyConfig and logging setup
    errors.py       Exception taxonomy
"""

from .config import CONFIG, AssemblyConfig
from .domain import Domain, Stage
from .elements import Bar, BarMaterial, Element, element_class, register_element
from .errors import ElementContractError, ModelError, SequencingError, SkylineFemError
from .kernel import SkylineMatrix, number_equations
from .model import ElementGroup, Load, LoadCase, Node
from .reader import read_input

__version__ = "0.1.0"
