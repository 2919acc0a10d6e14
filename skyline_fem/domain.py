# skyline_fem/domain.py
"""
DOMAIN: The Assembly Pipeline
=============================

PURPOSE:
--------
A Domain owns one structural model (nodes, element groups, load cases)
and drives it, in a fixed order, to the assembled system K·u = F:

    1. construction       entities loaded (directly, or by reader.read_input)
    2. number_equations   boundary codes -> equation numbers, NEQ
    3. allocate_matrices  force vector, skyline layout (heights, addresses,
                          NWK, MK), zeroed storage
    4. assemble_stiffness every element of every group into skyline storage
    5. assemble_force     one load case into the (reused) force vector

Each stage's postcondition is the next stage's precondition. Running a
stage out of order raises SequencingError; stages 2-4 run exactly once.

USAGE:
------
    domain = Domain.from_file("truss.dat")
    domain.prepare()                   # stages 2-4
    for case in range(1, len(domain.load_cases) + 1):
        F = domain.assemble_force(case)
        ...                            # hand domain.stiffness_matrix and F to a solver
"""

import logging
from enum import IntEnum
from typing import List, Optional

import numpy as np

from .config import CONFIG, AssemblyConfig
from .errors import ModelError, SequencingError
from .kernel.assemble import assemble_loads
from .kernel.dof import number_equations
from .kernel.skyline import SkylineMatrix
from .model import ElementGroup, LoadCase, Node

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    """Pipeline stages, in the order they must run."""
    LOADED = 0
    NUMBERED = 1
    ALLOCATED = 2
    ASSEMBLED = 3


class Domain:
    """
    Owner of a model and its assembled system.

    Parameters:
    -----------
    nodes : List[Node]
        Nodes in node-number order (node n is nodes[n - 1])

    element_groups : List[ElementGroup]
        Element groups; elements reference Node objects from `nodes`

    load_cases : List[LoadCase]
        Load cases in case-number order

    title : str
        Heading of the model

    modex : int
        Solution mode: 0 = data check only, 1 = execution

    config : AssemblyConfig, optional
        Defaults to CONFIG
    """

    def __init__(
        self,
        nodes: List[Node],
        element_groups: Optional[List[ElementGroup]] = None,
        load_cases: Optional[List[LoadCase]] = None,
        title: str = "",
        modex: int = 1,
        config: Optional[AssemblyConfig] = None,
    ):
        self.title = title
        self.modex = modex
        self.config = config if config is not None else CONFIG

        self.nodes = list(nodes)
        self.element_groups = list(element_groups or [])
        self.load_cases = list(load_cases or [])

        self.neq = 0
        self.stiffness_matrix: Optional[SkylineMatrix] = None
        self.force: Optional[np.ndarray] = None
        self.stage = Stage.LOADED

        self._check_node_references()

    @classmethod
    def from_file(cls, path, config: Optional[AssemblyConfig] = None) -> 'Domain':
        """Read a STAP90 input file into a new Domain."""
        from .reader import read_input
        return read_input(path, config=config)

    def __repr__(self):
        return (
            f"Domain(title={self.title!r}, nodes={len(self.nodes)}, "
            f"groups={len(self.element_groups)}, cases={len(self.load_cases)}, "
            f"stage={self.stage.name})"
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def nwk(self) -> int:
        return self.stiffness_matrix.nwk if self.stiffness_matrix is not None else 0

    @property
    def mk(self) -> int:
        return self.stiffness_matrix.mk if self.stiffness_matrix is not None else 0

    @property
    def displacement(self) -> Optional[np.ndarray]:
        """The force vector doubles as displacement storage for an in-place solver."""
        return self.force

    def elements(self):
        """Iterate over every element of every group."""
        for group in self.element_groups:
            yield from group.elements

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _require(self, stage: Stage, action: str):
        if self.stage != stage:
            raise SequencingError(
                f"Cannot {action} at stage {self.stage.name}; requires stage {stage.name}"
            )

    def _check_node_references(self):
        # Elements must point into this domain's node list
        known = {id(node) for node in self.nodes}
        for group_no, group in enumerate(self.element_groups, start=1):
            for element in group.elements:
                for node in element.nodes:
                    if id(node) not in known:
                        raise ModelError(
                            f"Element {element.id} of group {group_no} references node "
                            f"{node.id} that is not in the domain's node list"
                        )

    def number_equations(self) -> int:
        """Stage 2: assign equation numbers. Returns NEQ."""
        self._require(Stage.LOADED, "number equations")
        self.neq = number_equations(self.nodes)
        self.stage = Stage.NUMBERED
        return self.neq

    def allocate_matrices(self) -> SkylineMatrix:
        """
        Stage 3: allocate the force vector and size the skyline storage.

        Column heights are reduced over every element of every group,
        then turned into diagonal addresses and a zeroed buffer of NWK
        entries.
        """
        self._require(Stage.NUMBERED, "allocate matrices")

        self.force = np.zeros(self.neq, dtype=float)
        sky = SkylineMatrix(self.neq)
        for element in self.elements():
            element.update_column_heights(sky)
        sky.compute_diagonal_address()
        sky.allocate()
        self.stiffness_matrix = sky

        logger.info(
            "Total system data: NEQ=%d NWK=%d MK=%d", sky.neq, sky.nwk, sky.mk
        )
        if self.config.log_layout:
            logger.info("Column heights: %s", sky.column_heights.tolist())
            logger.info("Diagonal addresses: %s", sky.diagonal_address.tolist())

        self.stage = Stage.ALLOCATED
        return sky

    def assemble_stiffness(self) -> SkylineMatrix:
        """Stage 4: scatter every element's stiffness into skyline storage."""
        self._require(Stage.ALLOCATED, "assemble stiffness")
        # A previous attempt may have failed part way through
        self.stiffness_matrix.values[:] = 0.0

        count = 0
        for element in self.elements():
            element.assemble(self.stiffness_matrix)
            count += 1

        logger.info("Assembled %d elements into %d stored entries", count, self.nwk)
        self.stage = Stage.ASSEMBLED
        return self.stiffness_matrix

    def prepare(self) -> SkylineMatrix:
        """Run stages 2-4: numbering, allocation, stiffness assembly."""
        self.number_equations()
        self.allocate_matrices()
        return self.assemble_stiffness()

    def assemble_force(self, load_case: int) -> np.ndarray:
        """
        Stage 5: assemble load case `load_case` (1-based) into the force vector.

        The vector is zeroed first, so repeated calls for the same case
        give the same result. Callable after stiffness assembly, any number
        of times.

        Raises:
        -------
        ModelError
            If the case number is out of range, or a load is invalid
            (see kernel.assemble.assemble_loads)
        """
        self._require(Stage.ASSEMBLED, "assemble force")
        if not 1 <= load_case <= len(self.load_cases):
            raise ModelError(
                f"Load case {load_case} out of range (1..{len(self.load_cases)})"
            )

        case = self.load_cases[load_case - 1]
        assemble_loads(self.force, self.nodes, case, policy=self.config.constrained_load_policy)
        logger.debug("Assembled load case %d (%d loads)", case.id, len(case))
        return self.force
