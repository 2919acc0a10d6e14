# skyline_fem/kernel/assemble.py
"""
ASSEMBLY: Scatter-Add into Skyline Storage and Force Vector
===========================================================

PURPOSE:
--------
This module adds element contributions into the global system:

- Stiffness: each element's dense ke is scattered into the skyline buffer
- Loads: each concentrated load is scattered into the force vector

The key insight: assembly doesn't care about element TYPE.
It just needs, per element:
- The location matrix (global equation of each local DOF, 0 = constrained)
- The element stiffness matrix in global coordinates

ALGORITHM (stiffness):
----------------------
    for each element:
        for each local pair (a, b) with a >= b:      # lower triangle only
            r = location[a]
            c = location[b]
            if r and c:                              # skip constrained DOFs
                K[offset(r, c)] += ke[a, b]

Symmetry means the skyline stores (r, c) and (c, r) in one slot, so only
one triangle of ke is visited.

USAGE:
------
    sky = compute_layout(locations, neq)
    assemble_stiffness(sky, [(element.location_matrix(), element.stiffness())
                             for element in elements])
    F = np.zeros(neq)
    assemble_loads(F, nodes, load_case)
"""

import logging
from typing import Iterable, Sequence, Tuple

import numpy as np

from ..errors import ElementContractError, ModelError
from ..model import LoadCase, Node
from .dof import EquationMap
from .skyline import SkylineMatrix

logger = logging.getLogger(__name__)


def assemble_element(
    sky: SkylineMatrix,
    location: Sequence[int],
    ke: np.ndarray
) -> None:
    """
    Scatter-add one element stiffness matrix into skyline storage.

    Parameters:
    -----------
    sky : SkylineMatrix
        Allocated skyline matrix (modified in place)

    location : Sequence[int]
        Equation number of each local DOF (0 = constrained or unused)

    ke : np.ndarray
        Dense symmetric element stiffness, shape (len(location), len(location))

    Raises:
    -------
    ElementContractError
        If ke does not match the location matrix
    """
    n = len(location)
    ke = np.asarray(ke, dtype=float)
    if ke.shape != (n, n):
        raise ElementContractError(
            f"Element ke shape {ke.shape} doesn't match location matrix length {n}"
        )

    for a in range(n):
        r = location[a]
        if not r:
            continue
        for b in range(a + 1):
            c = location[b]
            if not c:
                continue
            sky.add(r, c, ke[a, b])


def assemble_stiffness(
    sky: SkylineMatrix,
    contributions: Iterable[Tuple[Sequence[int], np.ndarray]]
) -> int:
    """
    Assemble every (location, ke) contribution into skyline storage.

    Returns the number of contributions assembled.
    """
    count = 0
    for location, ke in contributions:
        assemble_element(sky, location, ke)
        count += 1
    return count


def assemble_loads(
    F: np.ndarray,
    nodes: Sequence[Node],
    load_case: LoadCase,
    policy: str = 'reject'
) -> np.ndarray:
    """
    Zero F and scatter-add the concentrated loads of one load case.

    F is reused between load cases: nothing from a previous call survives.
    Loads on the same DOF accumulate.

    Parameters:
    -----------
    F : np.ndarray
        Global force vector, shape (NEQ,) (modified in place)

    nodes : Sequence[Node]
        Numbered nodes

    load_case : LoadCase
        Loads given as (1-based node, 1-based dof, magnitude)

    policy : str
        'reject' -> a load on a constrained DOF raises ModelError
        'ignore' -> such a load is dropped with a warning

    Returns:
    --------
    np.ndarray
        F, for chaining

    Raises:
    -------
    ModelError
        Node or DOF out of range, or constrained DOF under 'reject'
    """
    eqs = EquationMap(nodes)
    # Resolve every load first so a rejected case leaves F untouched
    resolved = [(load, eqs.idx(load.node, load.dof)) for load in load_case.loads]
    if policy == 'reject':
        for load, eq in resolved:
            if eq == 0:
                raise ModelError(
                    f"Load case {load_case.id}: load {load.magnitude:g} on node "
                    f"{load.node} DOF {load.dof} acts on a constrained DOF"
                )

    F[:] = 0.0
    for load, eq in resolved:
        if eq == 0:
            logger.warning(
                "Load case %d: ignoring load %g on constrained node %d DOF %d",
                load_case.id, load.magnitude, load.node, load.dof
            )
            continue
        F[eq - 1] += load.magnitude

    return F
