# skyline_fem/kernel/skyline.py
"""
SKYLINE MATRIX: Variable-Bandwidth Storage for Symmetric Stiffness
==================================================================

PURPOSE:
--------
An assembled stiffness matrix is symmetric and, column by column, its
nonzeros sit in one contiguous band ending at the diagonal. Skyline
storage keeps exactly that band for each column and nothing else:

        col:  1   2   3   4   5
            [ x   x   .   .   . ]        column heights H = [0, 1, 2, 1, 2]
            [     x   x   x   . ]
            [         x   x   x ]        stored per column, diagonal first,
            [  sym        x   x ]        then upward to the skyline
            [                 x ]

DIAGONAL ADDRESSES (1-based):
-----------------------------
    M[0] = 1
    M[k+1] = M[k] + H[k] + 1
    NWK = M[NEQ] - M[0]              (total stored entries)

Column j (1-based) occupies addresses M[j-1] .. M[j] - 1. Its diagonal is
at M[j-1]; the entry d rows above the diagonal is at M[j-1] + d. For a
pair of equations (r, c), with j = max(r, c) and i = min(r, c):

    offset(r, c) = M[j-1] + (j - i)          valid when j - i <= H[j-1]

LIFECYCLE:
----------
    sky = SkylineMatrix(neq)
    for element in elements:
        sky.update_column_heights(element.location_matrix())
    sky.compute_diagonal_address()     # freezes the layout
    sky.allocate()                     # zeroed value buffer of length NWK
    sky.add(r, c, value)               # scatter-add during assembly
"""

import logging
from typing import Iterable, Sequence

import numpy as np

from ..errors import ElementContractError, SequencingError

logger = logging.getLogger(__name__)


class SkylineMatrix:
    """
    Symmetric matrix in skyline (column-wise variable band) storage.

    Attributes:
    -----------
    neq : int
        Number of equations (matrix order)

    column_heights : np.ndarray
        H[k] for 0-based column k: rows stored above the diagonal

    diagonal_address : np.ndarray or None
        NEQ + 1 one-based addresses; None until compute_diagonal_address()

    values : np.ndarray or None
        Stored entries (length NWK); None until allocate()

    nwk : int
        Number of stored entries

    mk : int
        Maximum half bandwidth, max(H) + 1 (0 for an empty system)
    """

    def __init__(self, neq: int):
        if neq < 0:
            raise ValueError(f"Number of equations must be >= 0, got {neq}")
        self.neq = int(neq)
        self.column_heights = np.zeros(self.neq, dtype=np.int64)
        self.diagonal_address = None
        self.values = None
        self.nwk = 0
        self.mk = 0

    def __repr__(self):
        return f"SkylineMatrix(neq={self.neq}, nwk={self.nwk}, mk={self.mk})"

    @property
    def is_allocated(self) -> bool:
        return self.values is not None

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def update_column_heights(self, location: Sequence[int]) -> None:
        """
        Widen the skyline for one element's location matrix.

        Every DOF of an element couples to every other, so each equation e
        of the element reaches up to the smallest equation m of the same
        element: H[e-1] = max(H[e-1], e - m). Zeros (constrained DOFs) are
        skipped; a negative equation or one above NEQ is an
        ElementContractError. The update is a max-reduction, so element
        order is irrelevant.
        """
        if self.diagonal_address is not None:
            raise SequencingError("Column heights are frozen once diagonal addresses exist")

        eqs = np.asarray(location, dtype=np.int64)
        bad = eqs[(eqs < 0) | (eqs > self.neq)]
        if bad.size:
            raise ElementContractError(
                f"Equation number {int(bad[0])} in location matrix {eqs.tolist()} "
                f"is outside 0..{self.neq}"
            )
        eqs = eqs[eqs > 0]
        if eqs.size == 0:
            return

        m = eqs.min()
        np.maximum.at(self.column_heights, eqs - 1, eqs - m)

    def compute_diagonal_address(self) -> np.ndarray:
        """
        Prefix-sum the column heights into 1-based diagonal addresses.

        Also sets nwk and mk. Returns the address array.
        """
        H = self.column_heights
        address = np.empty(self.neq + 1, dtype=np.int64)
        address[0] = 1
        address[1:] = 1 + np.cumsum(H + 1)

        self.diagonal_address = address
        self.nwk = int(address[self.neq] - address[0])
        # Guard the empty system: there is no H[0] to look at
        self.mk = int(H.max()) + 1 if self.neq > 0 else 0

        logger.debug("Skyline layout: NEQ=%d NWK=%d MK=%d", self.neq, self.nwk, self.mk)
        return address

    def allocate(self) -> None:
        """Allocate the zeroed value buffer (length NWK)."""
        if self.diagonal_address is None:
            raise SequencingError("Diagonal addresses must be computed before allocation")
        self.values = np.zeros(self.nwk, dtype=float)

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def offset(self, r: int, c: int) -> int:
        """
        1-based storage address of entry (r, c), r and c 1-based equations.

        Symmetric: offset(r, c) == offset(c, r).

        Raises:
        -------
        SequencingError
            If the layout has not been computed
        IndexError
            If an equation is out of range or (r, c) lies above the skyline
        """
        if self.diagonal_address is None:
            raise SequencingError("Diagonal addresses must be computed before addressing")
        if not (1 <= r <= self.neq and 1 <= c <= self.neq):
            raise IndexError(f"Entry ({r}, {c}) out of range for NEQ={self.neq}")

        j, i = (r, c) if r >= c else (c, r)
        if j - i > self.column_heights[j - 1]:
            raise IndexError(f"Entry ({r}, {c}) lies outside the skyline of column {j}")
        return int(self.diagonal_address[j - 1] + (j - i))

    def in_skyline(self, r: int, c: int) -> bool:
        j, i = (r, c) if r >= c else (c, r)
        return j - i <= self.column_heights[j - 1]

    def _require_storage(self):
        if not self.is_allocated:
            raise SequencingError("Skyline storage has not been allocated")

    def add(self, r: int, c: int, value: float) -> None:
        """Accumulate value into entry (r, c) (and, by symmetry, (c, r))."""
        self._require_storage()
        self.values[self.offset(r, c) - 1] += value

    def __getitem__(self, key):
        """K[r, c] with 1-based equations; zero outside the skyline."""
        self._require_storage()
        r, c = key
        if not (1 <= r <= self.neq and 1 <= c <= self.neq):
            raise IndexError(f"Entry ({r}, {c}) out of range for NEQ={self.neq}")
        if not self.in_skyline(r, c):
            return 0.0
        return float(self.values[self.offset(r, c) - 1])

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def diagonal(self) -> np.ndarray:
        """Diagonal entries, shape (NEQ,)."""
        self._require_storage()
        return self.values[self.diagonal_address[:-1] - 1].copy()

    def to_dense(self) -> np.ndarray:
        """
        Expand to a full symmetric (NEQ × NEQ) array.

        Intended for inspection and small models only.
        """
        self._require_storage()
        K = np.zeros((self.neq, self.neq), dtype=float)
        for col in range(self.neq):
            start = self.diagonal_address[col] - 1
            height = self.column_heights[col]
            for d in range(height + 1):
                row = col - d
                K[row, col] = self.values[start + d]
                K[col, row] = self.values[start + d]
        return K


def compute_layout(locations: Iterable[Sequence[int]], neq: int) -> SkylineMatrix:
    """
    Build a skyline layout from location matrices and allocate its storage.

    Parameters:
    -----------
    locations : Iterable[Sequence[int]]
        One location matrix (equation numbers, 0 = constrained) per element

    neq : int
        Number of equations

    Returns:
    --------
    SkylineMatrix
        Allocated, zero-filled, ready for assembly
    """
    sky = SkylineMatrix(neq)
    for location in locations:
        sky.update_column_heights(location)
    sky.compute_diagonal_address()
    sky.allocate()
    return sky
