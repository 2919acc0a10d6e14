# tests/test_assembly.py
"""
STIFFNESS ASSEMBLY: Skyline Scatter-Add vs. Dense Reference
===========================================================

The skyline matrix must hold exactly what a naive dense assembly
produces, restricted to the free DOFs:

    K_dense[r-1, c-1] += ke[a, b]   for every local pair with r, c != 0

If reconstructing the dense matrix from skyline storage matches that
reference, both the layout and the addressing are right.
"""

import numpy as np
import pytest

from skyline_fem.elements import Bar, BarMaterial, Element
from skyline_fem.errors import ElementContractError
from skyline_fem.kernel.assemble import assemble_element, assemble_stiffness
from skyline_fem.kernel.dof import number_equations
from skyline_fem.kernel.skyline import SkylineMatrix, compute_layout
from skyline_fem.model import Node


E = 210e9
A = 0.001


def make_bar_chain(fixed_first: bool = True):
    """
    Three nodes, two bars: 1 -- 2 -- 3.
    Node 1 fully fixed; nodes 2 and 3 free in every direction.
    """
    nodes = [
        Node(1, 0.0, 0.0, 0.0, bcode=[1, 1, 1] if fixed_first else [0, 0, 0]),
        Node(2, 1.0, 0.0, 0.0, bcode=[0, 0, 0]),
        Node(3, 2.0, 0.5, 0.0, bcode=[0, 0, 0]),
    ]
    material = BarMaterial(1, E=E, area=A)
    bars = [
        Bar(1, [nodes[0], nodes[1]], material),
        Bar(2, [nodes[1], nodes[2]], material),
    ]
    return nodes, bars


def make_space_truss():
    """
    A small space truss with partial supports and irregular connectivity.
    """
    coords = [
        (0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (2.0, 2.0, 0.0),
        (0.0, 2.0, 0.0), (1.0, 1.0, 1.5), (3.0, 1.0, 1.0),
    ]
    bcodes = [[1, 1, 1], [0, 1, 1], [0, 0, 1], [1, 0, 1], [0, 0, 0], [0, 0, 0]]
    nodes = [Node(i + 1, *xyz, bcode=list(bc)) for i, (xyz, bc) in enumerate(zip(coords, bcodes))]

    materials = [BarMaterial(1, E=E, area=A), BarMaterial(2, E=70e9, area=0.002)]
    connectivity = [(1, 2), (2, 3), (3, 4), (4, 1), (1, 5), (2, 5), (3, 5), (4, 5), (2, 6), (3, 6), (5, 6)]
    bars = [
        Bar(k + 1, [nodes[i - 1], nodes[j - 1]], materials[k % 2])
        for k, (i, j) in enumerate(connectivity)
    ]
    return nodes, bars


def dense_reference(neq: int, elements) -> np.ndarray:
    """Naive dense scatter-add over all local pairs."""
    K = np.zeros((neq, neq), dtype=float)
    for element in elements:
        location = element.location_matrix()
        ke = element.stiffness()
        for a, r in enumerate(location):
            for b, c in enumerate(location):
                if r and c:
                    K[r - 1, c - 1] += ke[a, b]
    return K


def assemble_skyline(neq: int, elements) -> SkylineMatrix:
    sky = compute_layout([e.location_matrix() for e in elements], neq)
    assemble_stiffness(sky, [(e.location_matrix(), e.stiffness()) for e in elements])
    return sky


class TestDenseReference:

    def test_bar_chain_matches_dense(self):
        """
        3-node, 2-element bar chain with one fixed end.
        """
        nodes, bars = make_bar_chain()
        neq = number_equations(nodes)
        assert neq == 6

        sky = assemble_skyline(neq, bars)
        np.testing.assert_allclose(sky.to_dense(), dense_reference(neq, bars), rtol=1e-12, atol=1e-6)

    def test_space_truss_matches_dense(self):
        nodes, bars = make_space_truss()
        neq = number_equations(nodes)

        sky = assemble_skyline(neq, bars)
        np.testing.assert_allclose(sky.to_dense(), dense_reference(neq, bars), rtol=1e-12, atol=1e-6)

    def test_diagonal_and_off_diagonal_offsets(self):
        """
        Entry (r, c) lives at diagonal_address[max-1] + (max - min).
        """
        nodes, bars = make_bar_chain()
        neq = number_equations(nodes)
        sky = assemble_skyline(neq, bars)
        K = dense_reference(neq, bars)

        for c in range(1, neq + 1):
            assert sky.values[sky.diagonal_address[c - 1] - 1] == pytest.approx(K[c - 1, c - 1])
            for r in range(1, c):
                if sky.in_skyline(r, c):
                    address = sky.diagonal_address[c - 1] + (c - r)
                    assert sky.values[address - 1] == pytest.approx(K[r - 1, c - 1], abs=1e-6)
                else:
                    assert K[r - 1, c - 1] == 0.0

    def test_unconstrained_chain_is_singular_but_symmetric(self):
        nodes, bars = make_bar_chain(fixed_first=False)
        neq = number_equations(nodes)
        K = assemble_skyline(neq, bars).to_dense()

        np.testing.assert_allclose(K, K.T, rtol=1e-12)
        # Free-floating truss: rigid-body modes make K singular
        assert np.linalg.matrix_rank(K) < neq


class TestOrderIndependence:

    def test_any_element_permutation_gives_same_storage(self):
        nodes, bars = make_space_truss()
        neq = number_equations(nodes)
        reference = assemble_skyline(neq, bars)

        rng = np.random.default_rng(42)
        for _ in range(8):
            order = rng.permutation(len(bars))
            sky = assemble_skyline(neq, [bars[k] for k in order])
            np.testing.assert_array_equal(sky.diagonal_address, reference.diagonal_address)
            np.testing.assert_allclose(sky.values, reference.values, rtol=1e-12, atol=1e-6)

    def test_element_assemble_method_matches_kernel(self):
        nodes, bars = make_space_truss()
        neq = number_equations(nodes)
        reference = assemble_skyline(neq, bars)

        sky = SkylineMatrix(neq)
        for bar in bars:
            bar.update_column_heights(sky)
        sky.compute_diagonal_address()
        sky.allocate()
        for bar in reversed(bars):
            bar.assemble(sky)

        np.testing.assert_allclose(sky.values, reference.values, rtol=1e-12, atol=1e-6)


class TestContract:

    def test_wrong_ke_shape(self):
        sky = compute_layout([[1, 2]], 2)
        with pytest.raises(ElementContractError):
            assemble_element(sky, [1, 2], np.eye(3))

    def test_element_returning_wrong_size(self):
        class BrokenBar(Bar):
            def stiffness(self):
                return np.eye(4)

        nodes, _ = make_bar_chain()
        number_equations(nodes)
        broken = BrokenBar(1, nodes[:2], BarMaterial(1, E=E, area=A))
        sky = compute_layout([broken.location_matrix()], 6)

        with pytest.raises(ElementContractError):
            broken.assemble(sky)

    def test_constrained_dofs_are_skipped(self):
        sky = compute_layout([[0, 1, 0, 2]], 2)
        ke = np.arange(16, dtype=float).reshape(4, 4)
        ke = ke + ke.T
        assemble_element(sky, [0, 1, 0, 2], ke)

        np.testing.assert_allclose(sky.to_dense(), [[ke[1, 1], ke[3, 1]], [ke[3, 1], ke[3, 3]]])

    def test_element_must_be_subclassed(self):
        with pytest.raises(TypeError):
            Element(1, [], None)
