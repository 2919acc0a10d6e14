# tests/test_skyline.py
"""
Skyline layout: column heights, diagonal addresses, addressing.
"""

import numpy as np
import pytest

from skyline_fem.errors import ElementContractError, SequencingError
from skyline_fem.kernel.skyline import SkylineMatrix, compute_layout


class TestColumnHeights:

    def test_single_element_couples_up_to_its_lowest_equation(self):
        """
        One element mapping to equations {3, 5}: column 5 reaches up to row 3.
        """
        sky = SkylineMatrix(5)
        sky.update_column_heights([3, 0, 5])

        assert sky.column_heights[4] == 2
        assert sky.column_heights[2] == 0
        np.testing.assert_array_equal(sky.column_heights, [0, 0, 0, 0, 2])

    def test_max_reduction_over_elements(self):
        sky = SkylineMatrix(6)
        sky.update_column_heights([4, 6])
        sky.update_column_heights([2, 6])
        sky.update_column_heights([5, 6])

        assert sky.column_heights[5] == 4

    def test_element_order_does_not_matter(self):
        locations = [[1, 2, 3, 4], [3, 4, 5, 6], [0, 0, 5, 6], [1, 0, 0, 6], [2, 5]]

        forward = compute_layout(locations, 6)
        backward = compute_layout(locations[::-1], 6)

        np.testing.assert_array_equal(forward.column_heights, backward.column_heights)
        np.testing.assert_array_equal(forward.diagonal_address, backward.diagonal_address)

    def test_fully_constrained_element_contributes_nothing(self):
        sky = SkylineMatrix(3)
        sky.update_column_heights([0, 0, 0, 0, 0, 0])
        np.testing.assert_array_equal(sky.column_heights, [0, 0, 0])

    def test_heights_frozen_after_addresses(self):
        sky = SkylineMatrix(2)
        sky.compute_diagonal_address()
        with pytest.raises(SequencingError):
            sky.update_column_heights([1, 2])

    def test_equation_beyond_neq(self):
        sky = SkylineMatrix(2)
        with pytest.raises(ElementContractError, match="outside 0..2"):
            sky.update_column_heights([1, 3])

    def test_negative_equation(self):
        sky = SkylineMatrix(3)
        with pytest.raises(ElementContractError):
            sky.update_column_heights([-1, 2, 3])
        np.testing.assert_array_equal(sky.column_heights, [0, 0, 0])


class TestDiagonalAddress:

    def test_prefix_sum(self):
        sky = SkylineMatrix(5)
        sky.update_column_heights([3, 0, 5])
        sky.update_column_heights([1, 2])
        address = sky.compute_diagonal_address()

        # H = [0, 1, 0, 0, 2]
        np.testing.assert_array_equal(address, [1, 2, 4, 5, 6, 9])
        assert address[0] == 1
        assert np.all(np.diff(address) > 0)
        for k in range(sky.neq):
            assert address[k + 1] == address[k] + sky.column_heights[k] + 1

    def test_nwk_and_mk(self):
        sky = SkylineMatrix(5)
        sky.update_column_heights([3, 0, 5])
        sky.compute_diagonal_address()

        assert sky.nwk == sky.diagonal_address[5] - 1 == 7
        assert sky.mk == 3

    def test_empty_system(self):
        """
        NEQ = 0: no column to look at, nothing to store.
        """
        sky = compute_layout([], 0)

        assert sky.nwk == 0
        assert sky.mk == 0
        np.testing.assert_array_equal(sky.diagonal_address, [1])
        assert sky.values.shape == (0,)
        assert sky.to_dense().shape == (0, 0)

    def test_allocate_requires_addresses(self):
        with pytest.raises(SequencingError):
            SkylineMatrix(3).allocate()


class TestAddressing:

    def make_sky(self):
        # H = [0, 1, 2, 1]  ->  M = [1, 2, 4, 7, 9]
        return compute_layout([[1, 2, 3], [3, 4]], 4)

    def test_diagonal_offset_is_diagonal_address(self):
        sky = self.make_sky()
        for i in range(1, sky.neq + 1):
            assert sky.offset(i, i) == sky.diagonal_address[i - 1]

    def test_off_diagonal_offset(self):
        sky = self.make_sky()
        assert sky.offset(3, 1) == 4 + 2
        assert sky.offset(3, 2) == 4 + 1
        assert sky.offset(4, 3) == 7 + 1

    def test_offset_is_symmetric(self):
        sky = self.make_sky()
        assert sky.offset(1, 3) == sky.offset(3, 1)

    def test_offsets_cover_storage_exactly_once(self):
        sky = self.make_sky()
        offsets = sorted(
            sky.offset(r, c)
            for c in range(1, sky.neq + 1)
            for r in range(1, c + 1)
            if sky.in_skyline(r, c)
        )
        assert offsets == list(range(1, sky.nwk + 1))

    def test_outside_skyline(self):
        sky = self.make_sky()
        with pytest.raises(IndexError, match="outside the skyline"):
            sky.offset(4, 1)
        assert sky[4, 1] == 0.0

    def test_out_of_range(self):
        sky = self.make_sky()
        with pytest.raises(IndexError):
            sky.offset(0, 1)
        with pytest.raises(IndexError):
            sky.offset(5, 5)

    def test_add_accumulates(self):
        sky = self.make_sky()
        sky.add(3, 1, 1.5)
        sky.add(1, 3, 2.0)
        assert sky[3, 1] == 3.5
        assert sky[1, 3] == 3.5

    def test_add_before_allocation(self):
        sky = SkylineMatrix(2)
        sky.compute_diagonal_address()
        assert not sky.is_allocated
        with pytest.raises(SequencingError):
            sky.add(1, 1, 1.0)
        sky.allocate()
        assert sky.is_allocated

    def test_to_dense_and_diagonal(self):
        sky = self.make_sky()
        sky.add(1, 1, 4.0)
        sky.add(2, 1, -1.0)
        sky.add(3, 3, 5.0)
        sky.add(4, 3, -2.0)

        K = sky.to_dense()
        np.testing.assert_allclose(K, K.T)
        assert K[1, 0] == -1.0
        assert K[2, 3] == -2.0
        np.testing.assert_allclose(sky.diagonal(), [4.0, 0.0, 5.0, 0.0])
