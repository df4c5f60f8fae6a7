"""
Tests for inner_transport.scattering module (ScatteringTable).
"""
import numpy as np
import pytest

from inner_transport.materials import MaterialLibrary, build_material
from inner_transport.mesh import Mesh
from inner_transport.scattering import ScatteringTable


@pytest.fixture
def table(three_group_mesh, three_group_library):
    return ScatteringTable(three_group_mesh, three_group_library, use_numba=False)


class TestBand:
    def test_lower_upper_match_library(self, table, three_group_library):
        for g in range(3):
            assert table.lower(g) == three_group_library.lower(g)
            assert table.upper(g) == three_group_library.upper(g)

    def test_fast_group_has_no_upscatter(self, table):
        assert table.lower(0) == 0
        assert table.upper(0) == 0

    def test_thermal_groups_band(self, table):
        assert (table.lower(1), table.upper(1)) == (0, 2)
        assert (table.lower(2), table.upper(2)) == (0, 2)

    def test_band_contains_diagonal(self, table):
        for g in range(3):
            assert table.lower(g) <= g <= table.upper(g)

    def test_uncoupled_group_gets_diagonal_band(self):
        """A group with no scattering at all still gets [g, g]."""
        mat = build_material('void-ish', 0, sigma_t=[1.0, 1.0],
                             sigma_s=[[0.5, 0.0], [0.0, 0.0]])
        table = ScatteringTable(Mesh.uniform(3), MaterialLibrary([mat]), use_numba=False)
        assert (table.lower(1), table.upper(1)) == (1, 1)


class TestCoefficients:
    def test_per_cell_values(self, table, three_group_mesh, three_group_library):
        for g in range(3):
            for gp in range(3):
                expected = [three_group_library.sigma_s(m, g, gp)
                            for m in three_group_mesh.material_map]
                np.testing.assert_allclose(table.coefficient(g, gp), expected)

    def test_outside_band_is_zero(self, table):
        np.testing.assert_array_equal(table.coefficient(0, 2), np.zeros(6))

    def test_get_matches_coefficients(self, table):
        dense = table.get(1)
        assert dense.shape == (6, 3)
        for gp in range(3):
            np.testing.assert_allclose(dense[:, gp], table.coefficient(1, gp))

    def test_get_zero_outside_band(self, table):
        dense = table.get(0)
        np.testing.assert_array_equal(dense[:, 1:], 0.0)

    def test_get_returns_fresh_array(self, table):
        dense = table.get(2)
        dense[:] = -1.0
        assert np.all(table.get(2) >= 0.0)

    def test_coefficient_is_read_only(self, table):
        coeff = table.coefficient(1, 1)
        with pytest.raises(ValueError):
            coeff[0] = 99.0


class TestStorage:
    def test_nbytes_is_banded(self, table):
        """Band widths 1 + 3 + 3 over 6 cells."""
        assert table.nbytes == (1 + 3 + 3) * 6 * 8

    def test_numba_matches_numpy(self, three_group_mesh, three_group_library):
        jit = ScatteringTable(three_group_mesh, three_group_library, use_numba=True)
        ref = ScatteringTable(three_group_mesh, three_group_library, use_numba=False)
        for g in range(3):
            np.testing.assert_array_equal(jit.get(g), ref.get(g))

    def test_shape_queries(self, table):
        assert table.number_cells == 6
        assert table.number_groups == 3
