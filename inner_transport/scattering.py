"""
Banded per-cell scattering table.

For every destination group g only the source groups in the coupling band
[lower(g), upper(g)] can contribute, so each group stores one
[n_cells, width_g] block.  All blocks live in a single flat float64 array:

    data[offset[g] + i * width_g + (gp - lower(g))] = sigma_s(mat(i), g, gp)

The table is filled once (Numba JIT kernel by default) and is read-only
afterwards; entries outside the band are zero by construction.
"""
import numpy as np
from numba import njit

from .materials import MaterialLibrary
from .mesh import Mesh


# ===================================================================
# Numba JIT fill kernel
# ===================================================================

@njit(cache=True)
def _fill_band_jit(material_map, sigma_s, lower, upper, offsets, data):
    """Scatter material data into the flat banded layout.

    sigma_s is the stacked [n_mat, G, G] destination-first matrix.
    """
    n_cells = material_map.shape[0]
    n_groups = lower.shape[0]
    for g in range(n_groups):
        lo = lower[g]
        width = upper[g] - lo + 1
        base = offsets[g]
        for i in range(n_cells):
            m = material_map[i]
            row = base + i * width
            for gp in range(lo, upper[g] + 1):
                data[row + gp - lo] = sigma_s[m, g, gp]


def _fill_band_numpy(material_map, sigma_s, lower, upper, offsets, data):
    """Vectorised equivalent of _fill_band_jit."""
    per_cell = sigma_s[material_map]            # [n_cells, G, G]
    for g in range(len(lower)):
        block = per_cell[:, g, lower[g]:upper[g] + 1]
        data[offsets[g]:offsets[g] + block.size] = block.ravel()


# ===================================================================
# ScatteringTable
# ===================================================================

class ScatteringTable:
    """Per destination group, per cell scattering cross sections.

    Parameters
    ----------
    mesh : Mesh
        Supplies the cell -> material map.
    materials : MaterialLibrary
        Supplies sigma_s(m, g, gp) and the coupling band.
    use_numba : bool
        Fill with the JIT kernel (default) or the numpy path.
    """

    def __init__(self, mesh: Mesh, materials: MaterialLibrary, use_numba: bool = True):
        self._n_cells = mesh.number_cells
        self._n_groups = materials.number_groups

        self._lower = np.array([materials.lower(g) for g in range(self._n_groups)],
                               dtype=np.int64)
        self._upper = np.array([materials.upper(g) for g in range(self._n_groups)],
                               dtype=np.int64)
        self._widths = self._upper - self._lower + 1

        sizes = self._n_cells * self._widths
        self._offsets = np.zeros(self._n_groups, dtype=np.int64)
        self._offsets[1:] = np.cumsum(sizes)[:-1]

        data = np.zeros(int(np.sum(sizes)), dtype=np.float64)
        material_map = np.ascontiguousarray(mesh.material_map, dtype=np.int64)
        sigma_s = np.ascontiguousarray(materials.scatter_array, dtype=np.float64)

        if use_numba:
            _fill_band_jit(material_map, sigma_s, self._lower, self._upper,
                           self._offsets, data)
        else:
            _fill_band_numpy(material_map, sigma_s, self._lower, self._upper,
                             self._offsets, data)

        data.flags.writeable = False
        self._data = data

    # ------------------------------------------------------------------
    # Shape / band queries
    # ------------------------------------------------------------------

    @property
    def number_cells(self):
        return self._n_cells

    @property
    def number_groups(self):
        return self._n_groups

    @property
    def nbytes(self):
        return self._data.nbytes

    def lower(self, g):
        return int(self._lower[g])

    def upper(self, g):
        return int(self._upper[g])

    def in_band(self, g, gp):
        return self._lower[g] <= gp <= self._upper[g]

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def _block(self, g):
        """Read-only [n_cells, width_g] view of group g's band."""
        width = int(self._widths[g])
        start = int(self._offsets[g])
        return self._data[start:start + self._n_cells * width].reshape(self._n_cells, width)

    def coefficient(self, g, gp):
        """sigma_s(mat(i), g, gp) for every cell i; zeros outside the band."""
        if not self.in_band(g, gp):
            return np.zeros(self._n_cells)
        return self._block(g)[:, gp - self._lower[g]]

    def get(self, g):
        """Dense [n_cells, G] matrix for destination g (fresh array).

        Entries outside [lower(g), upper(g)] are exactly zero.
        """
        out = np.zeros((self._n_cells, self._n_groups))
        out[:, self._lower[g]:self._upper[g] + 1] = self._block(g)
        return out
