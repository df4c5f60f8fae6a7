"""
Problem mesh as seen by the inner iterations.

Only the cell -> material map and the spatial dimension matter here; the
actual cell geometry is owned by the sweeper. Cells are numbered 0..n-1 in
the sweeper's ordering (fine mesh cells for structured grids, flat source
regions for characteristics).
"""
import numpy as np
from dataclasses import dataclass


@dataclass
class Mesh:
    """Cell -> material map.

    material_map: int[n_cells] material index of each cell
    dimension:    spatial dimension reported by the discretization
    """
    material_map: np.ndarray
    dimension: int = 1

    def __post_init__(self):
        self.material_map = np.ascontiguousarray(self.material_map, dtype=np.int64).ravel()
        self.material_map.flags.writeable = False

    @property
    def number_cells(self):
        return len(self.material_map)

    @classmethod
    def uniform(cls, n_cells, mat_id=0, dimension=1):
        """Single-material mesh with n_cells cells."""
        return cls(np.full(n_cells, mat_id, dtype=np.int64), dimension)

    @classmethod
    def from_regions(cls, cells_per_region, region_materials, dimension=1):
        """Build a 1D-ordered map from contiguous material regions.

        Args:
            cells_per_region: number of cells in each region
            region_materials: material index of each region
        """
        if len(cells_per_region) != len(region_materials):
            raise ValueError("cells_per_region and region_materials differ in length")
        material_map = np.repeat(
            np.asarray(region_materials, dtype=np.int64),
            np.asarray(cells_per_region, dtype=np.int64),
        )
        return cls(material_map, dimension)

    def cells_of(self, mat_id):
        """Indices of all cells assigned to material mat_id."""
        return np.flatnonzero(self.material_map == mat_id)
