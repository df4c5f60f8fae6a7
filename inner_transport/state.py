"""
Multigroup scalar flux storage shared between the outer driver and the
inner solvers.

Layout is [G, n_cells] so a group's flux is one contiguous row.
"""
import numpy as np
from dataclasses import dataclass


@dataclass
class State:
    """Scalar flux of every group."""
    phi: np.ndarray      # float64[G, n_cells]

    @property
    def number_groups(self):
        return self.phi.shape[0]

    @property
    def number_cells(self):
        return self.phi.shape[1]

    @classmethod
    def create(cls, n_groups, n_cells, initial=0.0):
        """Create a state with every flux value set to initial."""
        return cls(phi=np.full((n_groups, n_cells), initial, dtype=np.float64))

    def flux(self, g):
        """View of group g's scalar flux."""
        return self.phi[g]

    def set_flux(self, g, values):
        """Overwrite group g's scalar flux in place."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape != (self.number_cells,):
            raise ValueError(
                f"group {g} flux must have shape ({self.number_cells},), got {values.shape}"
            )
        self.phi[g, :] = values

    def copy(self):
        """Deep copy, used to freeze the state for independent group solves."""
        return State(phi=self.phi.copy())
