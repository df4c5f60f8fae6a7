"""
Multigroup material definitions for the inner iterations.

Each material carries macroscopic group constants (1/cm or 1/m, the engine
is unit-agnostic as long as the sweeper agrees).  The scattering matrix is
stored destination-first:

    sigma_s[g, gp] = scattering from group gp into group g

Group 0 is the highest-energy group, so gp < g is downscatter and gp > g is
upscatter.  The library derives the per-group coupling band
[lower(g), upper(g)] from the nonzero structure over all materials.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


# ===================================================================
# Material dataclass
# ===================================================================

@dataclass
class Material:
    """Macroscopic group constants of one material."""

    name: str
    mat_id: int
    sigma_t: np.ndarray           # [G] total
    sigma_s: np.ndarray           # [G, G] sigma_s[g, gp]: gp -> g
    nu_sigma_f: np.ndarray        # [G] production
    chi: np.ndarray               # [G] fission spectrum
    is_fissile: bool

    @property
    def number_groups(self):
        return len(self.sigma_t)


def build_material(
    name: str,
    mat_id: int,
    sigma_t: Sequence[float],
    sigma_s,
    nu_sigma_f: Optional[Sequence[float]] = None,
    chi: Optional[Sequence[float]] = None,
) -> Material:
    """Build a Material from plain sequences.

    Parameters
    ----------
    sigma_t : [G] total cross section
    sigma_s : [G, G] scattering matrix, destination-first
    nu_sigma_f, chi : [G], default to zeros (non-fissile)

    Returns
    -------
    Material with float64 arrays.
    """
    sigma_t = np.asarray(sigma_t, dtype=np.float64)
    n_groups = len(sigma_t)
    sigma_s = np.asarray(sigma_s, dtype=np.float64).reshape(n_groups, n_groups)

    if nu_sigma_f is None:
        nu_sigma_f = np.zeros(n_groups, dtype=np.float64)
    else:
        nu_sigma_f = np.asarray(nu_sigma_f, dtype=np.float64)

    if chi is None:
        chi = np.zeros(n_groups, dtype=np.float64)
    else:
        chi = np.asarray(chi, dtype=np.float64)
        # Normalize chi
        chi_sum = np.sum(chi)
        if chi_sum > 0.0:
            chi = chi / chi_sum

    if nu_sigma_f.shape != (n_groups,) or chi.shape != (n_groups,):
        raise ValueError(f"{name}: nu_sigma_f and chi must have {n_groups} groups")

    return Material(
        name=name,
        mat_id=mat_id,
        sigma_t=sigma_t,
        sigma_s=sigma_s,
        nu_sigma_f=nu_sigma_f,
        chi=chi,
        is_fissile=bool(np.any(nu_sigma_f > 0.0)),
    )


# ===================================================================
# Material library
# ===================================================================

class MaterialLibrary:
    """Indexed collection of materials sharing one group structure.

    Material ids are positions in the library; Mesh.material_map refers to
    them directly.
    """

    def __init__(self, materials: List[Material]):
        if not materials:
            raise ValueError("MaterialLibrary needs at least one material")
        n_groups = materials[0].number_groups
        for mat in materials:
            if mat.number_groups != n_groups:
                raise ValueError(
                    f"{mat.name}: {mat.number_groups} groups, expected {n_groups}"
                )
        self._materials = list(materials)
        self._n_groups = n_groups

        # [n_mat, G, G] stacked scattering data
        self._sigma_s = np.stack([m.sigma_s for m in self._materials])
        self._sigma_s.flags.writeable = False

        # Coupling band per destination group over all materials
        coupled = np.any(self._sigma_s != 0.0, axis=0)   # [G, G]
        self._lower = np.arange(n_groups)
        self._upper = np.arange(n_groups)
        for g in range(n_groups):
            sources = np.flatnonzero(coupled[g])
            if len(sources) > 0:
                self._lower[g] = min(g, sources[0])
                self._upper[g] = max(g, sources[-1])

    def __len__(self):
        return len(self._materials)

    def __getitem__(self, mat_id):
        return self._materials[mat_id]

    @property
    def number_groups(self):
        return self._n_groups

    @property
    def number_materials(self):
        return len(self._materials)

    @property
    def scatter_array(self):
        """Read-only [n_mat, G, G] scattering data, destination-first."""
        return self._sigma_s

    def sigma_s(self, mat_id, g, gp):
        return self._sigma_s[mat_id, g, gp]

    def sigma_t(self, mat_id, g):
        return self._materials[mat_id].sigma_t[g]

    def nu_sigma_f(self, mat_id, g):
        return self._materials[mat_id].nu_sigma_f[g]

    def chi(self, mat_id, g):
        return self._materials[mat_id].chi[g]

    def lower(self, g):
        """Lowest source group coupling into g."""
        return int(self._lower[g])

    def upper(self, g):
        """Highest source group coupling into g."""
        return int(self._upper[g])

    @property
    def has_upscatter(self):
        return any(self.upper(g) > g for g in range(self._n_groups))
