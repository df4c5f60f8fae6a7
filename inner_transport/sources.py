"""
Group sources for the within-group problem.

  ExternalSource  - user-defined discrete source per group
  FissionSource   - isotropic fission source chi_g * scale * sum nuSigma_f phi
  SourceBuilder   - assembles the fixed source (in-scatter + fission +
                    external) and the within-group scatter source

All sources handed to a sweep are *discrete* vectors: one isotropic angular
source density per cell.  Scattering contributions are accumulated in
moment space and pushed through the moment-to-discrete operator once, after
summation.  Fission and external sources are already discrete and are added
as-is.
"""
import numpy as np

from .constants import FOUR_PI


# ===================================================================
# External source
# ===================================================================

class ExternalSource:
    """Fixed external discrete source, stored as [G, n_cells]."""

    def __init__(self, n_groups, n_cells):
        self._q = np.zeros((n_groups, n_cells), dtype=np.float64)
        self._initialized = False

    @property
    def number_groups(self):
        return self._q.shape[0]

    @property
    def number_cells(self):
        return self._q.shape[1]

    def set_group(self, g, values):
        """Set group g's discrete source (scalar or per-cell values)."""
        self._q[g, :] = values
        self._initialized = True

    def initialized(self):
        return self._initialized

    def source(self, g):
        return self._q[g]


# ===================================================================
# Fission source
# ===================================================================

class FissionSource:
    """Isotropic fission source.

    The fission density f = sum_g nuSigma_f,g phi_g is refreshed by update()
    at the start of an outer iteration.  The group source is

        q_f,g = chi_g * scale * f

    with scale = k_scale / angular_norm when update() gets a scale
    (typically 1/keff) and 1 otherwise.  source(g) is therefore a fully
    prescaled discrete vector; the inner solvers add it unchanged.

    Parameters
    ----------
    state : State
    mesh : Mesh
    materials : MaterialLibrary
    angular_norm : float
        Total quadrature weight; 4 pi for 2D/3D, 2 for slab quadratures.
    """

    def __init__(self, state, mesh, materials, angular_norm=FOUR_PI):
        self._state = state
        self._mesh = mesh
        self._materials = materials
        self._angular_norm = float(angular_norm)
        self._scale = 1.0
        self._initialized = False
        self._nu_sigma_f = None
        self._chi = None
        self._density = None

    def initialize(self):
        """Build per-cell nuSigma_f and chi; seed the density.

        Separate from the constructor so an empty fission source can be
        passed around for fixed-source problems.
        """
        material_map = self._mesh.material_map
        nu_sigma_f = np.stack([m.nu_sigma_f for m in self._materials])   # [n_mat, G]
        chi = np.stack([m.chi for m in self._materials])

        self._nu_sigma_f = nu_sigma_f[material_map]     # [n_cells, G]
        self._chi = chi[material_map]

        # Seed with the last group's nuSigma_f, normalised to unity
        self._density = self._nu_sigma_f[:, -1].copy()
        norm = np.linalg.norm(self._density)
        if norm > 0.0:
            self._density /= norm

        self._scale = 1.0
        self._initialized = True
        return self

    def initialized(self):
        return self._initialized

    def update(self, scale=None):
        """Recompute the fission density from the current state.

        Args:
            scale: optional scaling factor (typically 1/keff); divided by
                the angular norm.  None means unscaled.
        """
        if scale is None:
            self._scale = 1.0
        else:
            self._scale = float(scale) / self._angular_norm

        self._density = np.zeros(self._mesh.number_cells)
        for g in range(self._materials.number_groups):
            self._density += self._state.flux(g) * self._nu_sigma_f[:, g]
        return self

    def reset(self):
        """Zero the density and scale (between independent solves)."""
        if self._density is not None:
            self._density[:] = 0.0
        self._scale = 1.0

    def source(self, g):
        return self._density * self._chi[:, g] * self._scale

    def density(self):
        return self._density

    @property
    def scale(self):
        return self._scale


# ===================================================================
# Source builder
# ===================================================================

class SourceBuilder:
    """Assembles discrete sources for one group at a time.

    Holds its own fixed/scatter buffers, so one builder (and one solver)
    per concurrent task.
    """

    def __init__(self, context, verbose=False):
        self._context = context
        self.verbose = verbose
        n = context.mesh.number_cells
        self.fixed = np.zeros(n)
        self.scatter = np.zeros(n)
        self.group = None

    def scatter_source(self, g, phi):
        """Within-group scatter source M(sigma_s(g <- g) phi)."""
        ctx = self._context
        self.scatter = ctx.transform.moment_to_discrete(
            phi * ctx.scattering.coefficient(g, g)
        )
        return self.scatter

    def fixed_source(self, g):
        """In-scatter + fission + external source for group g.

        Other groups' fluxes are read from the state as they stand and are
        held fixed for the whole inner solve.
        """
        ctx = self._context
        table = ctx.scattering
        if self.verbose:
            print(f"          Group: {g:5d}")

        acc = np.zeros(ctx.mesh.number_cells)

        # Downscatter
        for gp in range(table.lower(g), g):
            acc += ctx.state.flux(gp) * table.coefficient(g, gp)

        # Upscatter
        for gp in range(g + 1, table.upper(g) + 1):
            acc += ctx.state.flux(gp) * table.coefficient(g, gp)

        self.fixed = ctx.transform.moment_to_discrete(acc)
        self._add_fission_and_external(g)
        self.group = g
        return self.fixed

    def external_fixed_source(self, g):
        """Fission + external only; in-scatter handled by the caller."""
        if self.verbose:
            print(f"          Group: {g:5d}")
        self.fixed = np.zeros(self._context.mesh.number_cells)
        self._add_fission_and_external(g)
        self.group = g
        return self.fixed

    def _add_fission_and_external(self, g):
        ctx = self._context
        if ctx.fission_source is not None and ctx.fission_source.initialized():
            self.fixed = self.fixed + ctx.fission_source.source(g)
        if ctx.external_source is not None and ctx.external_source.initialized():
            self.fixed = self.fixed + ctx.external_source.source(g)
