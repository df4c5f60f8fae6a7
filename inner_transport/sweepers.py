"""
Sweep capability interface and angular moment transforms.

The inner solvers only ever see three operations:

    psi = sweeper.sweep(q, g)              # L^-1 q, shape [n_cells, n_angles]
    q   = transform.moment_to_discrete(v)  # M v, isotropic per-cell source
    phi = transform.discrete_to_moment(psi)  # D psi = sum_n w_n psi_n

Concrete space-angle sweeps (diamond difference, step, characteristics) live
with the discretization layer and implement Sweeper.  Two small sweepers are
provided here for verification problems:

  - InfiniteMediumSweeper: psi_n = q / sigma_t for every angle
  - MatrixSweeper: explicit per-angle streaming+collision matrices
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.linalg import lu_factor, lu_solve

from .constants import SLAB_NORM


# ===================================================================
# Angular transforms
# ===================================================================

class AngularTransform:
    """Moment <-> discrete transforms for isotropic (P0) sources.

    M v = v / sum(w)  (per unit solid angle)
    D psi = psi @ w

    so that D M v = v for any quadrature.
    """

    def __init__(self, weights, mu=None):
        self.mu = None if mu is None else np.asarray(mu, dtype=np.float64)
        self.weights = np.ascontiguousarray(weights, dtype=np.float64).ravel()
        if len(self.weights) == 0 or np.any(self.weights <= 0.0):
            raise ValueError("quadrature weights must be positive and non-empty")
        self.weights.flags.writeable = False
        self.total_weight = float(np.sum(self.weights))

    @property
    def number_angles(self):
        return len(self.weights)

    @classmethod
    def single_angle(cls):
        """One angle with unit weight; M and D reduce to the identity."""
        return cls([1.0])

    @classmethod
    def gauss_legendre(cls, n_angles):
        """Slab quadrature on mu in [-1, 1] (weights sum to 2)."""
        mu, w = np.polynomial.legendre.leggauss(n_angles)
        return cls(w * (SLAB_NORM / np.sum(w)), mu=mu)

    def moment_to_discrete(self, v):
        return np.asarray(v, dtype=np.float64) / self.total_weight

    def discrete_to_moment(self, psi):
        return np.asarray(psi, dtype=np.float64) @ self.weights


# ===================================================================
# Sweeper interface
# ===================================================================

class Sweeper(ABC):
    """Abstract interface for transport sweeps (application of L^-1).

    Implementations must be linear in the source apart from the incident
    boundary term, which is dropped when incident=False.
    """

    #: spatial dimension of the discretization (1 or 2)
    dimension = 1

    @property
    @abstractmethod
    def number_cells(self) -> int:
        pass

    @property
    @abstractmethod
    def number_angles(self) -> int:
        pass

    @abstractmethod
    def sweep(self, source: np.ndarray, g: int, incident: bool = True) -> np.ndarray:
        """Sweep the space-angle domain for group g.

        Args:
            source: float64[n_cells] discrete (isotropic) source
            g: energy group (selects sigma_t and boundary data)
            incident: include incident boundary fluxes

        Returns:
            float64[n_cells, n_angles] angular flux
        """
        pass

    @property
    def number_groups(self):
        """Groups with distinct sweep data, or None if group-independent."""
        return None

    def get_name(self) -> str:
        return f"{type(self).__name__} ({self.dimension}D)"


def _per_group(data, ndim):
    """Promote group-independent data to a leading group axis of length 1."""
    data = np.asarray(data, dtype=np.float64)
    if data.ndim == ndim:
        data = data[None]
    if data.ndim != ndim + 1:
        raise ValueError(f"expected {ndim}D data or [G, ...] stacked {ndim}D data")
    return data


class InfiniteMediumSweeper(Sweeper):
    """Sweep with no streaming: psi_n = q / sigma_t in every cell.

    Equivalent to a slab with reflective boundaries and a flat solution.
    With sigma_t = 1 and one unit-weight angle the whole within-group
    operator becomes phi -> sigma_s * phi + q.

    sigma_t is [n_cells] (all groups) or [G, n_cells].
    """

    def __init__(self, sigma_t, n_angles=1, dimension=1):
        self._sigma_t = np.ascontiguousarray(_per_group(sigma_t, 1))
        if np.any(self._sigma_t <= 0.0):
            raise ValueError("sigma_t must be positive in every cell")
        self._n_angles = int(n_angles)
        self.dimension = dimension

    @property
    def number_cells(self):
        return self._sigma_t.shape[1]

    @property
    def number_angles(self):
        return self._n_angles

    @property
    def number_groups(self):
        return len(self._sigma_t) if len(self._sigma_t) > 1 else None

    def sweep(self, source, g, incident=True):
        sigma_t = self._sigma_t[g if len(self._sigma_t) > 1 else 0]
        psi_cell = np.asarray(source, dtype=np.float64) / sigma_t
        return np.repeat(psi_cell[:, None], self._n_angles, axis=1)


class MatrixSweeper(Sweeper):
    """Sweep defined by explicit per-angle matrices.

    psi[:, n] = L_{g,n}^-1 q + b_{g,n}

    where b is the precomputed response to the incident boundary flux.
    operators is [n_angles, n_cells, n_cells] or [G, n_angles, n_cells,
    n_cells]; boundary likewise [n_angles, n_cells] or [G, n_angles,
    n_cells].  LU factors are computed once at construction.
    """

    def __init__(self, operators, boundary: Optional[np.ndarray] = None, dimension=1):
        operators = _per_group(operators, 3)
        n_sets, self._n_angles, self._n_cells, n_cols = operators.shape
        if n_cols != self._n_cells:
            raise ValueError("operators must be square in space")
        self._factors = [[lu_factor(L) for L in angle_ops] for angle_ops in operators]

        if boundary is None:
            boundary = np.zeros((1, self._n_angles, self._n_cells))
        boundary = _per_group(boundary, 2)
        if boundary.shape[1:] != (self._n_angles, self._n_cells):
            raise ValueError("boundary must have shape [n_angles, n_cells]")
        # [sets, n_cells, n_angles] to match psi layout
        self._boundary = np.ascontiguousarray(np.transpose(boundary, (0, 2, 1)))
        self._boundary.flags.writeable = False
        self.dimension = dimension

    @property
    def number_cells(self):
        return self._n_cells

    @property
    def number_angles(self):
        return self._n_angles

    @property
    def number_groups(self):
        n_sets = max(len(self._factors), len(self._boundary))
        return n_sets if n_sets > 1 else None

    def sweep(self, source, g, incident=True):
        q = np.asarray(source, dtype=np.float64)
        factors = self._factors[g if len(self._factors) > 1 else 0]
        psi = np.empty((self._n_cells, self._n_angles))
        for n, factor in enumerate(factors):
            psi[:, n] = lu_solve(factor, q)
        if incident:
            psi += self._boundary[g if len(self._boundary) > 1 else 0]
        return psi
