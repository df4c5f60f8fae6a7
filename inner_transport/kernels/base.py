"""Abstract base class for within-group inner solvers."""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from ..context import SolverContext
from ..convergence import ConvergenceMonitor, flux_error
from ..settings import InnerSettings
from ..sources import SourceBuilder


class WithinGroupSolver(ABC):
    """Abstract interface for within-group transport solvers.

    The within-group equation

        L psi = M S phi + Q

    is reduced to the linear system (I - D L^-1 M S) phi = D L^-1 Q, whose
    right-hand side is the uncollided flux.  Kernels differ only in how they
    solve it.

    The outer driver calls build_fixed_source(g) (or build_external_source(g))
    and then solve(g) once per group per outer iteration.
    """

    def __init__(self, context: SolverContext, settings: Optional[InnerSettings] = None):
        self.context = context
        self.settings = settings or InnerSettings()
        self.monitor = ConvergenceMonitor(
            self.settings.max_iters, self.settings.tolerance, self.settings.verbose
        )
        self.sources = SourceBuilder(context, verbose=self.settings.verbose)

    @abstractmethod
    def solve(self, g: int) -> Tuple[float, int]:
        """Solve the within-group problem for group g.

        The iteration starts from the flux currently stored for g and
        writes the result back into the state.

        Returns:
            (flux_error, iterations)
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Human-readable kernel name, e.g. 'Source Iteration'."""
        pass

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    @property
    def fixed_source(self):
        return self.sources.fixed

    def build_fixed_source(self, g):
        return self.sources.fixed_source(g)

    def build_external_source(self, g):
        return self.sources.external_fixed_source(g)

    # ------------------------------------------------------------------
    # Convergence
    # ------------------------------------------------------------------

    def reset_convergence(self, max_iters, tolerance):
        """Change the criteria, e.g. loose inners in early eigen outers."""
        self.monitor.reset(max_iters, tolerance)

    def check_convergence(self, iteration, flux_error):
        # attribute the warning to whoever called solve()
        return self.monitor.check(iteration, flux_error, stacklevel=3)

    @property
    def max_iters(self):
        return self.monitor.max_iters

    @property
    def tolerance(self):
        return self.monitor.tolerance

    # ------------------------------------------------------------------
    # Shared kernel pieces
    # ------------------------------------------------------------------

    def _require_source(self, g):
        if self.sources.group != g:
            raise ValueError(
                f"fixed source is assembled for group {self.sources.group}, "
                f"not {g}; call build_fixed_source({g}) first"
            )

    def _transport(self, g, phi):
        """One source-iteration step: D L^-1 (Q + M S phi)."""
        ctx = self.context
        q = self.sources.fixed + self.sources.scatter_source(g, phi)
        psi = ctx.sweeper.sweep(q, g)
        return ctx.transform.discrete_to_moment(psi)

    def _seed(self, g):
        return np.array(self.context.state.flux(g), dtype=np.float64, copy=True)

    def _richardson(self, g, phi):
        """Plain source iteration from phi until converged or capped.

        Returns:
            (phi, flux_error, iterations)
        """
        monitor = self.monitor
        error = 1.0
        iteration = 0
        while iteration < monitor.max_iters:
            iteration += 1
            phi_new = self._transport(g, phi)
            error = flux_error(phi_new, phi)
            phi = phi_new
            monitor.record(iteration, error)
            if monitor.converged(error):
                break
        return phi, error, iteration
