"""
Krylov (GMRES) within-group solver

Solves

    (I - D L0^-1 M S) phi = D L^-1 Q

matrix-free: each operator application is one scatter-source build and one
sweep with no incident boundary flux (L0^-1), so the operator is linear.
The right-hand side is the uncollided flux and keeps the incident term.

The reported iteration count is the number of GMRES iterations, not the
number of sweeps.  The reported error is the pointwise relative change one
more source-iteration step would make, i.e. the relative residual in the
same infinity norm the other kernels use.

GMRES runs one restart cycle per call so the total number of inner
iterations is bounded by max_iters; the last cycle is shortened to fit.
"""
import numpy as np
from scipy.sparse.linalg import LinearOperator, gmres

from ..convergence import flux_error
from .base import WithinGroupSolver


class KrylovIteration(WithinGroupSolver):
    """Restarted GMRES on the within-group system."""

    def __init__(self, context, settings=None):
        super().__init__(context, settings)
        self.restart = self.settings.krylov_restart
        self.breakdowns = 0
        self.last_info = 0

    def solve(self, g):
        self._require_source(g)
        monitor = self.monitor
        monitor.start()

        ctx = self.context
        n = ctx.number_cells
        phi0 = self._seed(g)

        # Uncollided flux
        b = ctx.transform.discrete_to_moment(ctx.sweeper.sweep(self.sources.fixed, g))

        def matvec(x):
            x = np.asarray(x, dtype=np.float64).ravel()
            scatter = self.sources.scatter_source(g, x)
            return x - ctx.transform.discrete_to_moment(
                ctx.sweeper.sweep(scatter, g, incident=False)
            )

        operator = LinearOperator(shape=(n, n), matvec=matvec, dtype=np.float64)

        count = [0]

        def callback(residual):
            count[0] += 1
            monitor.record(count[0], residual)

        # One restart cycle per call; the last cycle is shortened so the
        # total never exceeds max_iters.
        phi = phi0
        info = 0
        while count[0] < monitor.max_iters:
            cycle = min(self.restart, monitor.max_iters - count[0])
            done = count[0]
            phi, info = gmres(
                operator, b, x0=phi,
                rtol=monitor.tolerance, atol=0.0,
                restart=cycle, maxiter=1,
                callback=callback, callback_type='pr_norm',
            )
            if info <= 0 or not np.all(np.isfinite(phi)) or count[0] == done:
                break
        self.last_info = info

        if info < 0 or not np.all(np.isfinite(phi)):
            # Breakdown: fall back to plain source iteration from the seed
            self.breakdowns += 1
            monitor.start()
            phi, error, iteration = self._richardson(g, phi0)
            ctx.state.set_flux(g, phi)
            self.check_convergence(iteration, error)
            return error, iteration

        iteration = count[0]
        error = flux_error(self._transport(g, phi), phi)

        ctx.state.set_flux(g, phi)
        self.check_convergence(iteration, error)
        return error, iteration

    def get_name(self):
        return f"GMRES({self.restart})"
