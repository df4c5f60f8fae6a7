"""
Source Iteration

Classic fixed-point (Richardson) iteration on the within-group equation:

    phi^(l+1) = D L^-1 (M S phi^(l) + Q)

For an infinite medium the error contracts by the scattering ratio c each
step, so convergence degrades as c -> 1.
"""
from .base import WithinGroupSolver


class SourceIteration(WithinGroupSolver):
    """Unaccelerated source iteration."""

    def solve(self, g):
        self._require_source(g)
        self.monitor.start()

        phi, error, iteration = self._richardson(g, self._seed(g))

        self.context.state.set_flux(g, phi)
        self.check_convergence(iteration, error)
        return error, iteration

    def get_name(self):
        return "Source Iteration"
