"""
Livolant-accelerated source iteration

Plain source iteration, interrupted every `livolant_frequency` steps by a
two-point geometric extrapolation of the iterate sequence.  If the error
behaves like e_l ~ lambda^l v (one dominant mode), then with

    e0 = phi1 - phi0,   e1 = phi2 - phi1,   lambda = (e1 . e0) / (e0 . e0)

the limit is

    phi_inf = phi2 + lambda / (1 - lambda) * e1

The extrapolation is skipped, and the plain iterate kept, whenever a
denominator is near zero, |lambda| >= 1, or the result is not finite.
"""
import numpy as np

from ..constants import SMALL
from ..convergence import flux_error
from .base import WithinGroupSolver


def livolant_extrapolate(phi0, phi1, phi2, small=SMALL):
    """Extrapolate three successive iterates.

    Returns:
        (phi_extrapolated, lambda), or (None, lambda) when the
        extrapolation is unsafe.  lambda is None if it could not be formed.
    """
    e0 = phi1 - phi0
    e1 = phi2 - phi1
    denom = float(np.dot(e0, e0))
    if denom <= small * max(1.0, float(np.dot(phi2, phi2))):
        return None, None

    lam = float(np.dot(e1, e0)) / denom
    if not np.isfinite(lam) or abs(lam) >= 1.0 or abs(1.0 - lam) <= small:
        return None, lam

    phi = phi2 + (lam / (1.0 - lam)) * e1
    if not np.all(np.isfinite(phi)):
        return None, lam
    return phi, lam


class Livolant(WithinGroupSolver):
    """Source iteration with periodic Livolant extrapolation."""

    def __init__(self, context, settings=None):
        super().__init__(context, settings)
        self.frequency = self.settings.livolant_frequency
        self.accelerations = 0

    def solve(self, g):
        self._require_source(g)
        monitor = self.monitor
        monitor.start()
        self.accelerations = 0

        phi = self._seed(g)
        window = [phi]
        error = 1.0
        iteration = 0

        while iteration < monitor.max_iters:
            iteration += 1
            phi_new = self._transport(g, phi)
            window.append(phi_new)
            window = window[-3:]

            if len(window) == 3 and iteration % self.frequency == 0:
                extrapolated, lam = livolant_extrapolate(*window)
                if extrapolated is not None:
                    phi_new = extrapolated
                    window = [phi_new]
                    self.accelerations += 1
                    if self.settings.verbose:
                        print(f"               Livolant: lambda = {lam:12.8f}")

            error = flux_error(phi_new, phi)
            phi = phi_new
            monitor.record(iteration, error)
            if monitor.converged(error):
                break

        self.context.state.set_flux(g, phi)
        self.check_convergence(iteration, error)
        return error, iteration

    def get_name(self):
        return f"Livolant (every {self.frequency})"
