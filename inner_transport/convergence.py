"""
Inner iteration convergence monitoring.

Error metric: pointwise infinity norm of the relative change between
successive flux iterates,

    e = max_i |phi_new_i - phi_old_i| / |phi_new_i|

with the absolute change used wherever |phi_new_i| is effectively zero.

The monitor keeps the last three errors (e0 newest) and estimates the
empirical convergence rate

    r = (e0 - e1) / (e1 - e2)

which approaches the spectral radius of the iteration for a linear
fixed point.
"""
import warnings
from collections import deque

import numpy as np

from .constants import DEFAULT_INNER_MAX_ITERS, DEFAULT_INNER_TOLERANCE, ERROR_WINDOW, SMALL
from .exceptions import ConfigurationError, ConvergenceWarning


def flux_error(phi_new, phi_old, small=SMALL):
    """Pointwise relative infinity-norm change, absolute where phi_new ~ 0."""
    phi_new = np.asarray(phi_new, dtype=np.float64)
    diff = np.abs(phi_new - np.asarray(phi_old, dtype=np.float64))
    if diff.size == 0:
        return 0.0
    magnitude = np.abs(phi_new)
    relative = magnitude > small
    scaled = np.where(relative, diff / np.where(relative, magnitude, 1.0), diff)
    return float(np.max(scaled))


class ConvergenceMonitor:
    """Iteration count, error window and reached/not-reached verdict."""

    def __init__(self, max_iters=DEFAULT_INNER_MAX_ITERS,
                 tolerance=DEFAULT_INNER_TOLERANCE, verbose=False):
        self.verbose = verbose
        self.reset(max_iters, tolerance)
        self.history = []
        self._window = deque(maxlen=ERROR_WINDOW)
        self.rate = None

    def reset(self, max_iters, tolerance):
        """Swap the convergence criteria (e.g. loose early outer iterations)."""
        if int(max_iters) < 1:
            raise ConfigurationError(f"max_iters must be >= 1, got {max_iters}")
        if not float(tolerance) > 0.0:
            raise ConfigurationError(f"tolerance must be > 0, got {tolerance}")
        self.max_iters = int(max_iters)
        self.tolerance = float(tolerance)

    def start(self):
        """Clear history before a new solve."""
        self.history = []
        self._window.clear()
        self.rate = None

    def converged(self, error):
        return error <= self.tolerance

    def record(self, iteration, error):
        """Store an error sample.

        Returns:
            Empirical rate once three samples exist, else None.  A
            near-zero denominator also yields None.
        """
        error = float(error)
        self.history.append(error)
        self._window.appendleft(error)

        self.rate = None
        if len(self._window) == ERROR_WINDOW:
            e0, e1, e2 = self._window
            denom = e1 - e2
            if abs(denom) > SMALL:
                self.rate = (e0 - e1) / denom

        if self.verbose:
            print(f"           Iter: {iteration:5d}, Error: {error:12.8f}")
            if self.rate is not None:
                print(f"                         Rate: {self.rate:12.8f}")

        return self.rate

    def check(self, iteration, error, stacklevel=1):
        """Warn iff the cap was reached without meeting the tolerance.

        stacklevel is relative to the caller of check(), as for
        warnings.warn.

        Returns:
            True if a ConvergenceWarning was issued.
        """
        if iteration == self.max_iters and error > self.tolerance:
            warnings.warn(
                f"Maximum iterations ({self.max_iters}) reached without "
                f"convergence (error {error:.3e} > tolerance {self.tolerance:.3e})",
                ConvergenceWarning,
                stacklevel=stacklevel + 1,
            )
            return True
        return False

    @property
    def iterations(self):
        return len(self.history)

    @property
    def is_monotone(self):
        """True if every recorded error is no larger than its predecessor."""
        return all(b <= a for a, b in zip(self.history, self.history[1:]))
