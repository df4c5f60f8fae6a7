"""
Inner iteration settings.

Mirrors the keys of the input database used by the surrounding driver:
  inner_max_iters, inner_tolerance, print_out,
  livolant_frequency, krylov_restart
"""
from dataclasses import dataclass, asdict
from typing import Any, Mapping

from .constants import (
    DEFAULT_INNER_MAX_ITERS,
    DEFAULT_INNER_TOLERANCE,
    LIVOLANT_FREQUENCY,
    KRYLOV_RESTART,
)
from .exceptions import ConfigurationError


@dataclass
class InnerSettings:
    """Convergence criteria and kernel knobs shared by all inner solvers."""
    max_iters: int = DEFAULT_INNER_MAX_ITERS
    tolerance: float = DEFAULT_INNER_TOLERANCE
    livolant_frequency: int = LIVOLANT_FREQUENCY
    krylov_restart: int = KRYLOV_RESTART
    verbose: bool = False

    def __post_init__(self):
        if int(self.max_iters) < 1:
            raise ConfigurationError(f"max_iters must be >= 1, got {self.max_iters}")
        if not float(self.tolerance) > 0.0:
            raise ConfigurationError(f"tolerance must be > 0, got {self.tolerance}")
        if int(self.livolant_frequency) < 3:
            # two differences need three iterates
            raise ConfigurationError(
                f"livolant_frequency must be >= 3, got {self.livolant_frequency}"
            )
        if int(self.krylov_restart) < 1:
            raise ConfigurationError(
                f"krylov_restart must be >= 1, got {self.krylov_restart}"
            )
        self.max_iters = int(self.max_iters)
        self.tolerance = float(self.tolerance)
        self.livolant_frequency = int(self.livolant_frequency)
        self.krylov_restart = int(self.krylov_restart)
        self.verbose = bool(self.verbose)

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "InnerSettings":
        """Build settings from an input-database style mapping.

        Unknown keys are ignored so a full problem input can be passed in.
        """
        return cls(
            max_iters=params.get('inner_max_iters', DEFAULT_INNER_MAX_ITERS),
            tolerance=params.get('inner_tolerance', DEFAULT_INNER_TOLERANCE),
            livolant_frequency=params.get('livolant_frequency', LIVOLANT_FREQUENCY),
            krylov_restart=params.get('krylov_restart', KRYLOV_RESTART),
            verbose=params.get('print_out', False),
        )

    def to_dict(self):
        """Convert to JSON-serializable dict."""
        return asdict(self)
