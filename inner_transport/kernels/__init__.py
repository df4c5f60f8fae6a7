"""
Within-group solver registry.

Kernels: Source Iteration (baseline), Livolant extrapolation, GMRES.
"""
from ..exceptions import ConfigurationError
from .base import WithinGroupSolver
from .krylov import KrylovIteration
from .livolant import Livolant
from .source_iteration import SourceIteration

_KERNELS = {
    'si': SourceIteration,
    'source_iteration': SourceIteration,
    'livolant': Livolant,
    'gmres': KrylovIteration,
    'krylov': KrylovIteration,
}


def list_kernels():
    """List kernel names with the class each resolves to."""
    return [(name, cls.__name__) for name, cls in _KERNELS.items()]


def get_kernel(name: str, context, settings=None) -> WithinGroupSolver:
    """Get a within-group solver by name.

    Args:
        name: 'si', 'livolant', or 'gmres' (aliases: 'source_iteration', 'krylov')
        context: SolverContext shared by all kernels
        settings: InnerSettings, defaults if None

    Returns:
        WithinGroupSolver instance

    Raises:
        ConfigurationError if the name is unknown
    """
    key = name.lower()
    if key not in _KERNELS:
        raise ConfigurationError(
            f"Unknown inner solver: {name}. Choose from: si, livolant, gmres"
        )
    return _KERNELS[key](context, settings)
