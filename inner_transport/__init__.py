"""
inner_transport - Within-group inner iterations for deterministic
multigroup neutron transport.

Solves, for one energy group at a time,

    (I - D L^-1 M S) phi = D L^-1 Q

with three interchangeable kernels:
  - Source Iteration (Richardson)
  - Livolant-accelerated source iteration
  - GMRES (matrix-free, scipy)

Scattering data is stored as a banded per-cell table filled by a Numba
JIT kernel; independent groups can be solved on a multiprocessing pool.
"""
__version__ = "0.1.0"

from .context import SolverContext
from .convergence import ConvergenceMonitor, flux_error
from .exceptions import ConfigurationError, ConvergenceWarning, InnerTransportError
from .kernels import WithinGroupSolver, get_kernel, list_kernels
from .materials import Material, MaterialLibrary, build_material
from .mesh import Mesh
from .parallel import GroupSweepResult, solve_groups
from .scattering import ScatteringTable
from .settings import InnerSettings
from .sources import ExternalSource, FissionSource, SourceBuilder
from .state import State
from .sweepers import AngularTransform, InfiniteMediumSweeper, MatrixSweeper, Sweeper
