"""
Group-parallel inner solves (Jacobi pass over a frozen state).

Within one solve(g) everything is sequential, but groups whose fixed
sources are built from the same frozen state are independent:

1. Snapshot the shared state
2. For each group (one task per group):
   a. Own state copy + own solver instance (private source buffers)
   b. Build the fixed source from the snapshot
   c. solve(g)
3. Write every group's flux back into the shared state

Tasks are dispatched with multiprocessing.Pool, or in-process when
n_workers == 1.
"""
import time
import warnings
from dataclasses import dataclass
from multiprocessing import Pool, cpu_count
from typing import List, Optional, Sequence

import numpy as np

from .context import SolverContext
from .exceptions import ConvergenceWarning
from .kernels import get_kernel
from .settings import InnerSettings


@dataclass
class GroupSweepResult:
    """Outcome of one parallel pass over a set of groups."""
    groups: List[int]
    errors: List[float]
    iterations: List[int]
    converged: List[bool]
    wall_time: float                # seconds
    kernel_name: str
    n_workers: int

    @property
    def max_error(self):
        return max(self.errors) if self.errors else 0.0

    @property
    def total_iterations(self):
        return int(sum(self.iterations))

    @property
    def all_converged(self):
        return all(self.converged)

    def summary(self):
        """Print human-readable summary."""
        print("=" * 60)
        print(f"  Group Sweep ({self.kernel_name}, {self.n_workers} worker"
              f"{'s' if self.n_workers > 1 else ''})")
        print("=" * 60)
        for g, err, it, ok in zip(self.groups, self.errors, self.iterations, self.converged):
            status = "ok" if ok else "NOT CONVERGED"
            print(f"  Group {g:4d}: error = {err:.3e}  iterations = {it:5d}  {status}")
        print(f"  Total inner iterations: {self.total_iterations:,}")
        print(f"  Wall time: {self.wall_time:.3f} s")
        print("=" * 60)

    def to_dict(self):
        """Convert to JSON-serializable dict."""
        return {
            'groups': [int(g) for g in self.groups],
            'errors': [float(e) for e in self.errors],
            'iterations': [int(i) for i in self.iterations],
            'converged': [bool(c) for c in self.converged],
            'wall_time': float(self.wall_time),
            'kernel_name': self.kernel_name,
            'n_workers': self.n_workers,
        }


# ===================================================================
# Worker (top-level for pickle)
# ===================================================================

def _worker_solve_group(args):
    """Solve one group on a private context.

    Returns:
        (g, phi, error, iterations, converged, kernel_name)
    """
    context, kernel, settings, g, external_only = args
    solver = get_kernel(kernel, context, settings)

    if external_only:
        solver.build_external_source(g)
    else:
        solver.build_fixed_source(g)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        error, iterations = solver.solve(g)

    converged = not any(issubclass(w.category, ConvergenceWarning) for w in caught)
    phi = np.array(context.state.flux(g), copy=True)
    return g, phi, float(error), int(iterations), converged, solver.get_name()


# ===================================================================
# Driver
# ===================================================================

def solve_groups(
    context: SolverContext,
    groups: Optional[Sequence[int]] = None,
    kernel: str = 'si',
    settings: Optional[InnerSettings] = None,
    n_workers: Optional[int] = 1,
    external_only: bool = False,
) -> GroupSweepResult:
    """Solve several groups independently against a frozen state.

    Args:
        context: shared SolverContext; its state receives the new fluxes
        groups: groups to solve (default: all)
        kernel: inner solver name ('si', 'livolant', 'gmres')
        settings: InnerSettings for every task
        n_workers: worker processes; None -> os.cpu_count()
        external_only: build fission+external sources only

    Returns:
        GroupSweepResult; non-converged groups also raise a
        ConvergenceWarning here.
    """
    if groups is None:
        groups = range(context.number_groups)
    groups = [int(g) for g in groups]
    if n_workers is None:
        n_workers = cpu_count() or 1
    n_workers = max(1, min(int(n_workers), max(1, len(groups))))
    settings = settings or InnerSettings()

    t_start = time.time()
    snapshot = context.state.copy()

    task_args = [
        (context.with_state(snapshot.copy()), kernel, settings, g, external_only)
        for g in groups
    ]

    if n_workers == 1:
        results = [_worker_solve_group(args) for args in task_args]
    else:
        with Pool(processes=n_workers) as pool:
            results = pool.map(_worker_solve_group, task_args)

    errors, iterations, converged = [], [], []
    kernel_name = kernel
    for g, phi, error, its, ok, kernel_name in results:
        context.state.set_flux(g, phi)
        errors.append(error)
        iterations.append(its)
        converged.append(ok)
        if not ok:
            warnings.warn(
                f"group {g}: inner iterations did not converge "
                f"(error {error:.3e} after {its} iterations)",
                ConvergenceWarning,
                stacklevel=2,
            )

    return GroupSweepResult(
        groups=groups,
        errors=errors,
        iterations=iterations,
        converged=converged,
        wall_time=time.time() - t_start,
        kernel_name=kernel_name,
        n_workers=n_workers,
    )
