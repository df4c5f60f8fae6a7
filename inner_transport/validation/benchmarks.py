"""
Verification benchmarks for the within-group solvers.

Two canned problems with known behaviour:

  1. One cell, two groups, infinite medium (sigma_t = 1, no fission):

        sigma_s = [[0.10, 0.00],      destination-first, sigma_s[g, gp]
                   [0.05, 0.20]]
        Q       = [1, 0]

     Group 0 converges to 1 / (1 - 0.1) and its error contracts by 0.1
     per source iteration; group 1 then converges to 0.05 phi0 / 0.8.

  2. Heterogeneous two-group slab (step upwind sweep, Gauss-Legendre
     angles, down- and upscatter).  Source Iteration, Livolant and GMRES
     must agree on the converged flux.
"""
import json
import os

import numpy as np

from ..context import SolverContext
from ..kernels import get_kernel
from ..materials import MaterialLibrary, build_material
from ..mesh import Mesh
from ..settings import InnerSettings
from ..sources import ExternalSource
from ..state import State
from ..sweepers import AngularTransform, InfiniteMediumSweeper, MatrixSweeper


# ===================================================================
# Reference values
# ===================================================================

TWO_GROUP_SIGMA_S = [[0.10, 0.00],
                     [0.05, 0.20]]
TWO_GROUP_PHI = (
    1.0 / (1.0 - 0.10),
    0.05 / (1.0 - 0.10) / (1.0 - 0.20),
)

# Source Iteration from a zero flux needs 9 sweeps to get below 1e-8
# when the error shrinks by 0.1 per sweep.
TWO_GROUP_TOLERANCE = 1.0e-8
TWO_GROUP_SI_ITERATIONS = 9

SLAB_TOLERANCE = 1.0e-10
SLAB_AGREEMENT = 1.0e-6


# ===================================================================
# Problem builders
# ===================================================================

def build_two_group_scenario(use_numba=False):
    """One-cell, two-group infinite medium with a unit source in group 0."""
    material = build_material(
        'infinite', 0,
        sigma_t=[1.0, 1.0],
        sigma_s=TWO_GROUP_SIGMA_S,
    )
    external = ExternalSource(n_groups=2, n_cells=1)
    external.set_group(0, 1.0)

    return SolverContext.build(
        mesh=Mesh.uniform(1),
        materials=MaterialLibrary([material]),
        sweeper=InfiniteMediumSweeper([1.0]),
        transform=AngularTransform.single_angle(),
        external_source=external,
        use_numba=use_numba,
    )


def upwind_slab_operators(sigma_t, dx, mu):
    """Step-characteristic (upwind) streaming + collision matrices.

    Row i of L_n reads |mu_n|/dx (psi_i - psi_upwind) + sigma_t,i psi_i,
    with the upwind neighbour on the left for mu > 0 and on the right
    for mu < 0.

    Args:
        sigma_t: float[n_cells] total cross section per cell
        dx: cell width
        mu: float[n_angles] direction cosines

    Returns:
        float64[n_angles, n_cells, n_cells]
    """
    sigma_t = np.asarray(sigma_t, dtype=np.float64)
    n_cells = len(sigma_t)
    operators = np.zeros((len(mu), n_cells, n_cells))
    for n, m in enumerate(mu):
        stream = abs(m) / dx
        operators[n] = np.diag(stream + sigma_t)
        coupling = np.diag(np.full(n_cells - 1, stream), k=-1 if m > 0.0 else 1)
        operators[n] -= coupling
    return operators


def upwind_slab_boundary(operators, dx, mu, incident):
    """Angular flux response of each angle to a constant incident flux."""
    n_angles, n_cells, _ = operators.shape
    boundary = np.zeros((n_angles, n_cells))
    for n, m in enumerate(mu):
        inflow = np.zeros(n_cells)
        inflow[0 if m > 0.0 else -1] = abs(m) / dx * incident
        boundary[n] = np.linalg.solve(operators[n], inflow)
    return boundary


def build_slab_problem(n_cells=20, width=10.0, n_angles=8, incident=0.0,
                       use_numba=False):
    """Two-region, two-group slab with a flat group-0 source.

    Args:
        n_cells: total cells (split evenly between the two regions)
        width: slab width
        n_angles: Gauss-Legendre order
        incident: isotropic incident angular flux on both faces, per group

    Returns:
        SolverContext with a zero initial state
    """
    inner = build_material(
        'inner', 0,
        sigma_t=[1.0, 1.5],
        sigma_s=[[0.5, 0.1],
                 [0.3, 0.9]],
    )
    outer = build_material(
        'outer', 1,
        sigma_t=[0.8, 1.2],
        sigma_s=[[0.40, 0.05],
                 [0.20, 0.80]],
    )
    library = MaterialLibrary([inner, outer])

    half = n_cells // 2
    mesh = Mesh.from_regions([half, n_cells - half], [0, 1])
    dx = width / n_cells

    transform = AngularTransform.gauss_legendre(n_angles)
    operators, boundary = [], []
    for g in range(library.number_groups):
        sigma_t = np.array([library.sigma_t(m, g) for m in mesh.material_map])
        ops = upwind_slab_operators(sigma_t, dx, transform.mu)
        operators.append(ops)
        boundary.append(upwind_slab_boundary(ops, dx, transform.mu, incident))

    external = ExternalSource(library.number_groups, n_cells)
    external.set_group(0, 1.0)

    return SolverContext.build(
        mesh=mesh,
        materials=library,
        sweeper=MatrixSweeper(np.stack(operators), np.stack(boundary)),
        transform=transform,
        state=State.create(library.number_groups, n_cells),
        external_source=external,
        use_numba=use_numba,
    )


def solve_all_groups(context, kernel='si', settings=None):
    """One Gauss-Seidel pass over the groups, highest energy first.

    Returns:
        list of (flux_error, iterations) per group
    """
    solver = get_kernel(kernel, context, settings)
    results = []
    for g in range(context.number_groups):
        solver.build_fixed_source(g)
        results.append(solver.solve(g))
    return results


# ===================================================================
# Report
# ===================================================================

def run_verification(verbose=True, report_path=None, use_numba=False):
    """Run both benchmarks and print a pass/fail report.

    Parameters
    ----------
    verbose : bool
        Print the report.
    report_path : str, optional
        Write the collected numbers as JSON to this path.
    use_numba : bool
        Fill scattering tables with the JIT kernel.

    Returns
    -------
    int
        Exit status: 0 if every check passes, 1 otherwise.
    """
    checks = []

    # Benchmark 1: two-group infinite medium
    settings = InnerSettings(max_iters=100, tolerance=TWO_GROUP_TOLERANCE)
    iterations = {}
    for kernel in ('si', 'livolant', 'gmres'):
        context = build_two_group_scenario(use_numba=use_numba)
        results = solve_all_groups(context, kernel, settings)
        iterations[kernel] = results[0][1]
        for g, expected in enumerate(TWO_GROUP_PHI):
            phi = float(context.state.flux(g)[0])
            checks.append((
                f"two-group {kernel:8s} phi[{g}]",
                phi, expected,
                abs(phi - expected) <= 1e-6 * expected,
            ))
    checks.append((
        "two-group si iterations",
        iterations['si'], TWO_GROUP_SI_ITERATIONS,
        iterations['si'] == TWO_GROUP_SI_ITERATIONS,
    ))
    checks.append((
        "two-group livolant iterations",
        iterations['livolant'], iterations['si'],
        iterations['livolant'] < iterations['si'],
    ))

    # Benchmark 2: slab cross-validation
    settings = InnerSettings(max_iters=1000, tolerance=SLAB_TOLERANCE)
    fluxes = {}
    for kernel in ('si', 'livolant', 'gmres'):
        context = build_slab_problem(incident=0.5, use_numba=use_numba)
        solve_all_groups(context, kernel, settings)
        fluxes[kernel] = context.state.phi.copy()
    for kernel in ('livolant', 'gmres'):
        diff = float(np.max(np.abs(fluxes[kernel] - fluxes['si'])))
        checks.append((
            f"slab {kernel} vs si max |dphi|",
            diff, SLAB_AGREEMENT,
            diff <= SLAB_AGREEMENT,
        ))

    status = 0 if all(ok for *_, ok in checks) else 1

    if verbose:
        print("=" * 70)
        print("  Within-Group Solver Verification")
        print("=" * 70)
        for name, value, reference, ok in checks:
            print(f"  {name:36s} {value:14.8g}  ref {reference:<12.6g} "
                  f"{'PASS' if ok else 'FAIL'}")
        print()
        print(f"  RESULT: {'PASS' if status == 0 else 'FAIL'}")
        print("=" * 70)

    if report_path is not None:
        report = {
            'checks': [
                {'name': name, 'value': float(value), 'reference': float(reference),
                 'passed': bool(ok)}
                for name, value, reference, ok in checks
            ],
            'status': status,
        }
        directory = os.path.dirname(report_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2)
        if verbose:
            print(f"\n  Verification report saved to {report_path}")

    return status

