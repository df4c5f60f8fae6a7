"""Verification problems with known answers for the inner solvers."""
from .benchmarks import (
    build_slab_problem,
    build_two_group_scenario,
    run_verification,
    solve_all_groups,
    upwind_slab_operators,
)
