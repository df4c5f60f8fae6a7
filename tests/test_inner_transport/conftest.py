"""
Shared pytest fixtures for inner_transport test suite.
"""
import numpy as np
import pytest

from inner_transport.context import SolverContext
from inner_transport.materials import MaterialLibrary, build_material
from inner_transport.mesh import Mesh
from inner_transport.settings import InnerSettings
from inner_transport.sources import ExternalSource
from inner_transport.sweepers import AngularTransform, InfiniteMediumSweeper
from inner_transport.validation.benchmarks import build_slab_problem, build_two_group_scenario


@pytest.fixture
def rng():
    """Numpy Generator with fixed seed for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def two_group_context():
    """1 cell, 2 groups, sigma_t = 1, unit source in group 0 (no Numba)."""
    return build_two_group_scenario(use_numba=False)


@pytest.fixture
def slab_context():
    """Two-region two-group slab with down- and upscatter (no Numba)."""
    return build_slab_problem(n_cells=12, n_angles=4, incident=0.5, use_numba=False)


@pytest.fixture
def three_group_library():
    """Two materials, three groups; group 1 receives upscatter from group 2."""
    fuel = build_material(
        'fuel', 0,
        sigma_t=[1.0, 1.2, 1.5],
        sigma_s=[[0.30, 0.00, 0.00],
                 [0.20, 0.60, 0.05],
                 [0.05, 0.30, 0.90]],
        nu_sigma_f=[0.01, 0.05, 0.20],
        chi=[0.7, 0.3, 0.0],
    )
    moderator = build_material(
        'moderator', 1,
        sigma_t=[0.8, 1.0, 1.4],
        sigma_s=[[0.20, 0.00, 0.00],
                 [0.40, 0.50, 0.10],
                 [0.00, 0.40, 1.20]],
    )
    return MaterialLibrary([fuel, moderator])


@pytest.fixture
def three_group_mesh():
    """Six cells: fuel, fuel, moderator, moderator, fuel, moderator."""
    return Mesh(np.array([0, 0, 1, 1, 0, 1]))


@pytest.fixture
def three_group_context(three_group_library, three_group_mesh, rng):
    """Infinite-medium sweeps over the 6-cell mesh with a random state."""
    n_cells = three_group_mesh.number_cells
    sigma_t = np.array([
        [three_group_library.sigma_t(m, g) for m in three_group_mesh.material_map]
        for g in range(3)
    ])
    context = SolverContext.build(
        mesh=three_group_mesh,
        materials=three_group_library,
        sweeper=InfiniteMediumSweeper(sigma_t),
        transform=AngularTransform.single_angle(),
        use_numba=False,
    )
    context.state.phi[:] = rng.uniform(0.5, 2.0, size=(3, n_cells))
    return context


@pytest.fixture
def tight_settings():
    """Tolerance 1e-10, generous iteration cap."""
    return InnerSettings(max_iters=1000, tolerance=1e-10)


@pytest.fixture
def external_source():
    """Unit source in group 0 of a one-cell, two-group problem."""
    source = ExternalSource(2, 1)
    source.set_group(0, 1.0)
    return source
