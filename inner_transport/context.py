"""
Shared, read-only setup for all within-group solvers.

SolverContext bundles the collaborators every kernel needs (mesh,
materials, sweep, angular transform, scattering table, sources, state).
It is validated once by SolverContext.build(); bad configurations fail
there instead of surfacing mid-iteration.
"""
from dataclasses import dataclass, replace
from typing import Optional

from .constants import SUPPORTED_DIMENSIONS
from .exceptions import ConfigurationError
from .materials import MaterialLibrary
from .mesh import Mesh
from .scattering import ScatteringTable
from .sources import ExternalSource, FissionSource
from .state import State
from .sweepers import AngularTransform, Sweeper


@dataclass(frozen=True)
class SolverContext:
    """Immutable bundle of inner-iteration collaborators.

    The state is shared by reference: solvers write their group's flux
    into it.  Use with_state() to hand a task its own copy.
    """
    mesh: Mesh
    materials: MaterialLibrary
    sweeper: Sweeper
    transform: AngularTransform
    scattering: ScatteringTable
    state: State
    fission_source: Optional[FissionSource] = None
    external_source: Optional[ExternalSource] = None

    @property
    def number_groups(self):
        return self.materials.number_groups

    @property
    def number_cells(self):
        return self.mesh.number_cells

    @classmethod
    def build(
        cls,
        mesh: Mesh,
        materials: MaterialLibrary,
        sweeper: Sweeper,
        transform: AngularTransform,
        state: Optional[State] = None,
        fission_source: Optional[FissionSource] = None,
        external_source: Optional[ExternalSource] = None,
        use_numba: bool = True,
    ) -> "SolverContext":
        """Validate the collaborators and build the scattering table.

        Raises:
            ConfigurationError for any inconsistent or unsupported setup.
        """
        if not isinstance(sweeper, Sweeper):
            raise ConfigurationError(
                f"sweeper must implement Sweeper, got {type(sweeper).__name__}"
            )
        if sweeper.dimension not in SUPPORTED_DIMENSIONS:
            raise ConfigurationError(
                f"unsupported discretization dimension {sweeper.dimension}; "
                f"supported: {SUPPORTED_DIMENSIONS}"
            )
        if mesh.dimension != sweeper.dimension:
            raise ConfigurationError(
                f"mesh is {mesh.dimension}D but sweeper is {sweeper.dimension}D"
            )

        n_cells = mesh.number_cells
        if n_cells == 0:
            raise ConfigurationError("mesh has no cells")
        if sweeper.number_cells != n_cells:
            raise ConfigurationError(
                f"sweeper has {sweeper.number_cells} cells, mesh has {n_cells}"
            )
        if transform.number_angles != sweeper.number_angles:
            raise ConfigurationError(
                f"quadrature has {transform.number_angles} angles, "
                f"sweeper expects {sweeper.number_angles}"
            )

        mat_min = int(mesh.material_map.min())
        mat_max = int(mesh.material_map.max())
        if mat_min < 0 or mat_max >= materials.number_materials:
            raise ConfigurationError(
                f"material map references ids [{mat_min}, {mat_max}] but the "
                f"library holds {materials.number_materials} materials"
            )

        n_groups = materials.number_groups
        if sweeper.number_groups is not None and sweeper.number_groups != n_groups:
            raise ConfigurationError(
                f"sweeper carries data for {sweeper.number_groups} groups, "
                f"materials have {n_groups}"
            )
        if state is None:
            state = State.create(n_groups, n_cells)
        elif (state.number_groups, state.number_cells) != (n_groups, n_cells):
            raise ConfigurationError(
                f"state shape {state.phi.shape} does not match ({n_groups}, {n_cells})"
            )

        if external_source is not None and (
            (external_source.number_groups, external_source.number_cells)
            != (n_groups, n_cells)
        ):
            raise ConfigurationError("external source shape does not match the problem")

        return cls(
            mesh=mesh,
            materials=materials,
            sweeper=sweeper,
            transform=transform,
            scattering=ScatteringTable(mesh, materials, use_numba=use_numba),
            state=state,
            fission_source=fission_source,
            external_source=external_source,
        )

    def with_state(self, state: State) -> "SolverContext":
        """Same collaborators, different state (e.g. a per-task copy)."""
        return replace(self, state=state)
