"""
Tests for inner_transport.sources module (SourceBuilder, FissionSource,
ExternalSource).
"""
import numpy as np
import pytest

from inner_transport.constants import FOUR_PI
from inner_transport.context import SolverContext
from inner_transport.sources import ExternalSource, FissionSource, SourceBuilder
from inner_transport.sweepers import AngularTransform, InfiniteMediumSweeper


def manual_fixed_source(context, g):
    """In-scatter from every other group, summed straight from the materials."""
    lib = context.materials
    q = np.zeros(context.number_cells)
    for i, m in enumerate(context.mesh.material_map):
        for gp in range(context.number_groups):
            if gp != g:
                q[i] += lib.sigma_s(m, g, gp) * context.state.flux(gp)[i]
    return context.transform.moment_to_discrete(q)


class TestFixedSource:
    def test_matches_manual_sum(self, three_group_context):
        builder = SourceBuilder(three_group_context)
        for g in range(3):
            np.testing.assert_allclose(
                builder.fixed_source(g), manual_fixed_source(three_group_context, g)
            )

    def test_fast_group_ignores_other_groups(self, three_group_context):
        """Group 0 has no upscatter and nothing above it."""
        builder = SourceBuilder(three_group_context)
        three_group_context.state.phi[1:] = 1.0e6
        np.testing.assert_array_equal(builder.fixed_source(0), 0.0)

    def test_last_group_sums_only_downscatter(self, three_group_context):
        ctx = three_group_context
        table = ctx.scattering
        expected = sum(table.coefficient(2, gp) * ctx.state.flux(gp) for gp in (0, 1))
        np.testing.assert_allclose(SourceBuilder(ctx).fixed_source(2), expected)

    def test_excludes_within_group(self, three_group_context):
        ctx = three_group_context
        builder = SourceBuilder(ctx)
        before = builder.fixed_source(1).copy()
        ctx.state.phi[1] = 0.0
        np.testing.assert_allclose(builder.fixed_source(1), before)

    def test_linear_in_fluxes(self, three_group_context, rng):
        ctx = three_group_context
        builder = SourceBuilder(ctx)
        phi_a = rng.uniform(size=ctx.state.phi.shape)
        phi_b = rng.uniform(size=ctx.state.phi.shape)

        ctx.state.phi[:] = phi_a
        q_a = builder.fixed_source(1).copy()
        ctx.state.phi[:] = phi_b
        q_b = builder.fixed_source(1).copy()
        ctx.state.phi[:] = 2.0 * phi_a + 3.0 * phi_b
        q_ab = builder.fixed_source(1).copy()

        np.testing.assert_allclose(q_ab, 2.0 * q_a + 3.0 * q_b)

    def test_external_added_once(self, two_group_context):
        builder = SourceBuilder(two_group_context)
        np.testing.assert_allclose(builder.fixed_source(0), [1.0])
        np.testing.assert_allclose(builder.fixed_source(0), [1.0])

    def test_records_group(self, three_group_context):
        builder = SourceBuilder(three_group_context)
        assert builder.group is None
        builder.fixed_source(2)
        assert builder.group == 2

    def test_verbose_prints_group(self, three_group_context, capsys):
        SourceBuilder(three_group_context, verbose=True).fixed_source(1)
        out = capsys.readouterr().out
        assert "Group:" in out and out.strip().endswith("1")


class TestExternalFixedSource:
    def test_skips_inscatter(self, two_group_context):
        ctx = two_group_context
        ctx.state.phi[0] = 5.0
        builder = SourceBuilder(ctx)
        np.testing.assert_allclose(builder.external_fixed_source(1), [0.0])
        np.testing.assert_allclose(builder.fixed_source(1), [0.25])


class TestScatterSource:
    def test_within_group_only(self, three_group_context):
        ctx = three_group_context
        builder = SourceBuilder(ctx)
        phi = np.full(ctx.number_cells, 2.0)
        expected = 2.0 * ctx.scattering.coefficient(1, 1)
        np.testing.assert_allclose(builder.scatter_source(1, phi), expected)

    def test_does_not_touch_state(self, three_group_context):
        ctx = three_group_context
        before = ctx.state.phi.copy()
        SourceBuilder(ctx).scatter_source(0, np.ones(ctx.number_cells))
        np.testing.assert_array_equal(ctx.state.phi, before)


class TestExternalSource:
    def test_uninitialized_until_set(self):
        src = ExternalSource(2, 3)
        assert not src.initialized()
        src.set_group(1, [1.0, 2.0, 3.0])
        assert src.initialized()
        np.testing.assert_allclose(src.source(1), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(src.source(0), 0.0)


class TestFissionSource:
    @pytest.fixture
    def fission(self, three_group_context):
        ctx = three_group_context
        return FissionSource(ctx.state, ctx.mesh, ctx.materials).initialize()

    def test_density_matches_state(self, fission, three_group_context):
        ctx = three_group_context
        fission.update()
        expected = np.zeros(ctx.number_cells)
        for i, m in enumerate(ctx.mesh.material_map):
            for g in range(3):
                expected[i] += ctx.materials.nu_sigma_f(m, g) * ctx.state.phi[g, i]
        np.testing.assert_allclose(fission.density(), expected)

    def test_update_does_not_accumulate(self, fission):
        first = fission.update().density().copy()
        np.testing.assert_allclose(fission.update().density(), first)

    def test_scale_applied_once(self, fission, three_group_context):
        ctx = three_group_context
        fission.update(scale=0.5)
        assert fission.scale == pytest.approx(0.5 / FOUR_PI)
        chi = np.array([ctx.materials.chi(m, 0) for m in ctx.mesh.material_map])
        np.testing.assert_allclose(
            fission.source(0), fission.density() * chi * 0.5 / FOUR_PI
        )

    def test_non_fissile_cells_have_no_source(self, fission, three_group_context):
        fission.update()
        moderator = three_group_context.mesh.cells_of(1)
        np.testing.assert_array_equal(fission.source(0)[moderator], 0.0)

    def test_added_to_fixed_source(self, three_group_context):
        ctx = three_group_context
        fission = FissionSource(ctx.state, ctx.mesh, ctx.materials).initialize().update()
        with_fission = SolverContext.build(
            ctx.mesh, ctx.materials, ctx.sweeper, ctx.transform,
            state=ctx.state, fission_source=fission, use_numba=False,
        )
        plain = SourceBuilder(ctx).fixed_source(0).copy()
        total = SourceBuilder(with_fission).fixed_source(0)
        np.testing.assert_allclose(total, plain + fission.source(0))

    def test_reset_zeroes_density(self, fission):
        fission.update(scale=2.0)
        fission.reset()
        np.testing.assert_array_equal(fission.density(), 0.0)
        assert fission.scale == 1.0


class TestSlabQuadrature:
    """Gauss-Legendre weights sum to 2, so M divides the in-scatter by 2."""

    @pytest.fixture
    def context(self, three_group_context, rng):
        ctx = three_group_context
        sweeper = InfiniteMediumSweeper(
            np.array([
                [ctx.materials.sigma_t(m, g) for m in ctx.mesh.material_map]
                for g in range(3)
            ]),
            n_angles=4,
        )
        transform = AngularTransform.gauss_legendre(4)
        fission = FissionSource(
            ctx.state, ctx.mesh, ctx.materials, angular_norm=transform.total_weight,
        ).initialize().update(scale=0.8)
        external = ExternalSource(3, ctx.number_cells)
        external.set_group(1, rng.uniform(0.1, 1.0, size=ctx.number_cells))
        return SolverContext.build(
            ctx.mesh, ctx.materials, sweeper, transform, state=ctx.state,
            fission_source=fission, external_source=external, use_numba=False,
        )

    def test_total_weight(self, context):
        assert context.transform.total_weight == pytest.approx(2.0)

    def test_inscatter_transformed_once(self, context):
        table = context.scattering
        inscatter = sum(table.coefficient(1, gp) * context.state.flux(gp) for gp in (0, 2))
        expected = (inscatter / 2.0
                    + context.fission_source.source(1)
                    + context.external_source.source(1))
        np.testing.assert_allclose(SourceBuilder(context).fixed_source(1), expected,
                                   rtol=1e-12)

    def test_matches_manual_sum(self, context):
        total = SourceBuilder(context).fixed_source(2)
        expected = (manual_fixed_source(context, 2)
                    + context.fission_source.source(2)
                    + context.external_source.source(2))
        np.testing.assert_allclose(total, expected, rtol=1e-12)
