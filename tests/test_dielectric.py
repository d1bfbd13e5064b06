"""Unit tests for the dielectric material."""

import math

import numpy as np
import pytest
import taichi as ti

NUM_SAMPLES = 2000


def _scatter_many(ior, incident, normal, front_face, seed=0):
    from glint.core.ray import vec3
    from glint.core.sampler import seed_streams
    from glint.materials.dielectric import scatter_dielectric

    seed_streams(seed, NUM_SAMPLES)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=NUM_SAMPLES)
    attenuations = ti.Vector.field(3, dtype=ti.f64, shape=NUM_SAMPLES)
    scattered = ti.field(dtype=ti.i32, shape=NUM_SAMPLES)

    @ti.kernel
    def test_kernel(
        eta: ti.f64,
        ix: ti.f64, iy: ti.f64, iz: ti.f64,
        nx: ti.f64, ny: ti.f64, nz: ti.f64,
        ff: ti.i32,
    ):
        for k in range(NUM_SAMPLES):
            d, att, ok = scatter_dielectric(eta, vec3(ix, iy, iz), vec3(nx, ny, nz), ff, k)
            directions[k] = d
            attenuations[k] = att
            scattered[k] = ok

    test_kernel(ior, *incident, *normal, front_face)
    return directions.to_numpy(), attenuations.to_numpy(), scattered.to_numpy()


class TestRefractionRatio:
    """Tests for refraction_ratio and cannot_refract."""

    def test_ratio_by_side(self):
        """Test 1/ior entering and ior leaving."""
        from glint.materials.dielectric import refraction_ratio

        entering = ti.field(dtype=ti.f64, shape=())
        leaving = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            entering[None] = refraction_ratio(1.5, 1)
            leaving[None] = refraction_ratio(1.5, 0)

        test_kernel()
        assert abs(entering[None] - 1.0 / 1.5) < 1e-12
        assert abs(leaving[None] - 1.5) < 1e-12

    def test_cannot_refract_past_critical_angle(self):
        """Test total internal reflection is detected only past the critical angle."""
        from glint.materials.dielectric import cannot_refract

        steep = ti.field(dtype=ti.i32, shape=())
        shallow = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            # Leaving glass at 60 degrees: 1.5 * sin(60) > 1
            steep[None] = cannot_refract(1.5, 0.5)
            # Leaving glass at 30 degrees: 1.5 * sin(30) < 1
            shallow[None] = cannot_refract(1.5, ti.sqrt(3.0) / 2.0)

        test_kernel()
        assert steep[None] == 1
        assert shallow[None] == 0


class TestDielectricScatter:
    """Tests for scatter_dielectric."""

    def test_total_internal_reflection_always_reflects(self):
        """Test every sample reflects when ratio * sin(theta) > 1."""
        incident = (math.sqrt(3.0), -1.0, 0.0)
        directions, _, scattered = _scatter_many(1.5, incident, (0.0, 1.0, 0.0), front_face=0)
        unit = np.array(incident) / np.linalg.norm(incident)
        mirror = unit - 2.0 * unit.dot([0.0, 1.0, 0.0]) * np.array([0.0, 1.0, 0.0])
        assert (scattered == 1).all()
        assert np.allclose(directions, mirror, atol=1e-12)

    def test_attenuation_is_white(self):
        """Test glass does not absorb."""
        _, attenuations, _ = _scatter_many(1.5, (0.3, -1.0, 0.0), (0.0, 1.0, 0.0), front_face=1)
        assert (attenuations == 1.0).all()

    def test_normal_incidence_mostly_refracts(self):
        """Test about 4% of normal-incidence samples reflect for ior 1.5."""
        directions, _, scattered = _scatter_many(
            1.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), front_face=1, seed=9
        )
        reflected = directions[:, 1] > 0.0
        assert (scattered == 1).all()
        assert abs(reflected.mean() - 0.04) < 0.02
        # Refracted rays continue straight through
        assert np.allclose(directions[~reflected], [0.0, -1.0, 0.0], atol=1e-12)

    def test_refraction_bends_toward_normal_when_entering(self):
        """Test Snell's law for rays entering glass."""
        incident = np.array([1.0, -1.0, 0.0]) / math.sqrt(2.0)
        directions, _, _ = _scatter_many(1.5, tuple(incident), (0.0, 1.0, 0.0), front_face=1, seed=4)
        refracted = directions[directions[:, 1] < 0.0]
        assert len(refracted) > 0
        sin_out = refracted[:, 0] / np.linalg.norm(refracted, axis=1)
        assert np.allclose(sin_out, math.sin(math.pi / 4.0) / 1.5, atol=1e-9)


class TestDielectricRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_get(self):
        """Test the IOR is stored per material."""
        from glint.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        idx = add_dielectric_material(2.4)
        assert get_dielectric_material_count() == 1

        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_dielectric_ior(mat_idx)

        test_kernel(idx)
        assert abs(result[None] - 2.4) < 1e-12

    def test_default_ior(self):
        """Test the default IOR is 1.5."""
        from glint.materials.dielectric import add_dielectric_material, dielectric_iors

        idx = add_dielectric_material()
        assert abs(dielectric_iors[idx] - 1.5) < 1e-12

    @pytest.mark.parametrize("ior", [0.0, -1.5])
    def test_non_positive_ior_rejected(self, ior):
        """Test an IOR <= 0 raises ValueError."""
        from glint.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError):
            add_dielectric_material(ior)
