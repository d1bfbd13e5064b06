"""Unit tests for the sphere primitive.

Tests cover:
- Sphere construction
- Ray-sphere intersection (hit, miss, inside, tangent, interval bounds)
- Face orientation of the returned normal
"""

import math

import pytest
import taichi as ti


class TestSphereBasics:
    """Tests for Sphere dataclass creation."""

    def test_make_sphere(self):
        """Test make_sphere stores center and radius."""
        from glint.core.ray import vec3
        from glint.geometry.sphere import make_sphere

        center = ti.Vector.field(3, dtype=ti.f64, shape=())
        radius = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            s = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center[None] = s.center
            radius[None] = s.radius

        test_kernel()
        assert abs(center[None][0] - 1.0) < 1e-12
        assert abs(center[None][1] - 2.0) < 1e-12
        assert abs(center[None][2] - 3.0) < 1e-12
        assert abs(radius[None] - 0.5) < 1e-12


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def _hit(self, origin, direction, center, radius, t_min=0.001, t_max=math.inf):
        from glint.core.ray import vec3
        from glint.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t = ti.field(dtype=ti.f64, shape=())
        point = ti.Vector.field(3, dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(
            ox: ti.f64, oy: ti.f64, oz: ti.f64,
            dx: ti.f64, dy: ti.f64, dz: ti.f64,
            cx: ti.f64, cy: ti.f64, cz: ti.f64,
            r: ti.f64, lo: ti.f64, hi: ti.f64,
        ):
            sphere = Sphere(center=vec3(cx, cy, cz), radius=r)
            rec = hit_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), sphere, lo, hi)
            hit[None] = rec.hit
            t[None] = rec.t
            point[None] = rec.point
            normal[None] = rec.normal
            front_face[None] = rec.front_face

        test_kernel(*origin, *direction, *center, radius, t_min, t_max)
        return hit[None], t[None], point[None], normal[None], front_face[None]

    def test_direct_hit(self):
        """Test a ray straight at a sphere hits its near side."""
        hit, t, point, normal, front_face = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5
        )
        assert hit == 1
        assert abs(t - 0.5) < 1e-12
        assert abs(point[2] - (-0.5)) < 1e-12
        assert abs(normal[2] - 1.0) < 1e-12
        assert front_face == 1

    def test_miss(self):
        """Test a ray passing beside the sphere misses."""
        hit, *_ = self._hit((0.0, 2.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert hit == 0

    def test_from_inside_hits_far_side_with_back_face(self):
        """Test a ray starting inside hits the far side and flips the normal."""
        hit, t, _, normal, front_face = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 2.0
        )
        assert hit == 1
        assert abs(t - 2.0) < 1e-12
        assert front_face == 0
        # Outward normal is (0, 0, -1); stored normal faces the ray
        assert abs(normal[2] - 1.0) < 1e-12

    def test_tangent_hit(self):
        """Test a ray grazing the sphere hits with zero discriminant."""
        hit, t, *_ = self._hit((1.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -5.0), 1.0)
        assert hit == 1
        assert abs(t - 5.0) < 1e-6

    def test_sphere_behind_ray_misses(self):
        """Test a sphere entirely behind the origin is not hit."""
        hit, *_ = self._hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, -3.0), 1.0)
        assert hit == 0

    def test_near_root_outside_interval_falls_back_to_far_root(self):
        """Test the far root is used when the near root is below t_min."""
        hit, t, *_ = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -3.0), 1.0, t_min=2.5
        )
        assert hit == 1
        assert abs(t - 4.0) < 1e-12

    def test_interval_is_open(self):
        """Test a root exactly at t_min or t_max is rejected."""
        hit_lo, *_ = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -3.0), 1.0, t_min=2.0, t_max=3.9
        )
        hit_hi, *_ = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -3.0), 1.0, t_min=0.0, t_max=2.0
        )
        assert hit_lo == 0
        assert hit_hi == 0

    def test_unnormalized_direction(self):
        """Test t scales with the direction length."""
        hit, t, point, *_ = self._hit(
            (0.0, 0.0, 0.0), (0.0, 0.0, -2.0), (0.0, 0.0, -3.0), 1.0
        )
        assert hit == 1
        assert abs(t - 1.0) < 1e-12
        assert abs(point[2] - (-2.0)) < 1e-12

    @pytest.mark.parametrize(
        "direction",
        [(0.03, -0.06, -1.0), (0.2, -0.1, -1.0), (-0.1, -0.3, -1.0)],
    )
    def test_hit_point_lies_on_sphere(self, direction):
        """Test |p - center| equals the radius and the unit normal faces the ray."""
        center = (0.1, -0.2, -3.0)
        radius = 0.9
        hit, t, point, normal, _ = self._hit((0.0, 0.0, 0.0), direction, center, radius)
        assert hit == 1
        for k in range(3):
            assert abs(point[k] - t * direction[k]) < 1e-9
        dist = math.sqrt(sum((point[k] - center[k]) ** 2 for k in range(3)))
        assert abs(dist - radius) < 1e-9
        assert abs(math.sqrt(sum(normal[k] ** 2 for k in range(3))) - 1.0) < 1e-9
        assert sum(normal[k] * direction[k] for k in range(3)) <= 0.0

    def test_normal_faces_incoming_ray(self):
        """Test dot(direction, normal) is never positive."""
        direction = (0.2, -0.1, -1.0)
        _, _, _, normal, _ = self._hit((0.0, 0.0, 0.0), direction, (0.0, 0.0, -2.0), 1.0)
        assert sum(direction[k] * normal[k] for k in range(3)) <= 0.0


class TestSetFaceNormal:
    """Tests for set_face_normal."""

    def test_perpendicular_ray_counts_as_back_face(self):
        """Test dot(direction, outward) == 0 gives front_face 0."""
        from glint.core.ray import vec3
        from glint.geometry.sphere import set_face_normal

        front = ti.field(dtype=ti.i32, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            n, f = set_face_normal(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
            front[None] = f
            normal[None] = n

        test_kernel()
        assert front[None] == 0
        assert abs(normal[None][1] - (-1.0)) < 1e-12
