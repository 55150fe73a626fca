"""Unit tests for the metal material.

Tests cover:
- Perfect mirror reflection with zero fuzz
- Fuzzy reflection bounded by the fuzz radius
- Absorption when the fuzzed direction points into the surface
- Material registry, fuzz clamping and validation
"""

import math

import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for fuzz = 0 (perfect mirror)."""

    def test_normal_incidence(self):
        from pathtrace.materials.metal import scatter_metal, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            scattered, _attenuation, did_scatter = scatter_metal(
                vec3(0.9, 0.9, 0.9),
                0.0,
                vec3(0.0, -1.0, 0.0),
                vec3(0.0, 0.0, 0.0),
                vec3(0.0, 1.0, 0.0),
            )
            direction[None] = scattered.direction
            did[None] = did_scatter

        test_kernel()
        d = direction[None]
        assert did[None] == 1
        assert abs(d[0]) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6
        assert abs(d[2]) < 1e-6

    def test_45_degrees_with_unnormalized_incident(self):
        """The incident direction is normalized before reflecting."""
        from pathtrace.materials.metal import scatter_metal, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            scattered, _attenuation, _did_scatter = scatter_metal(
                vec3(0.9, 0.9, 0.9),
                0.0,
                vec3(3.0, -3.0, 0.0),
                vec3(0.0, 0.0, 0.0),
                vec3(0.0, 1.0, 0.0),
            )
            direction[None] = scattered.direction

        test_kernel()
        d = direction[None]
        expected = 1.0 / math.sqrt(2.0)
        assert abs(d[0] - expected) < 1e-5
        assert abs(d[1] - expected) < 1e-5
        assert abs(d[2]) < 1e-6


class TestFuzzyReflection:
    """Tests for fuzz > 0."""

    def test_fuzzy_direction_within_fuzz_radius(self):
        from pathtrace.materials.metal import scatter_metal, vec3

        max_offset = ti.field(dtype=ti.f32, shape=())
        max_offset[None] = 0.0
        fuzz = 0.3

        @ti.kernel
        def test_kernel():
            mirror = vec3(0.0, 1.0, 0.0)
            for _ in range(1000):
                scattered, _attenuation, _did_scatter = scatter_metal(
                    vec3(0.9, 0.9, 0.9),
                    fuzz,
                    vec3(0.0, -1.0, 0.0),
                    vec3(0.0, 0.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                )
                ti.atomic_max(max_offset[None], ti.math.length(scattered.direction - mirror))

        test_kernel()
        assert max_offset[None] < fuzz + 1e-5
        assert max_offset[None] > 0.0

    def test_grazing_fuzzy_reflection_sometimes_absorbs(self):
        """Near-grazing incidence with large fuzz pushes some rays below the surface."""
        from pathtrace.materials.metal import scatter_metal, vec3

        absorbed = ti.field(dtype=ti.i32, shape=())
        scattered_count = ti.field(dtype=ti.i32, shape=())
        absorbed[None] = 0
        scattered_count[None] = 0

        @ti.kernel
        def test_kernel():
            for _ in range(2000):
                _scattered, _attenuation, did_scatter = scatter_metal(
                    vec3(0.9, 0.9, 0.9),
                    1.0,
                    vec3(1.0, -0.05, 0.0),
                    vec3(0.0, 0.0, 0.0),
                    vec3(0.0, 1.0, 0.0),
                )
                if did_scatter == 1:
                    ti.atomic_add(scattered_count[None], 1)
                else:
                    ti.atomic_add(absorbed[None], 1)

        test_kernel()
        assert absorbed[None] > 0
        assert scattered_count[None] > 0

    def test_scattered_rays_point_away_from_surface(self):
        """Whenever did_scatter is 1 the direction has a positive normal component."""
        from pathtrace.materials.metal import scatter_metal, vec3

        min_dot = ti.field(dtype=ti.f32, shape=())
        min_dot[None] = 10.0

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for _ in range(2000):
                scattered, _attenuation, did_scatter = scatter_metal(
                    vec3(0.9, 0.9, 0.9),
                    1.0,
                    vec3(1.0, -0.2, 0.0),
                    vec3(0.0, 0.0, 0.0),
                    normal,
                )
                if did_scatter == 1:
                    ti.atomic_min(min_dot[None], ti.math.dot(scattered.direction, normal))

        test_kernel()
        assert min_dot[None] > 0.0


class TestMaterialRegistry:
    """Tests for material registry operations."""

    def test_add_and_get_material(self):
        from pathtrace.materials.metal import add_metal_material, get_metal_albedo, get_metal_fuzz

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=0.25)

        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        a = albedo[None]
        assert abs(a[0] - 0.8) < 1e-6
        assert abs(a[1] - 0.6) < 1e-6
        assert abs(a[2] - 0.2) < 1e-6
        assert abs(fuzz[None] - 0.25) < 1e-6

    def test_material_count(self):
        from pathtrace.materials.metal import add_metal_material, get_metal_material_count

        assert get_metal_material_count() == 0
        add_metal_material((0.5, 0.5, 0.5))
        add_metal_material((0.5, 0.5, 0.5), fuzz=0.1)
        assert get_metal_material_count() == 2

    @pytest.mark.parametrize("fuzz, expected", [(-0.5, 0.0), (0.0, 0.0), (1.0, 1.0), (3.0, 1.0)])
    def test_fuzz_is_clamped(self, fuzz, expected):
        from pathtrace.materials.metal import add_metal_material, metal_fuzzes

        idx = add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)
        assert abs(metal_fuzzes[idx] - expected) < 1e-6

    def test_albedo_validation(self):
        from pathtrace.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="outside"):
            add_metal_material((0.5, 1.5, 0.5))
        with pytest.raises(ValueError, match="outside"):
            add_metal_material((-0.1, 0.5, 0.5))

    def test_scatter_by_id(self):
        from pathtrace.materials.metal import add_metal_material, scatter_metal_by_id

        idx = add_metal_material((0.7, 0.6, 0.5), fuzz=0.0)

        result_attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
        result_direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            scattered, attenuation, _did_scatter = scatter_metal_by_id(
                mat_idx,
                ti.math.vec3(0.0, -1.0, 0.0),
                ti.math.vec3(0.0, 0.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result_attenuation[None] = attenuation
            result_direction[None] = scattered.direction

        test_kernel(idx)
        r = result_attenuation[None]
        assert abs(r[0] - 0.7) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.5) < 1e-6
        assert abs(result_direction[None][1] - 1.0) < 1e-6
