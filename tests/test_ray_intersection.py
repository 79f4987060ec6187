import numpy as np
import pytest

from aabb import AABB
from octree import Octree
from ray_intersection import Ray
from triangle import Triangle
from vector import vec3


UNIT_BOX = AABB(-1, 1, -1, 1, -1, 1)


class TestRayAABB:

    def test_hit_from_outside_returns_entry_distance(self):
        ray = Ray(vec3(-5.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(4.0)

    def test_non_unit_direction_scales_distance(self):
        ray = Ray(vec3(-5.0, 0.0, 0.0), vec3(2.0, 0.0, 0.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(2.0)

    def test_origin_inside_returns_exit_distance(self):
        rng = np.random.default_rng(1)
        for _ in range(100):
            origin = rng.uniform(-0.99, 0.99, size=3)
            direction = rng.normal(size=3)
            t = Ray(origin, direction).intersect_aabb(UNIT_BOX)
            assert t is not None
            assert t >= 0.0
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(1.0)

    def test_box_behind_origin_is_missed(self):
        rng = np.random.default_rng(2)
        for _ in range(100):
            direction = rng.normal(size=3)
            # Start well outside the box, on the side the ray points to
            origin = 5.0 * direction / np.linalg.norm(direction)
            assert Ray(origin, direction).intersect_aabb(UNIT_BOX) is None

    def test_parallel_ray_outside_slab_misses(self):
        ray = Ray(vec3(-5.0, 3.0, 0.0), vec3(1.0, 0.0, 0.0))
        assert ray.intersect_aabb(UNIT_BOX) is None

    def test_diagonal_hit(self):
        ray = Ray(vec3(-3.0, -3.0, -3.0), vec3(1.0, 1.0, 1.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(2.0)

    def test_parallel_ray_on_face_plane_hits(self):
        # Zero x component with the origin exactly on the x = 1 face
        ray = Ray(vec3(1.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(4.0)

    def test_parallel_ray_on_edge_hits(self):
        ray = Ray(vec3(-1.0, 1.0, -5.0), vec3(0.0, 0.0, 2.0))
        assert ray.intersect_aabb(UNIT_BOX) == pytest.approx(2.0)

    def test_parallel_ray_just_outside_face_misses(self):
        ray = Ray(vec3(1.0 + 1e-12, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_aabb(UNIT_BOX) is None


class TestRayTriangle:

    def test_hit_through_centroid(self, unit_triangle):
        centroid = (unit_triangle.v1 + unit_triangle.v2 + unit_triangle.v3) / 3.0
        origin = vec3(0.1, -0.4, -2.0)
        ray = Ray(origin, centroid - origin)

        hit = ray.intersect_triangle(unit_triangle)

        assert hit is not None
        assert hit.triangle is unit_triangle
        assert hit.t == pytest.approx(1.0)
        np.testing.assert_allclose(ray.point_at(hit.t), centroid, atol=1e-9)
        for weight in (hit.u, hit.v, hit.w):
            assert 0.0 <= weight <= 1.0
        assert hit.u == pytest.approx(1.0 / 3.0)
        assert hit.v == pytest.approx(1.0 / 3.0)

    def test_barycentric_weights_follow_vertices(self, unit_triangle):
        # Right next to v2 => u close to 1
        ray = Ray(vec3(0.98, 0.01, 0.0), vec3(0.0, 0.0, 1.0))
        hit = ray.intersect_triangle(unit_triangle)
        assert hit.u == pytest.approx(0.98)
        assert hit.v == pytest.approx(0.01)

    def test_parallel_ray_misses(self, unit_triangle):
        ray = Ray(vec3(-1.0, 0.2, 5.0), vec3(1.0, 0.0, 0.0))
        assert ray.intersect_triangle(unit_triangle) is None

    def test_ray_outside_triangle_misses(self, unit_triangle):
        ray = Ray(vec3(0.8, 0.8, 0.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_triangle(unit_triangle) is None

    def test_triangle_behind_origin_misses(self, unit_triangle):
        ray = Ray(vec3(0.2, 0.2, 10.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_triangle(unit_triangle) is None

    def test_degenerate_triangle_misses(self, plain_material):
        sliver = Triangle((0, 0, 5), (1, 1, 5), (2, 2, 5), plain_material)
        ray = Ray(vec3(1.0, 1.0, 0.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_triangle(sliver) is None


def stacked_triangles(material, depths):
    return [Triangle((-1, -1, z), (1, -1, z), (0, 1, z), material) for z in depths]


class TestRayOctree:

    def test_empty_octree_has_no_hit(self, world_bounds):
        ray = Ray(vec3(0.0, 0.0, -10.0), vec3(0.0, 0.0, 1.0))
        assert ray.intersect_octant(Octree(*world_bounds)) is None

    def test_returns_nearest_of_stacked_triangles(self, world_bounds, plain_material):
        triangles = stacked_triangles(plain_material, [8.0, 2.0, 10.0, 4.0, 6.0])
        octree = Octree(*world_bounds)
        for triangle in triangles:
            octree.insert_triangle(triangle)

        ray = Ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
        hit = ray.intersect_octant(octree, 0)
        brute = ray.intersect_triangles(triangles)

        assert hit.triangle is triangles[1]
        assert hit.t == pytest.approx(7.0)
        assert brute.triangle is triangles[1]
        assert brute.t == pytest.approx(hit.t)

    def test_max_t_bounds_the_search(self, world_bounds, plain_material):
        octree = Octree(*world_bounds)
        octree.insert_triangle(stacked_triangles(plain_material, [5.0])[0])
        ray = Ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0))

        assert ray.intersect_octant(octree, 0, max_t=4.0) is None
        assert ray.intersect_octant(octree, 0, max_t=6.0).t == pytest.approx(5.0)

    def test_matches_linear_scan_on_random_scenes(self, world_bounds, plain_material):
        rng = np.random.default_rng(42)
        triangles = []
        for _ in range(100):
            center = rng.uniform(-15, 15, size=3)
            offsets = rng.uniform(-1.0, 1.0, size=(3, 3))
            v1, v2, v3 = center + offsets
            triangles.append(Triangle(v1, v2, v3, plain_material))

        octree = Octree(*world_bounds)
        for triangle in triangles:
            octree.insert_triangle(triangle)

        for _ in range(200):
            origin = rng.uniform(-19, 19, size=3)
            direction = rng.normal(size=3)
            ray = Ray(origin, direction)
            hit = ray.intersect_octant(octree, 0)
            brute = ray.intersect_triangles(triangles)
            if brute is None:
                assert hit is None
            else:
                assert hit is not None
                assert hit.t == pytest.approx(brute.t)

    def test_ray_along_octant_boundary_planes(self, plain_material):
        octree = Octree(-10, 10, -10, 10, -10, 10)
        straddling = Triangle((-4, -4, 5), (4, -4, 5), (0, 4, 5), plain_material)
        octree.insert_triangle(straddling)
        # A second, distant triangle splits the root at x = y = z = 0
        octree.insert_triangle(Triangle((6, 6, -8), (7, 6, -8), (6, 7, -8), plain_material))
        assert octree.subdivisions >= 1

        ray = Ray(vec3(0.0, 0.0, -5.0), vec3(0.0, 0.0, 1.0))
        hit = ray.intersect_octant(octree, 0)
        brute = ray.intersect_triangles(octree.triangles)

        assert brute is not None and brute.triangle is straddling
        assert hit is not None
        assert hit.triangle is straddling
        assert brute.t == pytest.approx(10.0)
        assert hit.t == pytest.approx(brute.t)

    def test_axis_aligned_rays_on_planes_match_linear_scan(self, world_bounds, plain_material):
        rng = np.random.default_rng(7)
        triangles = []
        for _ in range(60):
            center = rng.uniform(-15, 15, size=3)
            offsets = rng.uniform(-3.0, 3.0, size=(3, 3))
            v1, v2, v3 = center + offsets
            triangles.append(Triangle(v1, v2, v3, plain_material))

        octree = Octree(*world_bounds)
        for triangle in triangles:
            octree.insert_triangle(triangle)

        # Origins on the root and first-level split planes, directions along the axes
        plane_values = (-10.0, 0.0, 10.0)
        for a in plane_values:
            for b in plane_values:
                for origin, direction in (((a, b, -19.0), (0, 0, 1)),
                                          ((a, -19.0, b), (0, 1, 0)),
                                          ((-19.0, a, b), (1, 0, 0))):
                    ray = Ray(vec3(*origin), vec3(*direction))
                    hit = ray.intersect_octant(octree, 0)
                    brute = ray.intersect_triangles(triangles)
                    if brute is None:
                        assert hit is None
                    else:
                        assert hit is not None
                        assert hit.t == pytest.approx(brute.t)

    def test_linear_scan_of_nothing(self):
        assert Ray(vec3(), vec3(0.0, 0.0, 1.0)).intersect_triangles([]) is None
