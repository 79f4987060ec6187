import numpy as np

from aabb import AABB
from triangle import Triangle


def random_box(rng):
    lo = rng.uniform(-10, 10, size=3)
    hi = lo + rng.uniform(0, 5, size=3)
    return AABB.from_bounds(lo, hi)


def test_intersects_is_symmetric():
    rng = np.random.default_rng(7)
    for _ in range(500):
        a = random_box(rng)
        b = random_box(rng)
        assert a.intersects(b) == b.intersects(a)


def test_disjoint_on_one_axis():
    a = AABB(0, 1, 0, 1, 0, 1)
    assert not a.intersects(AABB(0, 1, 0, 1, 2, 3))
    assert not a.intersects(AABB(-3, -2, 0, 1, 0, 1))
    assert a.intersects(AABB(0.5, 2, 0.5, 2, 0.5, 2))


def test_touching_boxes_intersect():
    assert AABB(0, 1, 0, 1, 0, 1).intersects(AABB(1, 2, 0, 1, 0, 1))


def test_from_triangle_contains_vertices(plain_material):
    rng = np.random.default_rng(3)
    for _ in range(100):
        v1, v2, v3 = rng.uniform(-20, 20, size=(3, 3))
        triangle = Triangle(v1, v2, v3, plain_material)
        box = AABB.from_triangle(triangle)
        for vertex in (triangle.v1, triangle.v2, triangle.v3):
            assert box.contains_point(vertex)
        assert np.all(box.min_bound <= box.max_bound)


def test_from_triangle_is_tight(plain_material):
    triangle = Triangle((1, 5, -2), (3, -1, 0), (2, 2, 4), plain_material)
    assert AABB.from_triangle(triangle) == AABB(1, 3, -1, 5, -2, 4)


def test_octants_partition_the_box():
    box = AABB(-4, 4, 0, 2, 10, 12)
    octants = box.octants()
    assert len(octants) == 8
    assert len(set(octants)) == 8

    volume = np.prod(box.max_bound - box.min_bound)
    for octant in octants:
        assert np.prod(octant.max_bound - octant.min_bound) == volume / 8
        assert box.contains_point(octant.min_bound)
        assert box.contains_point(octant.max_bound)

    # First four are the bottom half, last four the top half
    assert all(o.max_bound[1] == 1 for o in octants[:4])
    assert all(o.min_bound[1] == 1 for o in octants[4:])


def test_clipped_to():
    clipped = AABB(0, 4, 0, 4, 0, 4).clipped_to(AABB(2, 6, -1, 1, 1, 3))
    assert clipped == AABB(2, 4, 0, 1, 1, 3)
