import numpy as np
from numba import njit


# Machine epsilon, the tolerance of the Moller-Trumbore parallel and distance tests
TRIANGLE_EPSILON = np.finfo(np.float64).eps


# =============================================================================
# Numba JIT-compiled kernels
# =============================================================================

@njit(cache=True)
def _fmin(a, b):
    """min() that ignores a NaN operand."""
    if a != a:
        return b
    if b != b:
        return a
    return a if a < b else b


@njit(cache=True)
def _fmax(a, b):
    """max() that ignores a NaN operand."""
    if a != a:
        return b
    if b != b:
        return a
    return a if a > b else b


@njit(cache=True, error_model='numpy')
def _slab_interval(ray_origin, ray_direction, min_bound, max_bound):
    """
    Parametric interval (tmin, tmax) where the ray's line is inside the box.

    An axis the ray runs parallel to is decided by containment of the
    origin (closed, so a ray lying on a face plane is inside); dividing
    there would give NaN for an origin on the plane.
    """
    t_min = -np.inf
    t_max = np.inf
    for axis in range(3):
        if ray_direction[axis] == 0.0:
            if ray_origin[axis] < min_bound[axis] or ray_origin[axis] > max_bound[axis]:
                return np.inf, -np.inf
            continue
        t1 =(min_bound[axis] - ray_origin[axis]) / ray_direction[axis]
        t2 = (max_bound[axis] - ray_origin[axis]) / ray_direction[axis]
        t_min = _fmax(t_min, _fmin(t1, t2))
        t_max = _fmin(t_max, _fmax(t1, t2))
    return t_min, t_max


@njit(cache=True)
def _moller_trumbore(ray_origin, ray_direction, v1, v2, v3, epsilon):
    """
    Ray-triangle intersection (Moller-Trumbore).

    Returns (hit, t, u, v); u weights v2 and v weights v3.
    """
    e1x = v2[0] - v1[0]
    e1y = v2[1] - v1[1]
    e1z = v2[2] - v1[2]
    e2x = v3[0] - v1[0]
    e2y = v3[1] - v1[1]
    e2z = v3[2] - v1[2]

    dx = ray_direction[0]
    dy = ray_direction[1]
    dz = ray_direction[2]

    # h = direction x edge2
    hx = dy * e2z - dz * e2y
    hy = dz * e2x - dx * e2z
    hz = dx * e2y - dy * e2x

    a = e1x * hx + e1y * hy + e1z * hz
    if -epsilon < a < epsilon:
        # Parallel to the triangle's plane
        return False, 0.0, 0.0, 0.0

    f = 1.0 / a
    sx = ray_origin[0] - v1[0]
    sy = ray_origin[1] - v1[1]
    sz = ray_origin[2] - v1[2]

    u = f * (sx * hx + sy * hy + sz * hz)
    if u < 0.0 or u > 1.0:
        return False, 0.0, 0.0, 0.0

    # q = s x edge1
    qx = sy * e1z - sz * e1y
    qy = sz * e1x - sx * e1z
    qz = sx * e1y - sy * e1x

    v = f * (dx * qx + dy * qy + dz * qz)
    if v < 0.0 or u + v > 1.0:
        return False, 0.0, 0.0, 0.0

    t = f * (e2x * qx + e2y * qy + e2z * qz)
    if t > epsilon:
        return True, t, u, v
    return False, 0.0, 0.0, 0.0


@njit(cache=True)
def _nearest_triangle_jit(ray_origin, ray_direction, triangle_vertices, max_t, epsilon):
    """
    Linear scan for the closest triangle hit below max_t.

    triangle_vertices: (N, 3, 3) array of v1, v2, v3 per triangle.
    Returns (index, t, u, v) with index -1 when nothing is hit.
    """
    best_index = -1
    best_t = max_t
    best_u = 0.0
    best_v = 0.0
    for i in range(triangle_vertices.shape[0]):
        hit, t, u, v = _moller_trumbore(ray_origin, ray_direction,
                                        triangle_vertices[i, 0],
                                        triangle_vertices[i, 1],
                                        triangle_vertices[i, 2],
                                        epsilon)
        if hit and t < best_t:
            best_index = i
            best_t = t
            best_u = u
            best_v = v
    return best_index, best_t, best_u, best_v


# =============================================================================
# Ray queries
# =============================================================================

class RayIntersection:
    """A ray-triangle hit: distance t along the ray and barycentric (u, v)."""

    __slots__ = ("t", "u", "v", "triangle")

    def __init__(self, t, u, v, triangle):
        self.t = t
        self.u = u
        self.v = v
        self.triangle = triangle

    @property
    def w(self):
        return 1.0 - self.u - self.v

    def __repr__(self):
        return "RayIntersection(t={:.6g}, u={:.6g}, v={:.6g})".format(self.t, self.u, self.v)


class Ray:
    def __init__(self, origin, direction):
        self.origin = np.ascontiguousarray(origin, dtype=np.float64)
        self.direction = np.ascontiguousarray(direction, dtype=np.float64)

    def point_at(self, t):
        return self.origin + self.direction * t

    def _aabb_interval(self, aabb):
        return _slab_interval(self.origin, self.direction, aabb.min_bound, aabb.max_bound)

    def intersect_aabb(self, aabb):
        """
        Slab test against a box.

        Returns the distance to the entry point, the exit point when the
        origin is inside the box, or None when the box is missed or lies
        entirely behind the origin.
        """
        t_min, t_max = self._aabb_interval(aabb)
        if t_max < 0.0:
            return None
        if t_min > t_max:
            return None
        if t_min < 0.0:
            return t_max
        return t_min

    def intersect_triangle(self, triangle):
        hit, t, u, v = _moller_trumbore(self.origin, self.direction,
                                        triangle.v1, triangle.v2, triangle.v3,
                                        TRIANGLE_EPSILON)
        if not hit:
            return None
        return RayIntersection(t, u, v, triangle)

    def intersect_triangles(self, triangles, max_t=np.inf):
        """Closest hit over a plain list of triangles, no acceleration."""
        if not triangles:
            return None
        vertices = np.stack([triangle.vertices for triangle in triangles])
        index, t, u, v = _nearest_triangle_jit(self.origin, self.direction, vertices,
                                               max_t, TRIANGLE_EPSILON)
        if index < 0:
            return None
        return RayIntersection(t, u, v, triangles[index])

    def intersect_octant(self, octree, node_index=0, max_t=np.inf):
        """
        Closest triangle hit closer than max_t in the subtree at node_index.

        Children are visited nearest box first. Each hit tightens max_t, so
        once a child yields a hit the remaining children, whose boxes start
        no closer than that hit, are skipped.
        """
        assigned = octree.node_triangles[node_index]
        children = octree.node_children[node_index]
        if not assigned and not children:
            return None

        closest = None
        for triangle_index in assigned:
            hit = self.intersect_triangle(octree.triangle(triangle_index))
            if hit is not None and hit.t < max_t:
                closest = hit
                max_t = hit.t

        candidates = []
        for child_index in children:
            t_min, t_max = self._aabb_interval(octree.node_aabbs[child_index])
            if t_max < 0.0 or t_min > t_max:
                continue
            candidates.append((max(t_min, 0.0), child_index))
        candidates.sort()

        for entry_t, child_index in candidates:
            if entry_t >= max_t:
                break
            hit = self.intersect_octant(octree, child_index, max_t)
            if hit is not None:
                closest = hit
                max_t = hit.t

        return closest
