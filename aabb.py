import numpy as np


class AABB:
    """Axis-aligned box given by its min and max corners."""

    __slots__ = ("min_bound", "max_bound")

    def __init__(self, min_x, max_x, min_y, max_y, min_z, max_z):
        self.min_bound = np.array([min_x, min_y, min_z], dtype=np.float64)
        self.max_bound = np.array([max_x, max_y, max_z], dtype=np.float64)
        self.min_bound.setflags(write=False)
        self.max_bound.setflags(write=False)

    @classmethod
    def from_bounds(cls, min_bound, max_bound):
        return cls(min_bound[0], max_bound[0],
                   min_bound[1], max_bound[1],
                   min_bound[2], max_bound[2])

    @classmethod
    def from_triangle(cls, triangle):
        """Tightest box around the three vertices of a triangle."""
        vertices = np.stack((triangle.v1, triangle.v2, triangle.v3))
        return cls.from_bounds(vertices.min(axis=0), vertices.max(axis=0))

    @property
    def center(self):
        return (self.min_bound + self.max_bound) * 0.5

    def intersects(self, other):
        """Boxes overlap unless they are separated along some axis (touching counts)."""
        for axis in range(3):
            if (self.max_bound[axis] < other.min_bound[axis] or
                    self.min_bound[axis] > other.max_bound[axis]):
                return False
        return True

    def contains_point(self, point):
        return bool(np.all(point >= self.min_bound) and np.all(point <= self.max_bound))

    def clipped_to(self, other):
        """Overlap of the two boxes; only meaningful when they intersect."""
        return AABB.from_bounds(np.maximum(self.min_bound, other.min_bound),
                                np.minimum(self.max_bound, other.max_bound))

    def octants(self):
        """
        Split the box at its midpoint on every axis.

        Order: bottom back left, bottom front left, bottom front right,
        bottom back right, then the same four for the top half.
        """
        x_min, y_min, z_min = self.min_bound
        x_max, y_max, z_max = self.max_bound
        x_mid, y_mid, z_mid = self.center

        quadrants = (
            (x_min, x_mid, z_min, z_mid),
            (x_min, x_mid, z_mid, z_max),
            (x_mid, x_max, z_mid, z_max),
            (x_mid, x_max, z_min, z_mid),
        )
        boxes = []
        for y_lo, y_hi in ((y_min, y_mid), (y_mid, y_max)):
            for x_lo, x_hi, z_lo, z_hi in quadrants:
                boxes.append(AABB(x_lo, x_hi, y_lo, y_hi, z_lo, z_hi))
        return boxes

    def __eq__(self, other):
        if not isinstance(other, AABB):
            return NotImplemented
        return (np.array_equal(self.min_bound, other.min_bound) and
                np.array_equal(self.max_bound, other.max_bound))

    def __hash__(self):
        return hash((tuple(self.min_bound), tuple(self.max_bound)))

    def __repr__(self):
        return "AABB(min={}, max={})".format(self.min_bound.tolist(), self.max_bound.tolist())
