import numpy as np

from vector import as_vec3, vec3


_ORIGIN = vec3()


class Triangle:
    def __init__(self, v1, v2, v3, material,
                 tex_coords=(_ORIGIN, _ORIGIN, _ORIGIN),
                 normal_coords=(_ORIGIN, _ORIGIN, _ORIGIN)):
        self.v1 = as_vec3(v1)
        self.v2 = as_vec3(v2)
        self.v3 = as_vec3(v3)
        self.v1_tex_coords, self.v2_tex_coords, self.v3_tex_coords = (
            as_vec3(c) for c in tex_coords)
        self.v1_normal_coords, self.v2_normal_coords, self.v3_normal_coords = (
            as_vec3(n) for n in normal_coords)
        self.material = material

    @property
    def vertices(self):
        return np.stack((self.v1, self.v2, self.v3))

    def geometric_normal(self):
        """Unnormalized face normal, (v2 - v1) x (v3 - v1)."""
        return np.cross(self.v2 - self.v1, self.v3 - self.v1)

    def interpolate_tex_coords(self, u, v):
        # u weights vertex 2, v weights vertex 3, the remainder vertex 1
        w = 1.0 - u - v
        return self.v2_tex_coords * u + self.v3_tex_coords * v + self.v1_tex_coords * w

    def interpolate_normal(self, u, v):
        w = 1.0 - u - v
        return self.v2_normal_coords * u + self.v3_normal_coords * v + self.v1_normal_coords * w

    def __repr__(self):
        return "Triangle({}, {}, {})".format(self.v1.tolist(), self.v2.tolist(), self.v3.tolist())
