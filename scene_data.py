from material import MaterialMap
from octree import Octree


class SceneData:
    """Everything the loader produces: geometry pools, materials and the built octree."""

    def __init__(self, octree, triangles=None, vertices=None, vertex_texture_coords=None,
                 vertex_normal_coords=None, material_map=None):
        self.octree = octree
        self.triangles = triangles if triangles is not None else []
        self.vertices = vertices if vertices is not None else []
        self.vertex_texture_coords = vertex_texture_coords if vertex_texture_coords is not None else []
        self.vertex_normal_coords = vertex_normal_coords if vertex_normal_coords is not None else []
        self.material_map = material_map if material_map is not None else MaterialMap()

    @classmethod
    def from_triangles(cls, triangles, bounds, max_depth=None):
        """Build the octree for an explicit triangle list. bounds is (min_x, max_x, ..., max_z)."""
        if max_depth is None:
            octree = Octree(*bounds)
        else:
            octree = Octree(*bounds, max_depth=max_depth)
        for triangle in triangles:
            octree.insert_triangle(triangle)
        return cls(octree, triangles=list(triangles))
