from octree import DEFAULT_MAX_DEPTH
from vector import WHITE, as_vec3


class SceneSettings:
    def __init__(self, background_color=WHITE, max_recursions=5,
                 octree_max_depth=DEFAULT_MAX_DEPTH, shadow_bias=1e-4):
        self.background_color = as_vec3(background_color)
        # Mirror bounces allowed after the primary ray
        self.max_recursions = int(max_recursions)
        self.octree_max_depth = int(octree_max_depth)
        # Distance a secondary ray origin is pushed off the surface along the normal
        self.shadow_bias = float(shadow_bias)
