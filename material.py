import numpy as np

from vector import as_vec3


# Specular exponent meaning "no highlight"
NO_SPECULAR = -1.0


class Texture:
    """Row-major grid of RGB colours in [0, 1]."""

    def __init__(self, width, height, colours):
        colours = np.asarray(colours, dtype=np.float64).reshape(-1, 3)
        if colours.shape[0] != width * height:
            raise ValueError("Texture of {}x{} needs {} colours, got {}".format(
                width, height, width * height, colours.shape[0]))
        colours.setflags(write=False)
        self.width = int(width)
        self.height = int(height)
        self.colours = colours

    @classmethod
    def solid(cls, colour):
        return cls(1, 1, [colour])

    def sample(self, tex_coords):
        """Colour at the texel under (x, y), wrapping outside [0, 1)."""
        x_index = int(tex_coords[0] * self.width) % self.width
        y_index = int(tex_coords[1] * self.height) % self.height
        return self.colours[self.width * y_index + x_index]


class Material:
    def __init__(self, name, ambient_color, diffuse_color, specular_color,
                 specular_exponent, texture, bump_map=None, reflectivity=0.0):
        self.name = name
        # Per-channel weights in [0, 1] applied to the sampled texture colour
        self.ambient_color = as_vec3(ambient_color)
        self.diffuse_color = as_vec3(diffuse_color)
        self.specular_color = as_vec3(specular_color)
        self.specular_exponent = float(specular_exponent)
        self.texture = texture
        self.bump_map = bump_map
        self.reflectivity = float(reflectivity)

    @property
    def has_specular(self):
        return self.specular_exponent != NO_SPECULAR

    def __repr__(self):
        return "Material({!r})".format(self.name)


class MaterialMap:
    """Textures and named materials shared by every triangle of a scene."""

    def __init__(self):
        self.textures = []
        self.materials = {}

    def add_texture(self, texture):
        self.textures.append(texture)
        return texture

    def add_material(self, material):
        self.materials[material.name] = material
        return material

    def get(self, name):
        if name not in self.materials:
            raise ValueError("Material not found: {} (is it in your mtl file?)".format(name))
        return self.materials[name]
