from vector import as_vec3


class AmbientLight:
    def __init__(self, intensity):
        self.intensity = float(intensity)


class PointLight:
    def __init__(self, intensity, position):
        self.intensity = float(intensity)
        self.position = as_vec3(position)


class DirectionalLight:
    """Light arriving from infinitely far away; direction points towards the light."""

    def __init__(self, intensity, direction):
        self.intensity = float(intensity)
        self.direction = as_vec3(direction)
