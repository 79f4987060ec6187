import numpy as np

from vector import as_vec3


# Sub-pixel sample offsets for 2x2 supersampling
SUBPIXEL_OFFSETS = ((0.0, 0.0), (0.5, 0.0), (0.0, 0.5), (0.5, 0.5))


class Camera:
    """Pinhole camera at `position` looking down +z through a fixed viewport."""

    def __init__(self, position, viewport_width=1.0, viewport_height=1.0, viewport_distance=1.0):
        self.position = as_vec3(position)
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.viewport_distance = viewport_distance

    def canvas_to_viewport(self, x, y, canvas_width, canvas_height):
        """Direction through canvas point (x, y), measured from the canvas centre with +y up."""
        return np.array([
            x * (self.viewport_width / canvas_width),
            y * (self.viewport_height / canvas_height),
            self.viewport_distance,
        ], dtype=np.float64)

    def pixel_to_canvas(self, column, row, image_width, image_height):
        """Canvas coordinates of the lower-left corner of image pixel (column, row)."""
        return column - image_width / 2.0, image_height / 2.0 - row - 1

    def generate_ray(self, column, row, image_width, image_height):
        """Generate a ray through the corner of pixel (column, row)."""
        x, y = self.pixel_to_canvas(column, row, image_width, image_height)
        return self.position, self.canvas_to_viewport(x, y, image_width, image_height)

    def subpixel_directions(self, column, row, image_width, image_height):
        """The four supersampling directions of one pixel."""
        x, y = self.pixel_to_canvas(column, row, image_width, image_height)
        return [self.canvas_to_viewport(x + dx, y + dy, image_width, image_height)
                for dx, dy in SUBPIXEL_OFFSETS]
