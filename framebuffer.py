import numpy as np
from PIL import Image


class Framebuffer:
    """Image being rendered: one RGB float colour per pixel, plus pixels that failed."""

    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.float64)
        self.written = np.zeros((height, width), dtype=bool)
        self.failures = {}

    def put_pixel(self, x, y, colour):
        self.pixels[y, x] = colour
        self.written[y, x] = True

    def record_failure(self, x, y, error):
        self.failures[(x, y)] = error

    @property
    def is_complete(self):
        return not self.failures and bool(self.written.all())

    def to_image(self):
        # Clamp values to [0, 1] then scale to [0, 255]
        image_array = np.clip(self.pixels, 0, 1)
        image_array = (image_array * 255).astype(np.uint8)
        return Image.fromarray(image_array)

    def save(self, output_path):
        """Save the rendered image to a file."""
        self.to_image().save(output_path)
        print(f"Image saved to {output_path}")
