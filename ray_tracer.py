import argparse
import multiprocessing as mp
import time

import numpy as np

from camera import Camera
from framebuffer import Framebuffer
from light import AmbientLight, DirectionalLight, PointLight
from octree import DEFAULT_MAX_DEPTH
from ray_intersection import Ray
from scene_settings import SceneSettings
from vector import EPSILON, blend, clamp_colour, normalize, reflect, vec3


_UP = vec3(0.0, 1.0, 0.0)
_RIGHT = vec3(1.0, 0.0, 0.0)


class RayTracer:
    """Whitted-style shading of rays against a scene's octree."""

    def __init__(self, scene_data, lights, origin, scene_settings=None):
        self.scene_data = scene_data
        self.lights = list(lights)
        self.origin = np.asarray(origin, dtype=np.float64)
        self.scene_settings = scene_settings if scene_settings is not None else SceneSettings()

    @property
    def octree(self):
        return self.scene_data.octree

    def find_nearest_intersection(self, ray_origin, ray_direction, max_t=np.inf):
        return Ray(ray_origin, ray_direction).intersect_octant(self.octree, 0, max_t)

    def get_ray_colour(self, ray_origin, ray_direction, depth=0):
        """
        Colour seen along a ray.

        depth counts the mirror bounces that led to this ray; reflections stop
        once it reaches scene_settings.max_recursions.
        """
        settings = self.scene_settings
        intersection = self.find_nearest_intersection(ray_origin, ray_direction)
        if intersection is None:
            return settings.background_color

        triangle = intersection.triangle
        material = triangle.material
        u, v = intersection.u, intersection.v

        hit_point = ray_origin + ray_direction * intersection.t
        tex_coords = triangle.interpolate_tex_coords(u, v)
        texture_colour = material.texture.sample(tex_coords)

        normal = self.surface_normal(intersection, tex_coords)
        # Face the normal back towards the incoming ray
        if np.dot(normal, ray_direction) > 0:
            normal = -normal

        lighting = self.compute_lighting_intensity(hit_point, normal, -ray_direction, material)
        local_colour = clamp_colour(texture_colour * lighting)

        if material.reflectivity <= 0 or depth >= settings.max_recursions:
            return local_colour

        reflect_origin = hit_point + normal * settings.shadow_bias
        reflect_direction = reflect(ray_direction, normal)
        reflected_colour = self.get_ray_colour(reflect_origin, reflect_direction, depth + 1)
        return blend(local_colour, reflected_colour, material.reflectivity)

    def surface_normal(self, intersection, tex_coords):
        """Unit shading normal at a hit, bump-mapped when the material has a bump map."""
        triangle = intersection.triangle
        normal = triangle.interpolate_normal(intersection.u, intersection.v)
        if np.linalg.norm(normal) < EPSILON:
            normal = triangle.geometric_normal()
        normal = normalize(normal)

        bump_map = triangle.material.bump_map
        if bump_map is None:
            return normal
        return perturb_normal(normal, bump_map.sample(tex_coords))

    def is_light_visible(self, point, light_direction, max_t=np.inf):
        """True when no triangle lies on the segment point + light_direction * [0, max_t)."""
        return self.find_nearest_intersection(point, light_direction, max_t) is None

    def compute_lighting_intensity(self, point, normal, view, material):
        """
        Sum the light reaching `point` into a per-channel intensity vector.

        Point and directional lights only count when a shadow ray from the
        surface reaches them.
        """
        intensity = np.zeros(3)
        shadow_origin = point + normal * self.scene_settings.shadow_bias

        for light in self.lights:
            if isinstance(light, AmbientLight):
                intensity += material.ambient_color * light.intensity
                continue

            if isinstance(light, PointLight):
                to_light = light.position - point
                # The shadow ray spans exactly t in [0, 1) up to the light
                if not self.is_light_visible(shadow_origin, light.position - shadow_origin, 1.0):
                    continue
            elif isinstance(light, DirectionalLight):
                to_light = light.direction
                if not self.is_light_visible(shadow_origin, to_light):
                    continue
            else:
                raise TypeError("Unknown light type: {}".format(type(light).__name__))

            intensity += diffuse_intensity(light.intensity, normal, to_light, material)
            intensity += specular_intensity(light.intensity, normal, view, to_light, material)

        return intensity


def diffuse_intensity(light_intensity, normal, to_light, material):
    n_dot_l = np.dot(normal, to_light)
    if n_dot_l <= 0:
        return np.zeros(3)
    return (material.diffuse_color * light_intensity * n_dot_l /
            (np.linalg.norm(normal) * np.linalg.norm(to_light)))


def specular_intensity(light_intensity, normal, view, to_light, material):
    if not material.has_specular:
        return np.zeros(3)
    # Light vector mirrored about the normal
    r = normal * 2.0 * np.dot(normal, to_light) - to_light
    r_dot_v = np.dot(r, view)
    if r_dot_v <= 0:
        return np.zeros(3)
    cos_angle = r_dot_v / (np.linalg.norm(r) * np.linalg.norm(view))
    return material.specular_color * light_intensity * cos_angle ** material.specular_exponent


def perturb_normal(normal, bump_colour):
    """Rotate a unit normal by a tangent-space bump texel (channels in [0, 1])."""
    tangent = np.cross(normal, _UP)
    if np.linalg.norm(tangent) < EPSILON:
        tangent = np.cross(normal, _RIGHT)
    tangent = normalize(tangent)
    bitangent = np.cross(normal, tangent)

    bump = bump_colour * 2.0 - 1.0
    return normalize(tangent * bump[0] + bitangent * bump[1] + normal * bump[2])


# =============================================================================
# Render drivers
# =============================================================================

def render_pixel(ray_tracer, camera, x, y, width, height):
    """Average of the four supersampled colours of pixel (x, y)."""
    colours = [ray_tracer.get_ray_colour(camera.position, direction)
               for direction in camera.subpixel_directions(x, y, width, height)]
    return np.mean(colours, axis=0)


def render(ray_tracer, width, height, camera=None):
    """
    Render the scene to a framebuffer, one pixel at a time in this process.
    """
    if camera is None:
        camera = Camera(ray_tracer.origin)

    framebuffer = Framebuffer(width, height)
    start_time = time.time()

    for y in range(height):
        row_start = time.time()
        for x in range(width):
            framebuffer.put_pixel(x, y, render_pixel(ray_tracer, camera, x, y, width, height))

        # Progress indicator every 10 rows
        if (y + 1) % 10 == 0 or y == height - 1:
            elapsed = time.time() - start_time
            progress = (y + 1) / height
            eta = (elapsed / progress) * (1 - progress)
            row_time = time.time() - row_start
            print(f"Row {y+1}/{height} ({progress*100:.1f}%) - Row time: {row_time:.2f}s - ETA: {eta:.0f}s")

    total_time = time.time() - start_time
    print(f"Rendering complete in {total_time:.1f}s")

    return framebuffer


# Per-process state installed by the pool initializer
_worker_data = {}


def _init_worker(ray_tracer, camera, width, height):
    _worker_data['ray_tracer'] = ray_tracer
    _worker_data['camera'] = camera
    _worker_data['width'] = width
    _worker_data['height'] = height


def _render_pixel_task(pixel):
    """
    Worker function: trace one pixel.

    Returns (x, y, colour, error); a failed pixel comes back with colour None
    and the error text so the rest of the frame still renders.
    """
    x, y = pixel
    d = _worker_data
    try:
        colour = render_pixel(d['ray_tracer'], d['camera'], x, y, d['width'], d['height'])
    except Exception as exc:
        return x, y, None, f"{type(exc).__name__}: {exc}"
    return x, y, colour, None


def render_parallel(ray_tracer, width, height, camera=None, num_workers=None):
    """
    Render the scene using a multiprocessing pool, one task per pixel.

    Results are written into the framebuffer in whatever order workers finish
    them; every pixel is written once, so the image does not depend on it.

    Args:
        num_workers: number of worker processes (default: CPU count)
    """
    if num_workers is None:
        num_workers = mp.cpu_count()
    if camera is None:
        camera = Camera(ray_tracer.origin)

    framebuffer = Framebuffer(width, height)
    pixels = [(x, y) for y in range(height) for x in range(width)]
    total_pixels = len(pixels)
    # A few batches per worker keeps the queue busy without flooding it
    chunksize = max(1, total_pixels // (num_workers * 16))

    print(f"Parallel rendering {width}x{height} with {num_workers} workers...")
    start_time = time.time()

    completed = 0
    with mp.Pool(num_workers, initializer=_init_worker,
                 initargs=(ray_tracer, camera, width, height)) as pool:
        for x, y, colour, error in pool.imap_unordered(_render_pixel_task, pixels, chunksize):
            if error is None:
                framebuffer.put_pixel(x, y, colour)
            else:
                framebuffer.record_failure(x, y, error)
            completed += 1
            if completed % (width * 10) == 0 or completed == total_pixels:
                elapsed = time.time() - start_time
                eta = elapsed / completed * (total_pixels - completed)
                print(f"Pixel {completed}/{total_pixels} | Elapsed: {elapsed:.1f}s | ETA: {eta:.1f}s")

    if framebuffer.failures:
        print(f"Warning: {len(framebuffer.failures)} pixels failed to render")
    total_time = time.time() - start_time
    print(f"Parallel rendering complete in {total_time:.1f}s")

    return framebuffer


def default_lights():
    return [
        AmbientLight(0.4),
        PointLight(0.7, (2.0, 2.0, 0.0)),
        DirectionalLight(0.5, (-5.0, 0.0, 2.0)),
    ]


def main(argv=None):
    from scene_loader import load_scene

    parser = argparse.ArgumentParser(description='Octree triangle-mesh ray tracer')
    parser.add_argument('model_file', type=str, help='Path to the .obj model file')
    parser.add_argument('output_image', type=str, help='Name of the output image file')
    parser.add_argument('--width', type=int, default=800, help='Image width')
    parser.add_argument('--height', type=int, default=800, help='Image height')
    parser.add_argument('--sequential', action='store_true',
                        help='Render in this process instead of a worker pool')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of worker processes (default: CPU count)')
    parser.add_argument('--max-recursions', type=int, default=5,
                        help='Maximum number of mirror bounces')
    parser.add_argument('--octree-depth', type=int, default=DEFAULT_MAX_DEPTH,
                        help='Depth at which octree leaves stop splitting')
    parser.add_argument('--origin', type=float, nargs=3, default=(0.0, 0.0, -60.0),
                        metavar=('X', 'Y', 'Z'), help='Camera position')
    args = parser.parse_args(argv)

    scene_settings = SceneSettings(max_recursions=args.max_recursions,
                                   octree_max_depth=args.octree_depth)

    load_start = time.time()
    scene_data = load_scene(args.model_file, max_depth=scene_settings.octree_max_depth)
    octree = scene_data.octree
    print(f"Scene loaded in {time.time() - load_start:.1f}s: {len(scene_data.triangles)} triangles, "
          f"{len(scene_data.material_map.materials)} materials, {octree.node_count} octree nodes")

    ray_tracer = RayTracer(scene_data, default_lights(), args.origin, scene_settings)
    print(f"Rendering {args.width}x{args.height} image...")

    if args.sequential:
        framebuffer = render(ray_tracer, args.width, args.height)
    else:
        framebuffer = render_parallel(ray_tracer, args.width, args.height,
                                      num_workers=args.workers)

    framebuffer.save(args.output_image)
    return 0 if framebuffer.is_complete else 1


if __name__ == '__main__':
    raise SystemExit(main())
