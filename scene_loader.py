"""
Wavefront OBJ / MTL scene loading.

Only the subset the renderer uses is understood: vertices, texture and
normal coordinates, faces, and materials with Ka/Kd/Ks/Ns, a colour texture,
an optional bump map and a mirror reflectivity (Pm). Other statements are
ignored.
"""
import os

import numpy as np
from PIL import Image

from material import NO_SPECULAR, Material, MaterialMap, Texture
from octree import DEFAULT_MAX_DEPTH, Octree
from scene_data import SceneData
from triangle import Triangle
from vector import WHITE, vec3


# Extra room around the model's extents for the octree root box
BOUNDS_PADDING = 1e-3

_ZERO = vec3()


def load_texture(file_path):
    """Decode an image file into a Texture with channels scaled to [0, 1]."""
    with Image.open(file_path) as image:
        rgb = image.convert("RGB")
        width, height = rgb.size
        colours = np.asarray(rgb, dtype=np.float64).reshape(-1, 3) / 255.0
    return Texture(width, height, colours)


def default_material():
    return Material("default", WHITE, WHITE, _ZERO, NO_SPECULAR, Texture.solid(WHITE))


def _parse_floats(parts, count, line):
    try:
        values = [float(p) for p in parts[1:count + 1]]
    except ValueError:
        raise ValueError("Could not parse value in line: {!r}".format(line))
    if len(values) < count:
        raise ValueError("Expected {} values in line: {!r}".format(count, line))
    return values


def _parse_color_coefficient(parts, line):
    r, g, b = _parse_floats(parts, 3, line)
    if not all(0.0 <= c <= 1.0 for c in (r, g, b)):
        raise ValueError("All lighting intensity coefficients must be between 0.0 and 1.0: {!r}".format(line))
    return vec3(r, g, b)


def parse_mtl_file(file_path, material_map):
    """Add every material of an .mtl file to material_map."""
    base_dir = os.path.dirname(file_path)
    with open(file_path, 'r') as f:
        parse_mtl_lines(f, material_map, base_dir)
    return material_map


def parse_mtl_lines(lines, material_map, base_dir=""):
    textures_by_name = {}
    current = None

    def finish():
        if current is None:
            return
        material_map.add_material(Material(
            current['name'],
            current.get('Ka', _ZERO),
            current.get('Kd', _ZERO),
            current.get('Ks', _ZERO),
            current.get('Ns', NO_SPECULAR),
            current.get('texture') or Texture.solid(WHITE),
            current.get('bump'),
            current.get('Pm', 0.0),
        ))

    def texture_for(name):
        if name not in textures_by_name:
            texture = load_texture(os.path.join(base_dir, name))
            textures_by_name[name] = material_map.add_texture(texture)
        return textures_by_name[name]

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        keyword = parts[0]

        if keyword == "newmtl":
            finish()
            if len(parts) < 2:
                raise ValueError("Material without a name: {!r}".format(line))
            current = {'name': parts[1]}
            continue
        if current is None:
            continue

        if keyword in ("Ka", "Kd", "Ks"):
            current[keyword] = _parse_color_coefficient(parts, line)
        elif keyword == "Ns":
            current['Ns'] = _parse_floats(parts, 1, line)[0]
        elif keyword == "Pm":
            reflectivity = _parse_floats(parts, 1, line)[0]
            if not 0.0 <= reflectivity <= 1.0:
                raise ValueError("Reflectivity must be between 0.0 and 1.0: {!r}".format(line))
            current['Pm'] = reflectivity
        elif keyword in ("map_Ka", "map_Kd"):
            current['texture'] = texture_for(parts[-1])
        elif keyword in ("bump", "map_bump"):
            current['bump'] = texture_for(parts[-1])

    finish()
    return material_map


def _resolve_index(token, pool_size, line):
    index = int(token)
    # OBJ indices are 1-based; negative ones count back from the latest entry
    resolved = index - 1 if index > 0 else pool_size + index
    if index == 0 or resolved < 0 or resolved >= pool_size:
        raise ValueError("No element with index {} in line: {!r}".format(index, line))
    return resolved


def _parse_face_vertex(token, vertices, tex_coords, normals, line):
    fields = token.split("/")
    position = vertices[_resolve_index(fields[0], len(vertices), line)]
    tex_coord = _ZERO
    normal = _ZERO
    if len(fields) > 1 and fields[1]:
        tex_coord = tex_coords[_resolve_index(fields[1], len(tex_coords), line)]
    if len(fields) > 2 and fields[2]:
        normal = normals[_resolve_index(fields[2], len(normals), line)]
    return position, tex_coord, normal


def parse_obj_lines(lines, base_dir=""):
    """
    Parse OBJ statements into geometry pools and triangles.

    Returns (vertices, tex_coords, normals, triangles, material_map).
    Polygons with more than three corners are split into a triangle fan.
    """
    vertices = []
    tex_coords = []
    normals = []
    triangles = []
    material_map = MaterialMap()
    current_material = None

    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        keyword = parts[0]

        if keyword == "v":
            vertices.append(vec3(*_parse_floats(parts, 3, line)))
        elif keyword == "vt":
            # Only u is required; v and w default to 0
            count = max(1, min(len(parts) - 1, 3))
            tex_coords.append(vec3(*_parse_floats(parts, count, line)))
        elif keyword == "vn":
            normals.append(vec3(*_parse_floats(parts, 3, line)))
        elif keyword == "mtllib":
            for name in parts[1:]:
                parse_mtl_file(os.path.join(base_dir, name), material_map)
        elif keyword == "usemtl":
            if len(parts) < 2:
                raise ValueError("usemtl without a material name: {!r}".format(line))
            current_material = material_map.get(parts[1])
        elif keyword == "f":
            if len(parts) < 4:
                raise ValueError("Face needs at least three vertices: {!r}".format(line))
            if current_material is None:
                current_material = default_material()
            corners = [_parse_face_vertex(token, vertices, tex_coords, normals, line)
                       for token in parts[1:]]
            for i in range(1, len(corners) - 1):
                fan = (corners[0], corners[i], corners[i + 1])
                triangles.append(Triangle(
                    fan[0][0], fan[1][0], fan[2][0], current_material,
                    tex_coords=[c[1] for c in fan],
                    normal_coords=[c[2] for c in fan],
                ))

    return vertices, tex_coords, normals, triangles, material_map


def scene_bounds(vertices, padding=BOUNDS_PADDING):
    """(min_x, max_x, min_y, max_y, min_z, max_z) around all vertices."""
    if not vertices:
        return (-1.0, 1.0, -1.0, 1.0, -1.0, 1.0)
    points = np.array(vertices)
    lo = points.min(axis=0) - padding
    hi = points.max(axis=0) + padding
    return (lo[0], hi[0], lo[1], hi[1], lo[2], hi[2])


def load_scene(file_path, bounds=None, max_depth=DEFAULT_MAX_DEPTH):
    """
    Load an OBJ file and build its octree.

    bounds defaults to the model's padded extents.
    """
    with open(file_path, 'r') as f:
        vertices, tex_coords, normals, triangles, material_map = parse_obj_lines(
            f, os.path.dirname(file_path))

    if bounds is None:
        bounds = scene_bounds(vertices)
    octree = Octree(*bounds, max_depth=max_depth)
    for triangle in triangles:
        octree.insert_triangle(triangle)

    return SceneData(octree, triangles, vertices, tex_coords, normals, material_map)
