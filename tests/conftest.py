"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from material import NO_SPECULAR, Material, Texture  # noqa: E402
from triangle import Triangle  # noqa: E402
from vector import WHITE, vec3  # noqa: E402


WORLD_BOUNDS = (-20.0, 20.0, -20.0, 20.0, -20.0, 20.0)


def make_material(name="plain", ambient=(1.0, 1.0, 1.0), diffuse=(1.0, 1.0, 1.0),
                  specular=(0.0, 0.0, 0.0), specular_exponent=NO_SPECULAR,
                  colour=WHITE, bump_map=None, reflectivity=0.0):
    return Material(name, ambient, diffuse, specular, specular_exponent,
                    Texture.solid(colour), bump_map, reflectivity)


def facing_quad(z, half_size, material):
    """Two triangles forming a square in the plane z, centred on the z axis."""
    s = half_size
    return [
        Triangle((-s, -s, z), (s, -s, z), (-s, s, z), material),
        Triangle((s, -s, z), (s, s, z), (-s, s, z), material),
    ]


@pytest.fixture
def plain_material():
    return make_material()


@pytest.fixture
def world_bounds():
    return WORLD_BOUNDS


@pytest.fixture
def unit_triangle(plain_material):
    return Triangle(vec3(0.0, 0.0, 5.0), vec3(1.0, 0.0, 5.0), vec3(0.0, 1.0, 5.0), plain_material)
