import numpy as np


# Below this norm a vector is treated as zero-length
EPSILON = 1e-9


def vec3(x=0.0, y=0.0, z=0.0):
    """Build an immutable 3-component float64 vector."""
    v = np.array([x, y, z], dtype=np.float64)
    v.setflags(write=False)
    return v


def as_vec3(values):
    """Freeze any 3-sequence into a vector."""
    return vec3(*(float(c) for c in values))


def length(v):
    return float(np.linalg.norm(v))


def dot(a, b):
    return float(np.dot(a, b))


def cross(a, b):
    return np.cross(a, b)


def normalize(v):
    """Normalize a vector."""
    norm = np.linalg.norm(v)
    if norm < EPSILON:
        return v
    return v / norm


def reflect(d, n):
    """Reflect direction d around normal n."""
    return d - 2 * np.dot(d, n) * n


# Colours are RGB float triples in [0, 1]
WHITE = vec3(1.0, 1.0, 1.0)


def clamp_colour(colour):
    return np.clip(colour, 0.0, 1.0)


def blend(a, b, t):
    """Linear blend from colour a (t=0) to colour b (t=1)."""
    return a * (1.0 - t) + b * t
