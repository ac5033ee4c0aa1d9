"""Primitive polygon meshes: box, quad, grid."""

import numpy as np

from .halfedge import HalfEdgeMesh


def make_box(origin=(0.0, 0.0, 0.0), size=(1.0, 1.0, 1.0)) -> HalfEdgeMesh:
    """Axis-aligned box centered at origin, six outward-facing quads."""
    s_x, s_y, s_z = (0.5 * float(c) for c in size)
    vertices = np.array(
        [
            [-s_x, -s_y, -s_z],
            [s_x, -s_y, -s_z],
            [s_x, s_y, -s_z],
            [-s_x, s_y, -s_z],
            [-s_x, -s_y, s_z],
            [s_x, -s_y, s_z],
            [s_x, s_y, s_z],
            [-s_x, s_y, s_z],
        ],
        dtype=float,
    ) + np.asarray(origin, dtype=float)
    faces = [
        [0, 3, 2, 1],  # -Z
        [4, 5, 6, 7],  # +Z
        [0, 1, 5, 4],  # -Y
        [3, 7, 6, 2],  # +Y
        [0, 4, 7, 3],  # -X
        [1, 2, 6, 5],  # +X
    ]
    return HalfEdgeMesh(vertices, faces)


def make_quad(center=(0.0, 0.0, 0.0), size: float = 1.0) -> HalfEdgeMesh:
    """Single square in the XZ plane facing +Y."""
    h = 0.5 * float(size)
    vertices = np.array(
        [
            [-h, 0.0, -h],
            [h, 0.0, -h],
            [h, 0.0, h],
            [-h, 0.0, h],
        ],
        dtype=float,
    ) + np.asarray(center, dtype=float)
    return HalfEdgeMesh(vertices, [[0, 3, 2, 1]])


def make_grid(x_count: int = 4, z_count: int = 4, spacing: float = 1.0) -> HalfEdgeMesh:
    """x_count * z_count quads in the XZ plane, centered on the origin, facing +Y."""
    x_count = max(int(x_count), 1)
    z_count = max(int(z_count), 1)
    width = x_count * spacing
    depth = z_count * spacing

    vertices = []
    for d in range(z_count + 1):
        z = d * spacing - 0.5 * depth
        for w in range(x_count + 1):
            x = w * spacing - 0.5 * width
            vertices.append([x, 0.0, z])

    faces = []
    for d in range(z_count):
        for w in range(x_count):
            v00 = d * (x_count + 1) + w
            v10 = v00 + 1
            v01 = v00 + (x_count + 1)
            v11 = v01 + 1
            faces.append([v00, v01, v11, v10])

    return HalfEdgeMesh(np.array(vertices, dtype=float), faces)
