"""Height field on a regular XZ grid."""

from __future__ import annotations

import numpy as np

from geonodes.errors import MeshGenerationError
from geonodes.mesh.buffers import VertexIndexBuffers


class HeightMap:
    """
    heights[z, x] is the Y coordinate of grid point (x * cell_size, z * cell_size).
    """

    def __init__(self, heights, cell_size: float = 1.0):
        self.heights = np.atleast_2d(np.asarray(heights, dtype=np.float32))
        if self.heights.ndim != 2:
            raise ValueError(f"Height map must be 2-D, got shape {self.heights.shape}")
        self.cell_size = float(cell_size)

    @property
    def width(self) -> int:
        return self.heights.shape[1]

    @property
    def depth(self) -> int:
        return self.heights.shape[0]

    def __repr__(self) -> str:
        return f"HeightMap({self.width}x{self.depth}, cell_size={self.cell_size})"

    def generate_triangle_buffers(self) -> VertexIndexBuffers:
        """Two triangles per grid cell, normals from the height gradient."""
        if self.heights.ndim != 2:
            raise MeshGenerationError(f"Height map must be 2-D, got shape {self.heights.shape}")
        depth, width = self.heights.shape
        if depth < 2 or width < 2:
            return VertexIndexBuffers()

        cs = self.cell_size
        xs, zs = np.meshgrid(np.arange(width) * cs, np.arange(depth) * cs)
        positions = np.stack([xs, self.heights, zs], axis=-1).reshape(-1, 3)

        dh_dz, dh_dx = np.gradient(self.heights.astype(np.float64), cs)
        normals = np.stack([-dh_dx, np.ones_like(dh_dx), -dh_dz], axis=-1).reshape(-1, 3)
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)

        row = np.arange(depth - 1)[:, None] * width
        col = np.arange(width - 1)[None, :]
        v00 = (row + col).reshape(-1)
        v10 = v00 + 1
        v01 = v00 + width
        v11 = v01 + 1
        indices = np.stack([v00, v01, v10, v10, v01, v11], axis=-1).reshape(-1)

        return VertexIndexBuffers(positions=positions, normals=normals, indices=indices)
