"""Mesh module - HalfEdgeMesh, HeightMap and their draw buffers."""

from geonodes.mesh.buffers import (
    FaceOverlayBuffers,
    LineBuffers,
    PointBuffers,
    VertexIndexBuffers,
)
from geonodes.mesh.halfedge import HalfEdgeMesh, MeshGenConfig
from geonodes.mesh.heightmap import HeightMap
from geonodes.mesh.primitives import make_box, make_grid, make_quad
from geonodes.mesh.renderable import RenderableThing, is_renderable

__all__ = [
    "FaceOverlayBuffers",
    "LineBuffers",
    "PointBuffers",
    "VertexIndexBuffers",
    "HalfEdgeMesh",
    "MeshGenConfig",
    "HeightMap",
    "make_box",
    "make_grid",
    "make_quad",
    "RenderableThing",
    "is_renderable",
]
