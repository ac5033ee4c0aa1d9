"""Artifact extractor - turns the current renderable thing into buffer sets.

What gets produced depends on the artifact kind and the viewport draw modes:

    HalfEdgeMesh: base mesh (face mode), overlay (always), wireframe (edge
                  mode), points (always)
    HeightMap:    base mesh
    None:         nothing

A generator that fails on a structurally broken mesh only drops its own
buffer set; extraction itself never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from geonodes import log
from geonodes.application.viewport_settings import (
    EdgeDrawMode,
    FaceDrawMode,
    Viewport3dSettings,
)
from geonodes.errors import MeshGenerationError
from geonodes.mesh.buffers import (
    FaceOverlayBuffers,
    LineBuffers,
    PointBuffers,
    VertexIndexBuffers,
)
from geonodes.mesh.halfedge import HalfEdgeMesh
from geonodes.mesh.heightmap import HeightMap
from geonodes.mesh.renderable import RenderableThing

Buffers = Union[VertexIndexBuffers, FaceOverlayBuffers, LineBuffers, PointBuffers]


class BufferSetKind(Enum):
    """Which render routine a buffer set goes to."""
    BASE_MESH = "base_mesh"
    OVERLAY = "overlay"
    WIREFRAME = "wireframe"
    POINTS = "points"


@dataclass
class BufferSet:
    kind: BufferSetKind
    buffers: Buffers


def _generate(kind: BufferSetKind, generator: Callable[[], Buffers]) -> Optional[BufferSet]:
    try:
        return BufferSet(kind, generator())
    except MeshGenerationError as e:
        log.warn(e, f"[artifact_extractor] skipping {kind.value} buffers")
        return None


def _face_generator(mesh: HalfEdgeMesh, mode: FaceDrawMode) -> Optional[Callable[[], Buffers]]:
    match mode:
        case FaceDrawMode.REAL:
            if mesh.gen_config.smooth_normals:
                return lambda: mesh.generate_triangle_buffers_smooth(False)
            return lambda: mesh.generate_triangle_buffers_flat(False)
        case FaceDrawMode.FLAT:
            return lambda: mesh.generate_triangle_buffers_flat(True)
        case FaceDrawMode.SMOOTH:
            return lambda: mesh.generate_triangle_buffers_smooth(True)
        case FaceDrawMode.NONE:
            return None


def _edge_generator(mesh: HalfEdgeMesh, mode: EdgeDrawMode) -> Optional[Callable[[], Buffers]]:
    match mode:
        case EdgeDrawMode.HALF_EDGE:
            return mesh.generate_halfedge_arrow_buffers
        case EdgeDrawMode.FULL_EDGE:
            return mesh.generate_line_buffers
        case EdgeDrawMode.NONE:
            return None


def extract_buffers(
    thing: Optional[RenderableThing],
    settings: Viewport3dSettings,
) -> List[BufferSet]:
    """
    Produce the buffer sets to draw for thing under the given draw modes.

    Produced sets may be empty; upload_buffer_set skips those.
    """
    generators: List[tuple] = []

    match thing:
        case HalfEdgeMesh():
            face_gen = _face_generator(thing, settings.face_mode)
            if face_gen is not None:
                generators.append((BufferSetKind.BASE_MESH, face_gen))
            generators.append((BufferSetKind.OVERLAY, thing.generate_face_overlay_buffers))
            edge_gen = _edge_generator(thing, settings.edge_mode)
            if edge_gen is not None:
                generators.append((BufferSetKind.WIREFRAME, edge_gen))
            generators.append((BufferSetKind.POINTS, thing.generate_point_buffers))
        case HeightMap():
            generators.append((BufferSetKind.BASE_MESH, thing.generate_triangle_buffers))
        case None:
            pass

    result: List[BufferSet] = []
    for kind, generator in generators:
        buffer_set = _generate(kind, generator)
        if buffer_set is not None:
            result.append(buffer_set)
    return result
