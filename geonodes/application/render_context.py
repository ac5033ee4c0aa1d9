"""
Render subsystem seen from the application.

The application clears the render objects at the start of every frame and
uploads the buffers extracted from the current artifact through three
routines:

    render_ctx.clear_objects()
    render_ctx.face_routine.add_base_mesh(positions, normals, indices)
    render_ctx.face_routine.add_overlay_mesh(positions, colors)
    render_ctx.wireframe_routine.add_wireframe(positions, colors)
    render_ctx.point_cloud_routine.add_point_cloud(positions)

RecordingRenderContext keeps every uploaded object in memory; it is what
headless runs and tests draw into.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable

import numpy as np

from geonodes.application.artifact_extractor import BufferSet, BufferSetKind


@runtime_checkable
class FaceRoutine(Protocol):
    def add_base_mesh(self, positions: np.ndarray, normals: np.ndarray, indices: np.ndarray) -> None:
        ...

    def add_overlay_mesh(self, positions: np.ndarray, colors: np.ndarray) -> None:
        ...


@runtime_checkable
class WireframeRoutine(Protocol):
    def add_wireframe(self, positions: np.ndarray, colors: np.ndarray) -> None:
        ...


@runtime_checkable
class PointCloudRoutine(Protocol):
    def add_point_cloud(self, positions: np.ndarray) -> None:
        ...


@runtime_checkable
class RenderContext(Protocol):
    """
    Render context the application uploads geometry into.

    Attributes:
        face_routine: Base and overlay triangles.
        wireframe_routine: Line segments.
        point_cloud_routine: Points.
    """

    face_routine: FaceRoutine
    wireframe_routine: WireframeRoutine
    point_cloud_routine: PointCloudRoutine

    def clear_objects(self) -> None:
        """Forget everything uploaded so far. Safe to call when empty."""
        ...


# --------- in-memory implementation ---------

@dataclass
class RecordedObject:
    kind: BufferSetKind
    positions: np.ndarray
    normals: np.ndarray | None = None
    indices: np.ndarray | None = None
    colors: np.ndarray | None = None


@dataclass
class _RecordingRoutines:
    objects: List[RecordedObject] = field(default_factory=list)

    def add_base_mesh(self, positions, normals, indices) -> None:
        self.objects.append(RecordedObject(
            BufferSetKind.BASE_MESH, positions, normals=normals, indices=indices
        ))

    def add_overlay_mesh(self, positions, colors) -> None:
        self.objects.append(RecordedObject(BufferSetKind.OVERLAY, positions, colors=colors))

    def add_wireframe(self, positions, colors) -> None:
        self.objects.append(RecordedObject(BufferSetKind.WIREFRAME, positions, colors=colors))

    def add_point_cloud(self, positions) -> None:
        self.objects.append(RecordedObject(BufferSetKind.POINTS, positions))


class RecordingRenderContext:
    """RenderContext that records uploads instead of drawing them."""

    def __init__(self) -> None:
        self._routines = _RecordingRoutines()
        self.clear_count = 0

    @property
    def face_routine(self) -> FaceRoutine:
        return self._routines

    @property
    def wireframe_routine(self) -> WireframeRoutine:
        return self._routines

    @property
    def point_cloud_routine(self) -> PointCloudRoutine:
        return self._routines

    @property
    def objects(self) -> List[RecordedObject]:
        return self._routines.objects

    def objects_of_kind(self, kind: BufferSetKind) -> List[RecordedObject]:
        return [obj for obj in self.objects if obj.kind == kind]

    def clear_objects(self) -> None:
        self._routines.objects.clear()
        self.clear_count += 1


def upload_buffer_set(render_ctx: RenderContext, buffer_set: BufferSet) -> bool:
    """
    Hand one buffer set to its render routine.

    Sets with no positions are skipped so no empty draw work is issued.

    Returns:
        True if the set was uploaded.
    """
    buffers = buffer_set.buffers
    if buffers.is_empty():
        return False

    match buffer_set.kind:
        case BufferSetKind.BASE_MESH:
            render_ctx.face_routine.add_base_mesh(buffers.positions, buffers.normals, buffers.indices)
        case BufferSetKind.OVERLAY:
            render_ctx.face_routine.add_overlay_mesh(buffers.positions, buffers.colors)
        case BufferSetKind.WIREFRAME:
            render_ctx.wireframe_routine.add_wireframe(buffers.positions, buffers.colors)
        case BufferSetKind.POINTS:
            render_ctx.point_cloud_routine.add_point_cloud(buffers.positions)
    return True
