"""Polygon mesh with half-edge connectivity and draw buffer generators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from geonodes.errors import MeshGenerationError
from geonodes.mesh.buffers import (
    FaceOverlayBuffers,
    LineBuffers,
    PointBuffers,
    VertexIndexBuffers,
)

# Debug views pull every face toward its centroid so neighbours don't touch
DEBUG_SHRINK = 0.85

OVERLAY_COLOR = (0.9, 0.45, 0.1)
OVERLAY_OFFSET = 1e-3
EDGE_COLOR = (0.8, 0.8, 0.8)
HALFEDGE_COLOR = (0.2, 0.8, 0.3)
HALFEDGE_BOUNDARY_COLOR = (0.9, 0.2, 0.2)


@dataclass
class MeshGenConfig:
    """Generation preferences the mesh carries with it."""
    smooth_normals: bool = False


@dataclass
class HalfEdges:
    """
    Half-edge connectivity in flat arrays.

    Half-edge h goes from origin[h] to origin[next[h]] and belongs to face[h].
    twin[h] is -1 on boundary edges.
    """
    origin: np.ndarray
    next: np.ndarray
    twin: np.ndarray
    face: np.ndarray


class HalfEdgeMesh:
    """
    Polygon mesh: vertex positions plus faces as vertex index loops.

    Connectivity is built lazily on first use, so a structurally broken mesh
    can be held and only fails when buffers are generated from it.
    """

    def __init__(
        self,
        positions,
        faces: Iterable[Sequence[int]],
        gen_config: Optional[MeshGenConfig] = None,
        face_selection: Optional[Iterable[int]] = None,
    ):
        self.positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        self.faces: List[Tuple[int, ...]] = [tuple(int(i) for i in f) for f in faces]
        self.gen_config = gen_config or MeshGenConfig()
        self.face_selection: Set[int] = set(face_selection or ())
        self._halfedges: Optional[HalfEdges] = None

    @property
    def num_vertices(self) -> int:
        return len(self.positions)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def copy(self) -> "HalfEdgeMesh":
        return HalfEdgeMesh(
            self.positions.copy(),
            self.faces,
            MeshGenConfig(smooth_normals=self.gen_config.smooth_normals),
            self.face_selection,
        )

    def __repr__(self) -> str:
        return f"HalfEdgeMesh(vertices={self.num_vertices}, faces={self.num_faces})"

    # --------- connectivity ---------

    def validate(self) -> None:
        """Raise MeshGenerationError if any face is degenerate or out of range."""
        n = self.num_vertices
        for fi, face in enumerate(self.faces):
            if len(face) < 3:
                raise MeshGenerationError(f"Face {fi} has only {len(face)} vertices")
            for v in face:
                if v < 0 or v >= n:
                    raise MeshGenerationError(
                        f"Face {fi} references vertex {v}, mesh has {n} vertices"
                    )

    def halfedges(self) -> HalfEdges:
        if self._halfedges is None:
            self._halfedges = self._build_halfedges()
        return self._halfedges

    def _build_halfedges(self) -> HalfEdges:
        self.validate()
        origin: List[int] = []
        nxt: List[int] = []
        face_of: List[int] = []
        by_endpoints: Dict[Tuple[int, int], int] = {}

        for fi, face in enumerate(self.faces):
            base = len(origin)
            k = len(face)
            for i, v in enumerate(face):
                h = base + i
                origin.append(v)
                nxt.append(base + (i + 1) % k)
                face_of.append(fi)
                key = (v, face[(i + 1) % k])
                if key in by_endpoints:
                    raise MeshGenerationError(
                        f"Edge {key[0]}->{key[1]} is used by more than one face "
                        "with the same orientation"
                    )
                by_endpoints[key] = h

        twin = np.full(len(origin), -1, dtype=np.int64)
        for (a, b), h in by_endpoints.items():
            t = by_endpoints.get((b, a))
            if t is not None:
                twin[h] = t

        return HalfEdges(
            origin=np.asarray(origin, dtype=np.int64),
            next=np.asarray(nxt, dtype=np.int64),
            twin=twin,
            face=np.asarray(face_of, dtype=np.int64),
        )

    def invalidate(self) -> None:
        """Drop cached connectivity after editing positions or faces."""
        self._halfedges = None

    # --------- geometry helpers ---------

    def face_positions(self, face_index: int) -> np.ndarray:
        return self.positions[list(self.faces[face_index])]

    def face_normal(self, face_index: int) -> np.ndarray:
        """Newell normal, stable for non-planar and concave polygons."""
        pts = self.face_positions(face_index).astype(np.float64)
        rolled = np.roll(pts, -1, axis=0)
        normal = np.array([
            np.sum((pts[:, 1] - rolled[:, 1]) * (pts[:, 2] + rolled[:, 2])),
            np.sum((pts[:, 2] - rolled[:, 2]) * (pts[:, 0] + rolled[:, 0])),
            np.sum((pts[:, 0] - rolled[:, 0]) * (pts[:, 1] + rolled[:, 1])),
        ])
        length = np.linalg.norm(normal)
        if length == 0.0:
            return np.zeros(3)
        return normal / length

    def face_centroid(self, face_index: int) -> np.ndarray:
        return self.face_positions(face_index).mean(axis=0)

    def vertex_normals(self) -> np.ndarray:
        normals = np.zeros((self.num_vertices, 3), dtype=np.float64)
        for fi, face in enumerate(self.faces):
            normals[list(face)] += self.face_normal(fi)
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        lengths[lengths == 0.0] = 1.0
        return normals / lengths

    # --------- buffer generators ---------

    def _triangle_buffers(self, smooth: bool, shrink: bool) -> VertexIndexBuffers:
        self.halfedges()
        vertex_normals = self.vertex_normals() if smooth else None

        positions: List[np.ndarray] = []
        normals: List[np.ndarray] = []
        indices: List[int] = []
        base = 0

        for fi, face in enumerate(self.faces):
            pts = self.face_positions(fi)
            if shrink:
                centroid = pts.mean(axis=0)
                pts = centroid + (pts - centroid) * DEBUG_SHRINK
            if smooth:
                nrm = vertex_normals[list(face)]
            else:
                nrm = np.tile(self.face_normal(fi), (len(face), 1))

            positions.append(pts)
            normals.append(nrm)
            # Fan triangulation around the first corner
            for i in range(1, len(face) - 1):
                indices.extend((base, base + i, base + i + 1))
            base += len(face)

        if not positions:
            return VertexIndexBuffers()
        return VertexIndexBuffers(
            positions=np.concatenate(positions),
            normals=np.concatenate(normals),
            indices=indices,
        )

    def generate_triangle_buffers_flat(self, shrink: bool = False) -> VertexIndexBuffers:
        """Triangles with one normal per face."""
        return self._triangle_buffers(smooth=False, shrink=shrink)

    def generate_triangle_buffers_smooth(self, shrink: bool = False) -> VertexIndexBuffers:
        """Triangles with averaged per-vertex normals."""
        return self._triangle_buffers(smooth=True, shrink=shrink)

    def generate_face_overlay_buffers(self) -> FaceOverlayBuffers:
        """Highlight triangles for selected faces, lifted slightly off the surface."""
        self.validate()
        positions: List[np.ndarray] = []
        for fi in sorted(self.face_selection):
            if fi < 0 or fi >= self.num_faces:
                continue
            pts = self.face_positions(fi) + self.face_normal(fi) * OVERLAY_OFFSET
            for i in range(1, len(pts) - 1):
                positions.append(np.stack([pts[0], pts[i], pts[i + 1]]))

        if not positions:
            return FaceOverlayBuffers()
        flat = np.concatenate(positions)
        return FaceOverlayBuffers(
            positions=flat,
            colors=np.tile(OVERLAY_COLOR, (len(flat), 1)),
        )

    def generate_line_buffers(self) -> LineBuffers:
        """One segment per full edge (a twin pair is drawn once)."""
        he = self.halfedges()
        segments: List[Tuple[int, int]] = []
        for h in range(len(he.origin)):
            t = he.twin[h]
            if t != -1 and t < h:
                continue
            segments.append((he.origin[h], he.origin[he.next[h]]))

        if not segments:
            return LineBuffers()
        positions = self.positions[np.asarray(segments).reshape(-1)]
        return LineBuffers(
            positions=positions,
            colors=np.tile(EDGE_COLOR, (len(positions), 1)),
        )

    def generate_halfedge_arrow_buffers(self) -> LineBuffers:
        """
        One arrow per half-edge, drawn inside its face.

        Each arrow is a shaft plus two head strokes (three segments).
        Boundary half-edges get a distinct color.
        """
        he = self.halfedges()
        positions: List[np.ndarray] = []
        colors: List[Tuple[float, float, float]] = []

        centroids = [self.face_centroid(fi) for fi in range(self.num_faces)]
        normals = [self.face_normal(fi) for fi in range(self.num_faces)]

        for h in range(len(he.origin)):
            fi = he.face[h]
            centroid = centroids[fi]
            a = self.positions[he.origin[h]]
            b = self.positions[he.origin[he.next[h]]]
            # Shrink toward the face so both twins are visible
            a = centroid + (a - centroid) * DEBUG_SHRINK
            b = centroid + (b - centroid) * DEBUG_SHRINK
            start = a + (b - a) * 0.1
            end = a + (b - a) * 0.9

            direction = end - start
            side = np.cross(normals[fi], direction) * 0.15
            back = end - direction * 0.2

            color = HALFEDGE_BOUNDARY_COLOR if he.twin[h] == -1 else HALFEDGE_COLOR
            positions.extend([start, end, end, back + side, end, back - side])
            colors.extend([color] * 6)

        if not positions:
            return LineBuffers()
        return LineBuffers(positions=np.stack(positions), colors=colors)

    def generate_point_buffers(self) -> PointBuffers:
        return PointBuffers(positions=self.positions.copy())

    # --------- export ---------

    def to_obj(self) -> str:
        """Wavefront OBJ text (1-based indices)."""
        self.validate()
        lines = ["# geonodes"]
        for x, y, z in self.positions:
            lines.append(f"v {x:.6f} {y:.6f} {z:.6f}")
        for face in self.faces:
            lines.append("f " + " ".join(str(v + 1) for v in face))
        return "\n".join(lines) + "\n"
