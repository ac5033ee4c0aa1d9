"""Draw-ready geometry buffers handed to the render routines."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def _vec3_array(data=None) -> np.ndarray:
    if data is None:
        return np.zeros((0, 3), dtype=np.float32)
    return np.asarray(data, dtype=np.float32).reshape(-1, 3)


def _index_array(data=None) -> np.ndarray:
    if data is None:
        return np.zeros(0, dtype=np.uint32)
    return np.asarray(data, dtype=np.uint32).reshape(-1)


@dataclass
class VertexIndexBuffers:
    """Triangle buffers: one normal per position, three indices per triangle."""
    positions: np.ndarray = field(default_factory=_vec3_array)
    normals: np.ndarray = field(default_factory=_vec3_array)
    indices: np.ndarray = field(default_factory=_index_array)

    def __post_init__(self):
        self.positions = _vec3_array(self.positions)
        self.normals = _vec3_array(self.normals)
        self.indices = _index_array(self.indices)

    def is_empty(self) -> bool:
        return len(self.positions) == 0


@dataclass
class FaceOverlayBuffers:
    """Colored triangles drawn over highlighted faces (three vertices each)."""
    positions: np.ndarray = field(default_factory=_vec3_array)
    colors: np.ndarray = field(default_factory=_vec3_array)

    def __post_init__(self):
        self.positions = _vec3_array(self.positions)
        self.colors = _vec3_array(self.colors)

    def is_empty(self) -> bool:
        return len(self.positions) == 0


@dataclass
class LineBuffers:
    """Line segments, two consecutive positions per segment."""
    positions: np.ndarray = field(default_factory=_vec3_array)
    colors: np.ndarray = field(default_factory=_vec3_array)

    def __post_init__(self):
        self.positions = _vec3_array(self.positions)
        self.colors = _vec3_array(self.colors)

    def is_empty(self) -> bool:
        return len(self.positions) == 0


@dataclass
class PointBuffers:
    positions: np.ndarray = field(default_factory=_vec3_array)

    def __post_init__(self):
        self.positions = _vec3_array(self.positions)

    def is_empty(self) -> bool:
        return len(self.positions) == 0
