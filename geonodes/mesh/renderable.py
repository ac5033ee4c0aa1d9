"""The result of running a compiled program.

RenderableThing is a closed union. Code that consumes it matches on the
member types; a new kind of artifact is added here and to every match.
"""

from __future__ import annotations

from typing import Union

from geonodes.mesh.halfedge import HalfEdgeMesh
from geonodes.mesh.heightmap import HeightMap

RenderableThing = Union[HalfEdgeMesh, HeightMap]

RENDERABLE_TYPES = (HalfEdgeMesh, HeightMap)


def is_renderable(value: object) -> bool:
    return isinstance(value, RENDERABLE_TYPES)
