"""Operation registry: what each node op_name does at run time.

An operation takes the step inputs as keyword arguments and returns a dict
of output name -> value. Node sockets for the built-in operations are
declared in geonodes.nodegraph.node_templates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Set

import numpy as np

from geonodes import log
from geonodes.mesh.halfedge import HalfEdgeMesh, MeshGenConfig
from geonodes.mesh.heightmap import HeightMap
from geonodes.mesh.primitives import make_box, make_grid, make_quad

Operation = Callable[..., Dict[str, Any]]

_operations: Dict[str, Operation] = {}


def register_operation(op_name: str) -> Callable[[Operation], Operation]:
    """Decorator registering a function as the implementation of op_name."""
    def decorator(fn: Operation) -> Operation:
        _operations[op_name] = fn
        return fn
    return decorator


def get_operation(op_name: str) -> Operation | None:
    return _operations.get(op_name)


def all_operation_names() -> List[str]:
    return list(_operations.keys())


def default_operations() -> Dict[str, Operation]:
    """Snapshot of the registry, for runtimes that want their own copy."""
    return dict(_operations)


def _require_mesh(value: Any, name: str) -> HalfEdgeMesh:
    if not isinstance(value, HalfEdgeMesh):
        raise TypeError(f"'{name}' must be a mesh, got {type(value).__name__}")
    return value


def _vec3(value: Any) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float32).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got {value!r}")
    return arr


def parse_selection(text: str, count: int) -> Set[int]:
    """
    Parse a face selection: "*" (all), "0, 2, 5" or ranges like "1..4".

    Indices outside [0, count) are dropped.
    """
    text = (text or "").strip()
    if text == "*":
        return set(range(count))
    selected: Set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if ".." in part:
            lo, hi = part.split("..", 1)
            selected.update(range(int(lo), int(hi) + 1))
        else:
            selected.add(int(part))
    return {i for i in selected if 0 <= i < count}


# --------- mesh sources ---------

@register_operation("MakeBox")
def op_make_box(origin, size) -> Dict[str, Any]:
    return {"out_mesh": make_box(_vec3(origin), _vec3(size))}


@register_operation("MakeQuad")
def op_make_quad(center, size) -> Dict[str, Any]:
    return {"out_mesh": make_quad(_vec3(center), float(size))}


@register_operation("MakeGrid")
def op_make_grid(x_count, z_count, spacing) -> Dict[str, Any]:
    return {"out_mesh": make_grid(int(x_count), int(z_count), float(spacing))}


# --------- mesh edits ---------

@register_operation("Translate")
def op_translate(mesh, translate) -> Dict[str, Any]:
    result = _require_mesh(mesh, "mesh").copy()
    result.positions += _vec3(translate)
    return {"out_mesh": result}


@register_operation("Scale")
def op_scale(mesh, factor) -> Dict[str, Any]:
    result = _require_mesh(mesh, "mesh").copy()
    result.positions *= _vec3(factor)
    return {"out_mesh": result}


@register_operation("SetSmoothNormals")
def op_set_smooth_normals(mesh, shading) -> Dict[str, Any]:
    if shading not in ("smooth", "flat"):
        raise ValueError(f"Unknown shading '{shading}', expected 'smooth' or 'flat'")
    result = _require_mesh(mesh, "mesh").copy()
    result.gen_config = MeshGenConfig(smooth_normals=(shading == "smooth"))
    return {"out_mesh": result}


@register_operation("MergeMeshes")
def op_merge_meshes(mesh_a, mesh_b) -> Dict[str, Any]:
    a = _require_mesh(mesh_a, "mesh_a")
    b = _require_mesh(mesh_b, "mesh_b")
    offset = a.num_vertices
    faces = list(a.faces) + [tuple(v + offset for v in f) for f in b.faces]
    selection = set(a.face_selection) | {fi + a.num_faces for fi in b.face_selection}
    merged = HalfEdgeMesh(
        np.concatenate([a.positions, b.positions]),
        faces,
        MeshGenConfig(smooth_normals=a.gen_config.smooth_normals),
        selection,
    )
    return {"out_mesh": merged}


@register_operation("SelectFaces")
def op_select_faces(mesh, faces) -> Dict[str, Any]:
    result = _require_mesh(mesh, "mesh").copy()
    result.face_selection = parse_selection(str(faces), result.num_faces)
    return {"out_mesh": result}


# --------- height fields ---------

@register_operation("MakeHeightMap")
def op_make_height_map(width, depth, cell_size, amplitude, frequency) -> Dict[str, Any]:
    w = max(int(width), 0)
    d = max(int(depth), 0)
    xs, zs = np.meshgrid(np.arange(w), np.arange(d))
    f = float(frequency)
    heights = float(amplitude) * np.sin(xs * f) * np.cos(zs * f)
    return {"out_heightmap": HeightMap(heights.reshape(d, w), float(cell_size))}


# --------- values ---------

@register_operation("MakeScalar")
def op_make_scalar(value) -> Dict[str, Any]:
    return {"out_scalar": float(value)}


@register_operation("MakeVector")
def op_make_vector(x, y, z) -> Dict[str, Any]:
    return {"out_vector": (float(x), float(y), float(z))}


_VECTOR_OPS = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "cross": np.cross,
}


@register_operation("VectorMath")
def op_vector_math(op, a, b) -> Dict[str, Any]:
    fn = _VECTOR_OPS.get(op)
    if fn is None:
        raise ValueError(f"Unknown vector op '{op}', expected one of {sorted(_VECTOR_OPS)}")
    result = fn(_vec3(a), _vec3(b))
    return {"out_vector": tuple(float(c) for c in result)}


# --------- side effects ---------

@register_operation("ExportObj")
def op_export_obj(mesh, path) -> Dict[str, Any]:
    """Write mesh as a Wavefront OBJ file. No outputs."""
    if not path:
        raise ValueError("No export path set")
    target = Path(path)
    target.write_text(_require_mesh(mesh, "mesh").to_obj(), encoding="utf-8")
    log.info(f"[operations] exported mesh to {target}")
    return {}

