"""Node template registry for the graph editor.

A template describes the sockets, defaults and return value of one
operation, so the editor can create nodes by operation name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from geonodes.nodegraph.data_types import DataType, ParamKind
from geonodes.nodegraph.graph_data import GraphData


@dataclass
class InputTemplate:
    name: str
    data_type: DataType
    default: Any = None
    kind: ParamKind = ParamKind.CONNECTION_OR_CONSTANT


@dataclass
class NodeTemplate:
    """Socket layout of one operation."""
    op_name: str
    label: str
    inputs: List[InputTemplate] = field(default_factory=list)
    outputs: List[Tuple[str, DataType]] = field(default_factory=list)
    returns: Optional[str] = None


_templates: Dict[str, NodeTemplate] = {}


def register_template(template: NodeTemplate) -> NodeTemplate:
    _templates[template.op_name] = template
    return template


def get_template(op_name: str) -> NodeTemplate | None:
    """
    Get a node template by operation name.

    Returns:
        The template or None if no operation with this name is registered.
    """
    return _templates.get(op_name)


def all_template_names() -> List[str]:
    """Get list of all registered operation names."""
    return list(_templates.keys())


def instantiate_template(graph: GraphData, op_name: str, **values: Any) -> str:
    """
    Add a node built from a template to the graph.

    Args:
        graph: Graph to add the node to.
        op_name: Registered operation name.
        **values: Initial widget values overriding template defaults.

    Returns:
        Id of the new node.
    """
    template = get_template(op_name)
    if template is None:
        raise KeyError(f"Unknown node template: {op_name}")

    unknown = set(values) - {inp.name for inp in template.inputs}
    if unknown:
        raise KeyError(f"{op_name} has no inputs named {sorted(unknown)}")

    node_id = graph.add_node(template.op_name, template.label, template.returns)
    for inp in template.inputs:
        graph.add_input_param(
            node_id,
            inp.name,
            inp.data_type,
            value=values.get(inp.name, inp.default),
            kind=inp.kind,
        )
    for name, data_type in template.outputs:
        graph.add_output_param(node_id, name, data_type)
    return node_id


def _mesh_op(op_name: str, label: str, *inputs: InputTemplate) -> NodeTemplate:
    return NodeTemplate(
        op_name=op_name,
        label=label,
        inputs=list(inputs),
        outputs=[("out_mesh", DataType.MESH)],
        returns="out_mesh",
    )


def _mesh_input(name: str = "mesh") -> InputTemplate:
    return InputTemplate(name, DataType.MESH, kind=ParamKind.CONNECTION_ONLY)


# Built-in operations. Implementations live in geonodes.compiler.operations.

register_template(_mesh_op(
    "MakeBox", "Box",
    InputTemplate("origin", DataType.VECTOR, (0.0, 0.0, 0.0)),
    InputTemplate("size", DataType.VECTOR, (1.0, 1.0, 1.0)),
))
register_template(_mesh_op(
    "MakeQuad", "Quad",
    InputTemplate("center", DataType.VECTOR, (0.0, 0.0, 0.0)),
    InputTemplate("size", DataType.SCALAR, 1.0),
))
register_template(_mesh_op(
    "MakeGrid", "Grid",
    InputTemplate("x_count", DataType.SCALAR, 4.0),
    InputTemplate("z_count", DataType.SCALAR, 4.0),
    InputTemplate("spacing", DataType.SCALAR, 1.0),
))
register_template(_mesh_op(
    "Translate", "Translate",
    _mesh_input(),
    InputTemplate("translate", DataType.VECTOR, (0.0, 0.0, 0.0)),
))
register_template(_mesh_op(
    "Scale", "Scale",
    _mesh_input(),
    InputTemplate("factor", DataType.VECTOR, (1.0, 1.0, 1.0)),
))
register_template(_mesh_op(
    "SetSmoothNormals", "Smooth normals",
    _mesh_input(),
    InputTemplate("shading", DataType.ENUM, "smooth", kind=ParamKind.CONSTANT_ONLY),
))
register_template(_mesh_op(
    "MergeMeshes", "Merge",
    _mesh_input("mesh_a"),
    _mesh_input("mesh_b"),
))
register_template(_mesh_op(
    "SelectFaces", "Select faces",
    _mesh_input(),
    InputTemplate("faces", DataType.SELECTION, "*"),
))
register_template(NodeTemplate(
    op_name="MakeHeightMap",
    label="Height map",
    inputs=[
        InputTemplate("width", DataType.SCALAR, 16.0),
        InputTemplate("depth", DataType.SCALAR, 16.0),
        InputTemplate("cell_size", DataType.SCALAR, 1.0),
        InputTemplate("amplitude", DataType.SCALAR, 1.0),
        InputTemplate("frequency", DataType.SCALAR, 0.5),
    ],
    outputs=[("out_heightmap", DataType.HEIGHTMAP)],
    returns="out_heightmap",
))
register_template(NodeTemplate(
    op_name="MakeScalar",
    label="Scalar",
    inputs=[InputTemplate("value", DataType.SCALAR, 0.0, kind=ParamKind.CONSTANT_ONLY)],
    outputs=[("out_scalar", DataType.SCALAR)],
    returns="out_scalar",
))
register_template(NodeTemplate(
    op_name="MakeVector",
    label="Vector",
    inputs=[
        InputTemplate("x", DataType.SCALAR, 0.0),
        InputTemplate("y", DataType.SCALAR, 0.0),
        InputTemplate("z", DataType.SCALAR, 0.0),
    ],
    outputs=[("out_vector", DataType.VECTOR)],
    returns="out_vector",
))
register_template(NodeTemplate(
    op_name="VectorMath",
    label="Vector math",
    inputs=[
        InputTemplate("op", DataType.ENUM, "add", kind=ParamKind.CONSTANT_ONLY),
        InputTemplate("a", DataType.VECTOR, (0.0, 0.0, 0.0)),
        InputTemplate("b", DataType.VECTOR, (0.0, 0.0, 0.0)),
    ],
    outputs=[("out_vector", DataType.VECTOR)],
    returns="out_vector",
))
register_template(NodeTemplate(
    op_name="ExportObj",
    label="Export OBJ",
    inputs=[
        _mesh_input(),
        InputTemplate("path", DataType.NEW_FILE, "", kind=ParamKind.CONSTANT_ONLY),
    ],
    outputs=[],
    returns=None,
))
