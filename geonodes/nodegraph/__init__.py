"""Node graph: editable graph data and its translation to the compiler graph."""

from geonodes.nodegraph.data_types import DataType, ParamKind
from geonodes.nodegraph.graph_data import GraphData, GraphEditorState, NodeData
from geonodes.nodegraph.compiler_graph import CompilerGraph
from geonodes.nodegraph.graph_interop import (
    NodeMapping,
    extract_graph_params,
    ui_graph_to_compiler_graph,
)

__all__ = [
    "DataType",
    "ParamKind",
    "GraphData",
    "GraphEditorState",
    "NodeData",
    "CompilerGraph",
    "NodeMapping",
    "extract_graph_params",
    "ui_graph_to_compiler_graph",
]
