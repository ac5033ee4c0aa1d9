"""Bridge between the editor graph and the compiler.

- ui_graph_to_compiler_graph: GraphData -> (CompilerGraph, NodeMapping)
- extract_graph_params: widget values for a compiled program's external
  parameters

Both work on one snapshot of the editor graph. The mapping they share is
rebuilt on every call and must not outlive the frame it was built in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, Tuple, Union, overload

from geonodes import log
from geonodes.errors import GraphConstructionError, ParameterResolutionError
from geonodes.nodegraph.compiler_graph import CompilerGraph
from geonodes.nodegraph.graph_data import GraphData, MissingInputError

if TYPE_CHECKING:
    from geonodes.compiler.graph_compiler import CompiledProgram, ExternalParameterValues


class NodeMapping:
    """
    Bidirectional map between editor node ids (str) and compiler ids (int).

    Two plain dicts, one per direction. Indexing with either id type looks
    up the other side.
    """

    def __init__(self) -> None:
        self._to_compiler: Dict[str, int] = {}
        self._to_ui: Dict[int, str] = {}

    def insert(self, ui_id: str, compiler_id: int) -> None:
        self._to_compiler[ui_id] = compiler_id
        self._to_ui[compiler_id] = ui_id

    def to_compiler(self, ui_id: str) -> int:
        return self._to_compiler[ui_id]

    def to_ui(self, compiler_id: int) -> str:
        return self._to_ui[compiler_id]

    @overload
    def __getitem__(self, key: str) -> int: ...

    @overload
    def __getitem__(self, key: int) -> str: ...

    def __getitem__(self, key: Union[str, int]) -> Union[str, int]:
        if isinstance(key, str):
            return self._to_compiler[key]
        return self._to_ui[key]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._to_compiler
        return key in self._to_ui

    def __len__(self) -> int:
        return len(self._to_compiler)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(self._to_compiler.items())

    def __repr__(self) -> str:
        return f"NodeMapping({self._to_compiler!r})"


def ui_graph_to_compiler_graph(graph: GraphData) -> Tuple[CompilerGraph, NodeMapping]:
    """
    Translate the editor graph into a fresh CompilerGraph.

    All nodes and their sockets are registered before any connection, since
    connections are resolved by socket name.

    Raises:
        GraphConstructionError: duplicate port, dangling connection or type
            mismatch. Nothing partial is returned.
    """
    compiler_graph = CompilerGraph()
    mapping = NodeMapping()
    input_names: Dict[str, str] = {}
    output_names: Dict[str, str] = {}

    for node_id, node in graph.nodes.items():
        compiler_id = compiler_graph.add_node(node.op_name, node.returns)
        mapping.insert(node_id, compiler_id)

        for input_name, input_id in node.inputs.items():
            param = graph.inputs.get(input_id)
            if param is None:
                raise GraphConstructionError(
                    f"Node {node_id} references missing input socket {input_id}"
                )
            compiler_graph.add_input(compiler_id, input_name, param.data_type, param.kind)
            input_names[input_id] = input_name
        for output_name, output_id in node.outputs.items():
            param = graph.outputs.get(output_id)
            if param is None:
                raise GraphConstructionError(
                    f"Node {node_id} references missing output socket {output_id}"
                )
            compiler_graph.add_output(compiler_id, output_name, param.data_type)
            output_names[output_id] = output_name

    for input_id, output_id in graph.connections_iter():
        input_name = input_names.get(input_id)
        output_name = output_names.get(output_id)
        if input_name is None or output_name is None:
            raise GraphConstructionError(
                f"Connection {output_id} -> {input_id} references an unregistered socket"
            )

        input_node_id = mapping[graph.inputs[input_id].node_id]
        output_node_id = mapping[graph.outputs[output_id].node_id]

        compiler_graph.add_connection(output_node_id, output_name, input_node_id, input_name)

    return compiler_graph, mapping


def extract_graph_params(
    graph: GraphData,
    mapping: NodeMapping,
    program: "CompiledProgram",
) -> "ExternalParameterValues":
    """
    Collect current widget values for every external parameter of program.

    Raises:
        ParameterResolutionError: a descriptor names a node or input that is
            not in this graph snapshot.
    """
    params: "ExternalParameterValues" = {}

    for external_def in program.external_parameters:
        if external_def.node_id not in mapping:
            raise ParameterResolutionError(
                f"Compiled node {external_def.node_id} has no editor node"
            )
        node_id = mapping[external_def.node_id]
        node = graph.get_node(node_id)
        if node is None:
            raise ParameterResolutionError(f"Node {node_id} is no longer in the graph")
        try:
            input_id = node.get_input(external_def.param_name)
        except MissingInputError as e:
            raise ParameterResolutionError(str(e.args[0])) from e

        if external_def.addr in params:
            log.debug(f"[graph_interop] parameter address '{external_def.addr}' set twice, keeping the later value")
        params[external_def.addr] = graph.inputs[input_id].value

    return params
