"""Compiler graph - the canonical, name-addressed graph fed to the compiler.

Built fresh from the editor graph for every compilation (see graph_interop).
Nodes are addressed by integer ids handed out by the graph, ports by
(node id, port name).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from geonodes.errors import GraphConstructionError
from geonodes.nodegraph.data_types import DataType, ParamKind


@dataclass(frozen=True)
class ConnectionDependency:
    """Input fed by another node's output."""
    node_id: int
    param_name: str


@dataclass(frozen=True)
class ExternalDependency:
    """Input fed by a widget value supplied at run time."""
    pass


Dependency = Union[ConnectionDependency, ExternalDependency]


@dataclass
class CompilerInput:
    name: str
    data_type: DataType
    kind: ParamKind = ParamKind.CONNECTION_OR_CONSTANT
    dependency: Dependency = field(default_factory=ExternalDependency)


@dataclass
class CompilerOutput:
    name: str
    data_type: DataType


@dataclass
class CompilerNode:
    op_name: str
    return_value: Optional[str] = None
    inputs: List[CompilerInput] = field(default_factory=list)
    outputs: List[CompilerOutput] = field(default_factory=list)

    def get_input(self, name: str) -> Optional[CompilerInput]:
        for inp in self.inputs:
            if inp.name == name:
                return inp
        return None

    def get_output(self, name: str) -> Optional[CompilerOutput]:
        for out in self.outputs:
            if out.name == name:
                return out
        return None


class CompilerGraph:
    """
    Graph of operation nodes with name-addressed ports.

    Ports must be registered on their node before a connection may
    reference them. Every mutation validates and raises
    GraphConstructionError instead of leaving a half-valid edge behind.
    """

    def __init__(self) -> None:
        self._nodes: Dict[int, CompilerNode] = {}
        self._connections: List[Tuple[int, str, int, str]] = []
        self._next_id = 0

    @property
    def nodes(self) -> Dict[int, CompilerNode]:
        return self._nodes

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def connections(self) -> List[Tuple[int, str, int, str]]:
        """(src_node, src_param, dst_node, dst_param) in insertion order."""
        return list(self._connections)

    def __getitem__(self, node_id: int) -> CompilerNode:
        return self._nodes[node_id]

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._nodes

    def _node(self, node_id: int) -> CompilerNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise GraphConstructionError(f"Node {node_id} is not in the graph")
        return node

    def add_node(self, op_name: str, return_value: Optional[str] = None) -> int:
        node_id = self._next_id
        self._next_id += 1
        self._nodes[node_id] = CompilerNode(op_name=op_name, return_value=return_value)
        return node_id

    def add_input(
        self,
        node_id: int,
        name: str,
        data_type: DataType,
        kind: ParamKind = ParamKind.CONNECTION_OR_CONSTANT,
    ) -> None:
        node = self._node(node_id)
        if node.get_input(name) is not None:
            raise GraphConstructionError(
                f"Input parameter '{name}' already exists for node {node_id} ({node.op_name})"
            )
        node.inputs.append(CompilerInput(name=name, data_type=data_type, kind=kind))

    def add_output(self, node_id: int, name: str, data_type: DataType) -> None:
        node = self._node(node_id)
        if node.get_output(name) is not None:
            raise GraphConstructionError(
                f"Output parameter '{name}' already exists for node {node_id} ({node.op_name})"
            )
        node.outputs.append(CompilerOutput(name=name, data_type=data_type))

    def add_connection(
        self,
        src_node: int,
        src_param: str,
        dst_node: int,
        dst_param: str,
    ) -> None:
        """Connect src_node.src_param (an output) to dst_node.dst_param (an input)."""
        src = self._node(src_node)
        dst = self._node(dst_node)

        output = src.get_output(src_param)
        if output is None:
            raise GraphConstructionError(
                f"Node {src_node} ({src.op_name}) has no output named '{src_param}'"
            )
        inp = dst.get_input(dst_param)
        if inp is None:
            raise GraphConstructionError(
                f"Node {dst_node} ({dst.op_name}) has no input named '{dst_param}'"
            )
        if not DataType.can_connect(output.data_type, inp.data_type):
            raise GraphConstructionError(
                f"Cannot connect {src.op_name}.{src_param} ({output.data_type.value}) "
                f"to {dst.op_name}.{dst_param} ({inp.data_type.value})"
            )
        if not inp.kind.accepts_connection():
            raise GraphConstructionError(
                f"Input {dst.op_name}.{dst_param} only accepts constant values"
            )

        inp.dependency = ConnectionDependency(node_id=src_node, param_name=src_param)
        self._connections.append((src_node, src_param, dst_node, dst_param))
