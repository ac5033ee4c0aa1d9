"""Pure data structures for the editable node graph.

These classes contain no UI dependencies and are what the editor mutates
between frames. They can be used for:
- Serialization/deserialization (JSON)
- Translation into a CompilerGraph (see graph_interop)
- Reading widget values for external program parameters

Identities are strings handed out by the graph ("n0", "i1", "o2", ...).
They stay stable while the graph lives, but nothing outside a single frame
should hold on to them across structural edits.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from geonodes.errors import GraphConstructionError
from geonodes.nodegraph.data_types import DataType, ParamKind


class MissingInputError(KeyError):
    """A node has no input with the requested name."""
    pass


@dataclass
class InputParamData:
    """An input socket. `value` is the widget-held constant."""
    id: str
    node_id: str
    name: str
    data_type: DataType
    value: Any = None
    kind: ParamKind = ParamKind.CONNECTION_OR_CONSTANT


@dataclass
class OutputParamData:
    """An output socket."""
    id: str
    node_id: str
    name: str
    data_type: DataType


@dataclass
class NodeData:
    """Data for a graph node."""
    id: str
    op_name: str  # Operation tag, e.g. "MakeBox"
    label: str  # Shown in the node header
    returns: Optional[str] = None  # Output the node evaluates to
    inputs: Dict[str, str] = field(default_factory=dict)  # name -> input id
    outputs: Dict[str, str] = field(default_factory=dict)  # name -> output id

    # Position in graph (for UI, not used in compilation)
    x: float = 0.0
    y: float = 0.0

    def get_input(self, name: str) -> str:
        """Return the id of the input called `name`."""
        try:
            return self.inputs[name]
        except KeyError:
            raise MissingInputError(
                f"Node {self.id} ({self.op_name}) has no input named '{name}'"
            ) from None

    def get_output(self, name: str) -> str:
        try:
            return self.outputs[name]
        except KeyError:
            raise KeyError(
                f"Node {self.id} ({self.op_name}) has no output named '{name}'"
            ) from None


@dataclass
class GraphData:
    """
    Editable graph: an arena of nodes and sockets plus connections.

    connections maps input id -> output id, so an input has at most one
    incoming connection.
    """
    nodes: Dict[str, NodeData] = field(default_factory=dict)
    inputs: Dict[str, InputParamData] = field(default_factory=dict)
    outputs: Dict[str, OutputParamData] = field(default_factory=dict)
    connections: Dict[str, str] = field(default_factory=dict)
    _next_id: int = 0

    def _allocate_id(self, prefix: str) -> str:
        new_id = f"{prefix}{self._next_id}"
        self._next_id += 1
        return new_id

    # --------- construction ---------

    def add_node(self, op_name: str, label: str = "", returns: Optional[str] = None) -> str:
        node_id = self._allocate_id("n")
        self.nodes[node_id] = NodeData(
            id=node_id,
            op_name=op_name,
            label=label or op_name,
            returns=returns,
        )
        return node_id

    def add_input_param(
        self,
        node_id: str,
        name: str,
        data_type: DataType,
        value: Any = None,
        kind: ParamKind = ParamKind.CONNECTION_OR_CONSTANT,
    ) -> str:
        node = self.nodes[node_id]
        _check_unique(node, node.inputs, name, "input")
        input_id = self._allocate_id("i")
        self.inputs[input_id] = InputParamData(
            id=input_id,
            node_id=node_id,
            name=name,
            data_type=data_type,
            value=value,
            kind=kind,
        )
        node.inputs[name] = input_id
        return input_id

    def add_output_param(self, node_id: str, name: str, data_type: DataType) -> str:
        node = self.nodes[node_id]
        _check_unique(node, node.outputs, name, "output")
        output_id = self._allocate_id("o")
        self.outputs[output_id] = OutputParamData(
            id=output_id,
            node_id=node_id,
            name=name,
            data_type=data_type,
        )
        node.outputs[name] = output_id
        return output_id

    def add_connection(self, output_id: str, input_id: str) -> None:
        """Connect an output to an input, replacing any previous connection."""
        self.connections[input_id] = output_id

    def remove_connection(self, input_id: str) -> Optional[str]:
        """Disconnect an input. Returns the output it was connected to."""
        return self.connections.pop(input_id, None)

    def remove_node(self, node_id: str) -> None:
        """Remove a node, its sockets and every connection touching them."""
        node = self.nodes.pop(node_id)
        own_inputs = set(node.inputs.values())
        own_outputs = set(node.outputs.values())
        self.connections = {
            inp: out for inp, out in self.connections.items()
            if inp not in own_inputs and out not in own_outputs
        }
        for input_id in own_inputs:
            del self.inputs[input_id]
        for output_id in own_outputs:
            del self.outputs[output_id]

    # --------- queries ---------

    def get_node(self, node_id: str) -> Optional[NodeData]:
        """Find node by ID."""
        return self.nodes.get(node_id)

    def connections_iter(self) -> Iterator[Tuple[str, str]]:
        """Iterate (input_id, output_id) pairs in insertion order."""
        return iter(list(self.connections.items()))

    def connection_to(self, input_id: str) -> Optional[str]:
        return self.connections.get(input_id)

    def input_value(self, node_id: str, name: str) -> Any:
        """Current widget value of a node's named input."""
        node = self.nodes[node_id]
        return self.inputs[node.get_input(name)].value

    def set_input_value(self, node_id: str, name: str, value: Any) -> None:
        node = self.nodes[node_id]
        self.inputs[node.get_input(name)].value = value

    def connect(self, from_node: str, from_output: str, to_node: str, to_input: str) -> None:
        """Connect sockets by node id and socket name."""
        output_id = self.nodes[from_node].get_output(from_output)
        input_id = self.nodes[to_node].get_input(to_input)
        self.add_connection(output_id, input_id)

    # --------- serialization ---------

    @classmethod
    def from_dict(cls, data: dict) -> "GraphData":
        """Deserialize from dict (JSON-compatible format).

        Ids are kept as stored; the id counter continues past the highest
        numeric suffix found.
        """
        graph = cls()
        highest = -1

        def track(item_id: str) -> None:
            nonlocal highest
            suffix = item_id[1:]
            if suffix.isdigit():
                highest = max(highest, int(suffix))

        for node_data in data.get("nodes", []):
            node_id = node_data["id"]
            track(node_id)
            node = NodeData(
                id=node_id,
                op_name=node_data.get("op_name", ""),
                label=node_data.get("label", ""),
                returns=node_data.get("returns"),
                x=node_data.get("x", 0.0),
                y=node_data.get("y", 0.0),
            )
            graph.nodes[node_id] = node

            for inp in node_data.get("inputs", []):
                _check_unique(node, node.inputs, inp["name"], "input")
                track(inp["id"])
                graph.inputs[inp["id"]] = InputParamData(
                    id=inp["id"],
                    node_id=node_id,
                    name=inp["name"],
                    data_type=DataType.from_str(inp["data_type"]),
                    value=_value_from_json(inp.get("value")),
                    kind=ParamKind(inp.get("kind", ParamKind.CONNECTION_OR_CONSTANT.value)),
                )
                node.inputs[inp["name"]] = inp["id"]

            for out in node_data.get("outputs", []):
                _check_unique(node, node.outputs, out["name"], "output")
                track(out["id"])
                graph.outputs[out["id"]] = OutputParamData(
                    id=out["id"],
                    node_id=node_id,
                    name=out["name"],
                    data_type=DataType.from_str(out["data_type"]),
                )
                node.outputs[out["name"]] = out["id"]

        for conn in data.get("connections", []):
            graph.connections[conn["input"]] = conn["output"]

        graph._next_id = highest + 1
        return graph

    def to_dict(self) -> dict:
        """Serialize to dict (JSON-compatible format)."""
        return {
            "nodes": [
                {
                    "id": n.id,
                    "op_name": n.op_name,
                    "label": n.label,
                    "returns": n.returns,
                    "inputs": [
                        {
                            "id": self.inputs[i].id,
                            "name": self.inputs[i].name,
                            "data_type": self.inputs[i].data_type.value,
                            "value": _value_to_json(self.inputs[i].value),
                            "kind": self.inputs[i].kind.value,
                        }
                        for i in n.inputs.values()
                    ],
                    "outputs": [
                        {
                            "id": self.outputs[o].id,
                            "name": self.outputs[o].name,
                            "data_type": self.outputs[o].data_type.value,
                        }
                        for o in n.outputs.values()
                    ],
                    "x": n.x,
                    "y": n.y,
                }
                for n in self.nodes.values()
            ],
            "connections": [
                {"input": inp, "output": out}
                for inp, out in self.connections.items()
            ],
        }

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> "GraphData":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def _check_unique(node: NodeData, sockets: Dict[str, str], name: str, side: str) -> None:
    if name in sockets:
        raise GraphConstructionError(
            f"Node {node.id} ({node.op_name}) already has an {side} named '{name}'"
        )


def _value_to_json(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def _value_from_json(value: Any) -> Any:
    # Vectors are stored as lists; widgets hold them as tuples
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass
class GraphEditorState:
    """
    Editor-side state read by the application every frame.

    active_node is the live preview target. run_side_effect is a one-shot
    slot: the application drains it with take_side_effect().
    """
    graph: GraphData = field(default_factory=GraphData)
    active_node: Optional[str] = None
    run_side_effect: Optional[str] = None

    def set_active_node(self, node_id: Optional[str]) -> None:
        if node_id is not None and node_id not in self.graph.nodes:
            raise KeyError(f"Unknown node: {node_id}")
        self.active_node = node_id

    def request_side_effect(self, node_id: str) -> None:
        if node_id not in self.graph.nodes:
            raise KeyError(f"Unknown node: {node_id}")
        self.run_side_effect = node_id

    def take_side_effect(self) -> Optional[str]:
        """Return the pending side-effect node and empty the slot."""
        node_id, self.run_side_effect = self.run_side_effect, None
        return node_id

    def add_node_from_template(self, op_name: str, **values: Any) -> str:
        """Instantiate a registered node template; `values` override defaults."""
        from geonodes.nodegraph.node_templates import instantiate_template

        return instantiate_template(self.graph, op_name, **values)

    def remove_node(self, node_id: str) -> None:
        self.graph.remove_node(node_id)
        if self.active_node == node_id:
            self.active_node = None
        if self.run_side_effect == node_id:
            self.run_side_effect = None

    def node_ids(self) -> List[str]:
        return list(self.graph.nodes.keys())
