"""Graph compiler - compiles a CompilerGraph into an executable program.

Responsibilities:
- Order the nodes a root depends on (dependencies first, each once)
- Detect dependency cycles and unconnected required inputs
- Turn every unconnected input into an external parameter with an address
- Render a textual form of the program for the code viewer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from geonodes.errors import CompileError
from geonodes.nodegraph.compiler_graph import (
    CompilerGraph,
    CompilerNode,
    ConnectionDependency,
)
from geonodes.nodegraph.data_types import DataType, ParamKind

ExternalParameterValues = Dict[str, Any]


@dataclass(frozen=True)
class ExternalParameterDef:
    """An input whose value comes from a widget at run time."""
    node_id: int  # Compiler node id
    param_name: str
    addr: str  # Key into ExternalParameterValues


@dataclass(frozen=True)
class InputBinding:
    """Where a step input takes its value from: another step or a parameter."""
    name: str
    data_type: DataType
    from_node: Optional[int] = None
    from_param: Optional[str] = None
    addr: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.addr is not None


@dataclass
class ProgramStep:
    node_id: int
    op_name: str
    inputs: List[InputBinding] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)


@dataclass
class CompiledProgram:
    root: int
    is_side_effect: bool
    steps: List[ProgramStep] = field(default_factory=list)
    external_parameters: List[ExternalParameterDef] = field(default_factory=list)
    return_value: Optional[str] = None
    program_text: str = ""


def parameter_address(node_id: int, node: CompilerNode, param_name: str) -> str:
    return f"{node.op_name}_{node_id}_{param_name}"


def _dependencies(node: CompilerNode) -> Iterator[int]:
    for inp in node.inputs:
        if isinstance(inp.dependency, ConnectionDependency):
            yield inp.dependency.node_id


def dependency_order(graph: CompilerGraph, root: int) -> List[int]:
    """
    Nodes reachable from root, each after all of its dependencies.

    Raises:
        CompileError: a dependency cycle is reachable from root.
    """
    visiting = 1
    done = 2
    state: Dict[int, int] = {root: visiting}
    order: List[int] = []
    stack: List[Tuple[int, Iterator[int]]] = [(root, _dependencies(graph[root]))]

    while stack:
        node_id, deps = stack[-1]
        for dep in deps:
            dep_state = state.get(dep)
            if dep_state is None:
                state[dep] = visiting
                stack.append((dep, _dependencies(graph[dep])))
                break
            if dep_state == visiting:
                raise CompileError(
                    f"Graph has a cycle through node {dep} ({graph[dep].op_name})"
                )
        else:
            stack.pop()
            state[node_id] = done
            order.append(node_id)

    return order


def compile_graph(graph: CompilerGraph, final_node: int, is_side_effect: bool) -> CompiledProgram:
    """
    Compile the part of graph that final_node depends on.

    Args:
        graph: Freshly translated compiler graph.
        final_node: Root node; its return value is the program result.
        is_side_effect: Run only for effects; the root needs no return value.

    Returns:
        CompiledProgram with steps in execution order.

    Raises:
        CompileError: If compilation fails.
    """
    if final_node not in graph:
        raise CompileError(f"Node {final_node} is not in the graph")

    root = graph[final_node]
    if not is_side_effect:
        if root.return_value is None:
            raise CompileError(
                f"Node {final_node} ({root.op_name}) has no return value and can't be previewed"
            )
        if root.get_output(root.return_value) is None:
            raise CompileError(
                f"Node {final_node} ({root.op_name}) returns unknown output '{root.return_value}'"
            )

    program = CompiledProgram(
        root=final_node,
        is_side_effect=is_side_effect,
        return_value=None if is_side_effect else root.return_value,
    )

    for node_id in dependency_order(graph, final_node):
        node = graph[node_id]
        step = ProgramStep(
            node_id=node_id,
            op_name=node.op_name,
            outputs=[out.name for out in node.outputs],
        )
        for inp in node.inputs:
            dep = inp.dependency
            if isinstance(dep, ConnectionDependency):
                step.inputs.append(InputBinding(
                    name=inp.name,
                    data_type=inp.data_type,
                    from_node=dep.node_id,
                    from_param=dep.param_name,
                ))
                continue

            if inp.kind == ParamKind.CONNECTION_ONLY:
                raise CompileError(
                    f"Input '{inp.name}' of node {node_id} ({node.op_name}) must be connected"
                )
            addr = parameter_address(node_id, node, inp.name)
            program.external_parameters.append(ExternalParameterDef(
                node_id=node_id,
                param_name=inp.name,
                addr=addr,
            ))
            step.inputs.append(InputBinding(name=inp.name, data_type=inp.data_type, addr=addr))
        program.steps.append(step)

    program.program_text = render_program_text(program)
    return program


def render_program_text(program: CompiledProgram) -> str:
    """One line per step, in execution order."""
    lines = []
    for step in program.steps:
        args = []
        for b in step.inputs:
            if b.is_external:
                args.append(f"{b.name}=params[{b.addr!r}]")
            else:
                args.append(f"{b.name}=v{b.from_node}[{b.from_param!r}]")
        lines.append(f"v{step.node_id} = {step.op_name}({', '.join(args)})")
    if program.return_value is not None:
        lines.append(f"return v{program.root}[{program.return_value!r}]")
    return "\n".join(lines) + "\n"
