import pytest

from geonodes.compiler.graph_compiler import compile_graph, dependency_order
from geonodes.errors import CompileError, GraphConstructionError
from geonodes.nodegraph.compiler_graph import CompilerGraph, ConnectionDependency
from geonodes.nodegraph.data_types import DataType, ParamKind
from geonodes.nodegraph.graph_data import GraphEditorState
from geonodes.nodegraph.graph_interop import ui_graph_to_compiler_graph


def mesh_node(graph: CompilerGraph, op_name: str, with_input: bool = True) -> int:
    node = graph.add_node(op_name, "out_mesh")
    if with_input:
        graph.add_input(node, "mesh", DataType.MESH, ParamKind.CONNECTION_ONLY)
    graph.add_output(node, "out_mesh", DataType.MESH)
    return node


class TestCompilerGraph:
    def test_duplicate_input_name_fails(self):
        graph = CompilerGraph()
        node = graph.add_node("MakeBox", "out_mesh")
        graph.add_input(node, "size", DataType.VECTOR)

        with pytest.raises(GraphConstructionError):
            graph.add_input(node, "size", DataType.SCALAR)

    def test_duplicate_output_name_fails(self):
        graph = CompilerGraph()
        node = graph.add_node("MakeBox", "out_mesh")
        graph.add_output(node, "out_mesh", DataType.MESH)

        with pytest.raises(GraphConstructionError):
            graph.add_output(node, "out_mesh", DataType.MESH)

    def test_input_and_output_may_share_a_name(self):
        graph = CompilerGraph()
        node = graph.add_node("Passthrough", "value")
        graph.add_input(node, "value", DataType.SCALAR)
        graph.add_output(node, "value", DataType.SCALAR)

    def test_connection_to_unregistered_port_fails(self):
        graph = CompilerGraph()
        src = mesh_node(graph, "MakeBox", with_input=False)
        dst = mesh_node(graph, "Translate")

        with pytest.raises(GraphConstructionError):
            graph.add_connection(src, "out_mesh", dst, "missing")
        with pytest.raises(GraphConstructionError):
            graph.add_connection(src, "missing", dst, "mesh")
        with pytest.raises(GraphConstructionError):
            graph.add_connection(src, "out_mesh", 99, "mesh")
        assert graph.connections == []

    def test_connection_to_constant_only_input_fails(self):
        graph = CompilerGraph()
        src = graph.add_node("MakeScalar", "out_scalar")
        graph.add_output(src, "out_scalar", DataType.SCALAR)
        dst = graph.add_node("MakeScalar", "out_scalar")
        graph.add_input(dst, "value", DataType.SCALAR, ParamKind.CONSTANT_ONLY)

        with pytest.raises(GraphConstructionError):
            graph.add_connection(src, "out_scalar", dst, "value")

    def test_connection_sets_dependency(self):
        graph = CompilerGraph()
        src = mesh_node(graph, "MakeBox", with_input=False)
        dst = mesh_node(graph, "Translate")
        graph.add_connection(src, "out_mesh", dst, "mesh")

        assert graph[dst].get_input("mesh").dependency == ConnectionDependency(src, "out_mesh")


class TestCompileGraph:
    def _box_translate(self):
        state = GraphEditorState()
        box = state.add_node_from_template("MakeBox")
        move = state.add_node_from_template("Translate")
        state.graph.connect(box, "out_mesh", move, "mesh")
        graph, mapping = ui_graph_to_compiler_graph(state.graph)
        return graph, mapping[box], mapping[move]

    def test_dependencies_come_first(self):
        graph, box, move = self._box_translate()
        program = compile_graph(graph, move, False)

        assert [step.node_id for step in program.steps] == [box, move]
        assert program.return_value == "out_mesh"
        assert not program.is_side_effect

    def test_unconnected_inputs_become_external_parameters(self):
        graph, box, move = self._box_translate()
        program = compile_graph(graph, move, False)

        params = {(p.node_id, p.param_name): p.addr for p in program.external_parameters}
        assert params == {
            (box, "origin"): f"MakeBox_{box}_origin",
            (box, "size"): f"MakeBox_{box}_size",
            (move, "translate"): f"Translate_{move}_translate",
        }

    def test_program_text(self):
        graph, box, move = self._box_translate()
        program = compile_graph(graph, move, False)

        lines = program.program_text.strip().splitlines()
        assert lines[0].startswith(f"v{box} = MakeBox(")
        assert f"mesh=v{box}['out_mesh']" in lines[1]
        assert lines[-1] == f"return v{move}['out_mesh']"

    def test_only_reachable_nodes_are_compiled(self):
        graph, box, move = self._box_translate()
        program = compile_graph(graph, box, False)

        assert [step.node_id for step in program.steps] == [box]

    def test_shared_dependency_runs_once(self):
        graph = CompilerGraph()
        src = mesh_node(graph, "MakeBox", with_input=False)
        left = mesh_node(graph, "Translate")
        right = mesh_node(graph, "Scale")
        merge = graph.add_node("MergeMeshes", "out_mesh")
        graph.add_input(merge, "mesh_a", DataType.MESH, ParamKind.CONNECTION_ONLY)
        graph.add_input(merge, "mesh_b", DataType.MESH, ParamKind.CONNECTION_ONLY)
        graph.add_output(merge, "out_mesh", DataType.MESH)
        graph.add_connection(src, "out_mesh", left, "mesh")
        graph.add_connection(src, "out_mesh", right, "mesh")
        graph.add_connection(left, "out_mesh", merge, "mesh_a")
        graph.add_connection(right, "out_mesh", merge, "mesh_b")

        order = dependency_order(graph, merge)
        assert order == [src, left, right, merge]

    def test_cycle_fails(self):
        graph = CompilerGraph()
        a = mesh_node(graph, "Translate")
        b = mesh_node(graph, "Translate")
        graph.add_connection(a, "out_mesh", b, "mesh")
        graph.add_connection(b, "out_mesh", a, "mesh")

        with pytest.raises(CompileError):
            compile_graph(graph, a, False)

    def test_unconnected_required_input_fails(self):
        graph = CompilerGraph()
        move = mesh_node(graph, "Translate")

        with pytest.raises(CompileError, match="must be connected"):
            compile_graph(graph, move, False)

    def test_node_without_return_value(self):
        graph = CompilerGraph()
        src = mesh_node(graph, "MakeBox", with_input=False)
        export = graph.add_node("ExportObj", None)
        graph.add_input(export, "mesh", DataType.MESH, ParamKind.CONNECTION_ONLY)
        graph.add_input(export, "path", DataType.NEW_FILE, ParamKind.CONSTANT_ONLY)
        graph.add_connection(src, "out_mesh", export, "mesh")

        with pytest.raises(CompileError):
            compile_graph(graph, export, False)

        program = compile_graph(graph, export, True)
        assert program.is_side_effect
        assert program.return_value is None
        assert "return" not in program.program_text

    def test_unknown_root_fails(self):
        with pytest.raises(CompileError):
            compile_graph(CompilerGraph(), 0, False)
