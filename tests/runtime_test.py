import numpy as np
import pytest

from geonodes.compiler.graph_compiler import compile_graph
from geonodes.compiler.operations import parse_selection
from geonodes.compiler.runtime import ProgramRuntime
from geonodes.errors import ProgramRuntimeError
from geonodes.mesh.halfedge import HalfEdgeMesh
from geonodes.mesh.heightmap import HeightMap
from geonodes.nodegraph.graph_data import GraphEditorState
from geonodes.nodegraph.graph_interop import extract_graph_params, ui_graph_to_compiler_graph


def compile_node(state: GraphEditorState, node: str, is_side_effect: bool = False):
    graph, mapping = ui_graph_to_compiler_graph(state.graph)
    program = compile_graph(graph, mapping[node], is_side_effect)
    params = extract_graph_params(state.graph, mapping, program)
    return program, params


class TestRunProgram:
    def test_box_translate(self):
        state = GraphEditorState()
        box = state.add_node_from_template("MakeBox", size=(2.0, 2.0, 2.0))
        move = state.add_node_from_template("Translate", translate=(0.0, 5.0, 0.0))
        state.graph.connect(box, "out_mesh", move, "mesh")

        program, params = compile_node(state, move)
        mesh = ProgramRuntime().run_program(program, params)

        assert isinstance(mesh, HalfEdgeMesh)
        assert mesh.num_faces == 6
        np.testing.assert_allclose(mesh.positions.min(axis=0), [-1.0, 4.0, -1.0])
        np.testing.assert_allclose(mesh.positions.max(axis=0), [1.0, 6.0, 1.0])

    def test_upstream_mesh_is_not_modified(self):
        state = GraphEditorState()
        box = state.add_node_from_template("MakeBox")
        move = state.add_node_from_template("Translate", translate=(1.0, 0.0, 0.0))
        merge = state.add_node_from_template("MergeMeshes")
        state.graph.connect(box, "out_mesh", move, "mesh")
        state.graph.connect(box, "out_mesh", merge, "mesh_a")
        state.graph.connect(move, "out_mesh", merge, "mesh_b")

        program, params = compile_node(state, merge)
        mesh = ProgramRuntime().run_program(program, params)

        assert mesh.num_vertices == 16
        np.testing.assert_allclose(mesh.positions[:8].min(axis=0), [-0.5, -0.5, -0.5])
        np.testing.assert_allclose(mesh.positions[8:].min(axis=0), [0.5, -0.5, -0.5])

    def test_scalar_broadcasts_into_vector(self):
        state = GraphEditorState()
        scalar = state.add_node_from_template("MakeScalar", value=3.0)
        box = state.add_node_from_template("MakeBox")
        state.graph.connect(scalar, "out_scalar", box, "size")

        program, params = compile_node(state, box)
        mesh = ProgramRuntime().run_program(program, params)

        np.testing.assert_allclose(mesh.positions.max(axis=0), [1.5, 1.5, 1.5])

    def test_height_map(self):
        state = GraphEditorState()
        node = state.add_node_from_template("MakeHeightMap", width=4.0, depth=3.0)

        program, params = compile_node(state, node)
        result = ProgramRuntime().run_program(program, params)

        assert isinstance(result, HeightMap)
        assert (result.width, result.depth) == (4, 3)

    def test_non_renderable_result_fails(self):
        state = GraphEditorState()
        node = state.add_node_from_template("MakeScalar", value=1.0)

        program, params = compile_node(state, node)
        with pytest.raises(ProgramRuntimeError):
            ProgramRuntime().run_program(program, params)

    def test_operation_failure_is_chained(self):
        state = GraphEditorState()
        node = state.add_node_from_template("MakeBox", size=(1.0, 2.0))

        program, params = compile_node(state, node)
        with pytest.raises(ProgramRuntimeError) as info:
            ProgramRuntime().run_program(program, params)
        assert isinstance(info.value.__cause__, ValueError)

    def test_missing_parameter_fails(self):
        state = GraphEditorState()
        node = state.add_node_from_template("MakeBox")

        program, _ = compile_node(state, node)
        with pytest.raises(ProgramRuntimeError, match="Missing value"):
            ProgramRuntime().run_program(program, {})

    def test_unknown_operation_fails(self):
        state = GraphEditorState()
        node = state.add_node_from_template("MakeBox")

        program, params = compile_node(state, node)
        with pytest.raises(ProgramRuntimeError, match="Unknown operation"):
            ProgramRuntime(operations={}).run_program(program, params)


class TestSideEffects:
    def test_export_obj_writes_file(self, tmp_path):
        target = tmp_path / "box.obj"
        state = GraphEditorState()
        box = state.add_node_from_template("MakeBox")
        export = state.add_node_from_template("ExportObj", path=str(target))
        state.graph.connect(box, "out_mesh", export, "mesh")

        program, params = compile_node(state, export, is_side_effect=True)
        assert ProgramRuntime().run_program_side_effects(program, params) is None

        text = target.read_text()
        assert text.count("\nv ") == 8
        assert text.count("\nf ") == 6

    def test_export_without_path_fails(self):
        state = GraphEditorState()
        box = state.add_node_from_template("MakeBox")
        export = state.add_node_from_template("ExportObj")
        state.graph.connect(box, "out_mesh", export, "mesh")

        program, params = compile_node(state, export, is_side_effect=True)
        with pytest.raises(ProgramRuntimeError):
            ProgramRuntime().run_program_side_effects(program, params)


class TestParseSelection:
    def test_all(self):
        assert parse_selection("*", 3) == {0, 1, 2}

    def test_list_and_range(self):
        assert parse_selection("0, 2..4, 9", 5) == {0, 2, 3, 4}

    def test_empty(self):
        assert parse_selection("", 5) == set()
