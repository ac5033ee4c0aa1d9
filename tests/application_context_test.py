"""
Tests for the per-frame ApplicationContext.update loop.
"""

import pytest

from geonodes.application.application_context import (
    ApplicationContext,
    OverlayError,
    SetCodeViewerCode,
)
from geonodes.application.artifact_extractor import BufferSetKind
from geonodes.application.render_context import RecordingRenderContext
from geonodes.application.viewport_settings import (
    EdgeDrawMode,
    FaceDrawMode,
    Viewport3dSettings,
)
from geonodes.compiler.runtime import ProgramRuntime
from geonodes.errors import CompileError, ProgramRuntimeError
from geonodes.mesh.halfedge import HalfEdgeMesh
from geonodes.nodegraph.graph_data import GraphEditorState


class RecordingRuntime(ProgramRuntime):
    """ProgramRuntime that remembers which programs it ran."""

    def __init__(self, fail_side_effects: bool = False):
        super().__init__()
        self.runs = []
        self.side_effect_runs = []
        self.fail_side_effects = fail_side_effects

    def run_program(self, program, params):
        self.runs.append(program)
        return super().run_program(program, params)

    def run_program_side_effects(self, program, params):
        self.side_effect_runs.append(program)
        if self.fail_side_effects:
            raise ProgramRuntimeError("disk full")
        return super().run_program_side_effects(program, params)


@pytest.fixture
def state():
    return GraphEditorState()


@pytest.fixture
def render_ctx():
    return RecordingRenderContext()


def update(app, state, render_ctx, runtime=None, settings=None):
    return app.update(
        state,
        render_ctx,
        settings or Viewport3dSettings(),
        runtime or RecordingRuntime(),
    )


class TestActiveNode:
    def test_successful_run_renders_artifact(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)
        app = ApplicationContext()

        actions = update(app, state, render_ctx)

        assert isinstance(app.renderable_thing, HalfEdgeMesh)
        assert app.error_overlay is None
        assert len(actions) == 1
        assert isinstance(actions[0], SetCodeViewerCode)
        assert "MakeBox(" in actions[0].code
        # Base, wireframe and points; the overlay is empty without a selection
        assert len(render_ctx.objects) == 3
        assert render_ctx.clear_count == 1

    def test_no_active_node_clears_artifact(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)
        app = ApplicationContext()
        update(app, state, render_ctx)

        state.set_active_node(None)
        actions = update(app, state, render_ctx)

        assert app.renderable_thing is None
        assert actions == [SetCodeViewerCode("")]
        assert render_ctx.objects == []
        assert render_ctx.clear_count == 2

    def test_failure_keeps_previous_artifact(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)
        app = ApplicationContext()
        update(app, state, render_ctx)
        previous = app.renderable_thing

        state.graph.set_input_value(box, "size", (1.0, 2.0))
        actions = update(app, state, render_ctx)

        assert actions == []
        assert app.renderable_thing is previous
        assert app.error_overlay is not None
        assert app.error_overlay.causes
        # The stale artifact is still drawn
        assert len(render_ctx.objects_of_kind(BufferSetKind.BASE_MESH)) == 1

    def test_overlay_cleared_after_recovery(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox", size=(1.0, 2.0))
        state.set_active_node(box)
        app = ApplicationContext()

        update(app, state, render_ctx)
        assert app.error_overlay is not None
        assert app.renderable_thing is None

        state.graph.set_input_value(box, "size", (1.0, 2.0, 3.0))
        update(app, state, render_ctx)
        assert app.error_overlay is None
        assert app.renderable_thing is not None

    def test_side_effect_node_cannot_be_previewed(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        export = state.add_node_from_template("ExportObj", path="unused.obj")
        state.graph.connect(box, "out_mesh", export, "mesh")
        state.set_active_node(export)
        app = ApplicationContext()

        update(app, state, render_ctx)

        assert app.error_overlay is not None
        assert app.renderable_thing is None

    def test_graph_edits_are_picked_up_next_frame(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)
        app = ApplicationContext()
        update(app, state, render_ctx)

        state.graph.set_input_value(box, "origin", (0.0, 10.0, 0.0))
        update(app, state, render_ctx)

        assert app.renderable_thing.positions[:, 1].min() == pytest.approx(9.5)

    def test_draw_modes_are_applied(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)
        app = ApplicationContext()
        settings = Viewport3dSettings(face_mode=FaceDrawMode.NONE, edge_mode=EdgeDrawMode.NONE)

        update(app, state, render_ctx, settings=settings)

        assert [obj.kind for obj in render_ctx.objects] == [BufferSetKind.POINTS]

    def test_custom_compiler_is_used(self, state, render_ctx):
        box = state.add_node_from_template("MakeBox")
        state.set_active_node(box)

        def failing_compiler(graph, final_node, is_side_effect):
            raise CompileError("compiler offline")

        app = ApplicationContext(compiler=failing_compiler)
        update(app, state, render_ctx)

        assert app.error_overlay == OverlayError("compiler offline")


class TestSideEffects:
    def _export_state(self, state, path):
        box = state.add_node_from_template("MakeBox")
        export = state.add_node_from_template("ExportObj", path=str(path))
        state.graph.connect(box, "out_mesh", export, "mesh")
        return box, export

    def test_side_effect_runs_once(self, state, render_ctx, tmp_path):
        target = tmp_path / "out.obj"
        _, export = self._export_state(state, target)
        state.request_side_effect(export)
        runtime = RecordingRuntime()
        app = ApplicationContext()

        update(app, state, render_ctx, runtime)
        update(app, state, render_ctx, runtime)

        assert target.exists()
        assert len(runtime.side_effect_runs) == 1
        assert runtime.side_effect_runs[0].is_side_effect
        assert state.run_side_effect is None

    def test_failed_side_effect_is_not_retried(self, state, render_ctx, tmp_path):
        box, export = self._export_state(state, tmp_path / "out.obj")
        state.set_active_node(box)
        state.request_side_effect(export)
        runtime = RecordingRuntime(fail_side_effects=True)
        app = ApplicationContext()

        actions = update(app, state, render_ctx, runtime)
        update(app, state, render_ctx, runtime)

        assert state.run_side_effect is None
        assert len(runtime.side_effect_runs) == 1
        # Side-effect failures are logged, not painted
        assert app.error_overlay is None
        assert len(actions) == 1
        assert isinstance(app.renderable_thing, HalfEdgeMesh)

    def test_compile_failure_empties_slot(self, state, render_ctx):
        export = state.add_node_from_template("ExportObj", path="never.obj")
        state.request_side_effect(export)
        runtime = RecordingRuntime()
        app = ApplicationContext()

        update(app, state, render_ctx, runtime)

        assert state.run_side_effect is None
        assert runtime.side_effect_runs == []
        assert app.error_overlay is None

    def test_side_effect_does_not_touch_artifact(self, state, render_ctx, tmp_path):
        _, export = self._export_state(state, tmp_path / "out.obj")
        state.request_side_effect(export)
        app = ApplicationContext()

        update(app, state, render_ctx)

        assert app.renderable_thing is None
        assert render_ctx.objects == []


class TestOverlayError:
    def test_cause_chain(self):
        try:
            try:
                raise ValueError("bad vector")
            except ValueError as e:
                raise ProgramRuntimeError("MakeBox failed") from e
        except ProgramRuntimeError as err:
            overlay = OverlayError.from_exception(err)

        assert overlay.message == "MakeBox failed"
        assert overlay.causes == ["bad vector"]
        assert overlay.text() == "MakeBox failed\ncaused by: bad vector"
