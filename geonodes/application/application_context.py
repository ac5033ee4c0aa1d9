"""
ApplicationContext - runs the node graph every frame and feeds the viewport.

Per frame (update):
- Clear the render objects uploaded last frame
- Compile and run the active node; keep its artifact on success
- Run a pending side-effect node (e.g. export) exactly once
- Extract buffers from the held artifact and upload them

A failed active-node run leaves the previous artifact in place, so the last
valid result keeps being drawn while the graph is broken. Only "no active
node" clears it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple, Union

from geonodes import log
from geonodes.application.artifact_extractor import extract_buffers
from geonodes.application.render_context import RenderContext, upload_buffer_set
from geonodes.application.viewport_settings import Viewport3dSettings
from geonodes.compiler.graph_compiler import (
    CompiledProgram,
    ExternalParameterValues,
    compile_graph,
)
from geonodes.errors import CompileError, GeonodesError
from geonodes.mesh.renderable import RenderableThing
from geonodes.nodegraph.compiler_graph import CompilerGraph
from geonodes.nodegraph.graph_data import GraphEditorState
from geonodes.nodegraph.graph_interop import extract_graph_params, ui_graph_to_compiler_graph


@dataclass
class SetCodeViewerCode:
    """Show this program text in the code viewer."""
    code: str


AppRootAction = Union[SetCodeViewerCode]


@dataclass
class OverlayError:
    """Error painted over the viewport: message plus its cause chain."""
    message: str
    causes: List[str] = field(default_factory=list)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "OverlayError":
        causes = []
        cause = exc.__cause__
        while cause is not None:
            causes.append(str(cause) or type(cause).__name__)
            cause = cause.__cause__
        return cls(message=str(exc) or type(exc).__name__, causes=causes)

    def text(self) -> str:
        lines = [self.message]
        lines.extend(f"caused by: {cause}" for cause in self.causes)
        return "\n".join(lines)


class ProgramCompiler(Protocol):
    def __call__(self, graph: CompilerGraph, final_node: int, is_side_effect: bool) -> CompiledProgram:
        ...


class ProgramRunner(Protocol):
    def run_program(self, program: CompiledProgram, params: ExternalParameterValues) -> RenderableThing:
        ...

    def run_program_side_effects(self, program: CompiledProgram, params: ExternalParameterValues) -> None:
        ...


class ApplicationContext:
    """
    Owns the renderable thing.

    The renderable thing is at the center of the application: the graph
    generates a program that produces it, and the 3D viewport renders it.
    Nothing else writes it.
    """

    def __init__(self, compiler: ProgramCompiler = compile_graph):
        self.renderable_thing: Optional[RenderableThing] = None
        self.error_overlay: Optional[OverlayError] = None
        self._compiler = compiler

    def update(
        self,
        editor_state: GraphEditorState,
        render_ctx: RenderContext,
        viewport_settings: Viewport3dSettings,
        runtime: ProgramRunner,
    ) -> List[AppRootAction]:
        render_ctx.clear_objects()

        actions: List[AppRootAction] = []

        try:
            code = self.run_active_node(editor_state, runtime)
        except GeonodesError as err:
            self.paint_errors(err)
        else:
            self.error_overlay = None
            actions.append(SetCodeViewerCode(code))

        try:
            self.run_side_effects(editor_state, runtime)
        except GeonodesError as err:
            log.error(err, "There was an error executing side effect")

        self.build_and_render_mesh(render_ctx, viewport_settings)

        return actions

    def build_and_render_mesh(
        self,
        render_ctx: RenderContext,
        viewport_settings: Viewport3dSettings,
    ) -> int:
        """Upload the held artifact's buffers. Returns the number of sets uploaded."""
        uploaded = 0
        for buffer_set in extract_buffers(self.renderable_thing, viewport_settings):
            if upload_buffer_set(render_ctx, buffer_set):
                uploaded += 1
        return uploaded

    def paint_errors(self, err: BaseException) -> None:
        self.error_overlay = OverlayError.from_exception(err)
        log.debug(f"[ApplicationContext] {self.error_overlay.text()}")

    def compile_program(
        self,
        editor_state: GraphEditorState,
        node: str,
        is_side_effect: bool,
    ) -> Tuple[CompiledProgram, ExternalParameterValues]:
        """Translate, compile and collect parameters from one graph snapshot."""
        graph, mapping = ui_graph_to_compiler_graph(editor_state.graph)
        if node not in mapping:
            raise CompileError(f"Node {node} is not in the graph")
        final_node = mapping[node]
        program = self._compiler(graph, final_node, is_side_effect)
        params = extract_graph_params(editor_state.graph, mapping, program)

        return program, params

    def run_active_node(
        self,
        editor_state: GraphEditorState,
        runtime: ProgramRunner,
    ) -> str:
        """Run the active node. Returns the compiled program text."""
        active = editor_state.active_node
        if active is None:
            self.renderable_thing = None
            return ""

        program, params = self.compile_program(editor_state, active, False)
        thing = runtime.run_program(program, params)
        self.renderable_thing = thing
        return program.program_text

    def run_side_effects(
        self,
        editor_state: GraphEditorState,
        runtime: ProgramRunner,
    ) -> None:
        side_effect = editor_state.take_side_effect()
        if side_effect is None:
            return
        program, params = self.compile_program(editor_state, side_effect, True)
        # The result is ignored; the program only runs for its effect
        runtime.run_program_side_effects(program, params)
