"""Program compiler and runtime for compiler graphs."""

from geonodes.compiler.graph_compiler import (
    CompiledProgram,
    ExternalParameterDef,
    ExternalParameterValues,
    compile_graph,
)
from geonodes.compiler.runtime import ProgramRuntime

__all__ = [
    "CompiledProgram",
    "ExternalParameterDef",
    "ExternalParameterValues",
    "compile_graph",
    "ProgramRuntime",
]
