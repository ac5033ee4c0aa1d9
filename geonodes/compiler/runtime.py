"""Program runtime - executes a CompiledProgram step by step."""

from __future__ import annotations

from typing import Any, Dict, Optional

from geonodes.compiler.graph_compiler import (
    CompiledProgram,
    ExternalParameterValues,
    InputBinding,
)
from geonodes.compiler.operations import Operation, default_operations
from geonodes.errors import ProgramRuntimeError
from geonodes.mesh.renderable import RenderableThing, is_renderable
from geonodes.nodegraph.data_types import DataType


def _coerce(value: Any, data_type: DataType) -> Any:
    # Scalars broadcast into vector inputs
    if data_type == DataType.VECTOR and isinstance(value, (int, float)) and not isinstance(value, bool):
        return (float(value),) * 3
    return value


class ProgramRuntime:
    """
    Executes compiled programs against a table of operations.

    Every failure while running surfaces as ProgramRuntimeError, with the
    original exception chained as __cause__.
    """

    def __init__(self, operations: Optional[Dict[str, Operation]] = None):
        self.operations: Dict[str, Operation] = (
            dict(operations) if operations is not None else default_operations()
        )

    def _resolve(
        self,
        binding: InputBinding,
        params: ExternalParameterValues,
        values: Dict[int, Dict[str, Any]],
    ) -> Any:
        if binding.is_external:
            if binding.addr not in params:
                raise ProgramRuntimeError(f"Missing value for parameter '{binding.addr}'")
            return params[binding.addr]

        outputs = values.get(binding.from_node)
        if outputs is None or binding.from_param not in outputs:
            raise ProgramRuntimeError(
                f"Node {binding.from_node} did not produce output '{binding.from_param}'"
            )
        return outputs[binding.from_param]

    def execute(
        self,
        program: CompiledProgram,
        params: ExternalParameterValues,
    ) -> Dict[int, Dict[str, Any]]:
        """Run every step; returns node id -> {output name: value}."""
        values: Dict[int, Dict[str, Any]] = {}

        for step in program.steps:
            op = self.operations.get(step.op_name)
            if op is None:
                raise ProgramRuntimeError(f"Unknown operation '{step.op_name}' (node {step.node_id})")

            kwargs = {
                binding.name: _coerce(self._resolve(binding, params, values), binding.data_type)
                for binding in step.inputs
            }
            try:
                outputs = op(**kwargs)
            except Exception as e:
                raise ProgramRuntimeError(
                    f"{step.op_name} (node {step.node_id}) failed: {e}"
                ) from e
            values[step.node_id] = dict(outputs or {})

        return values

    def run_program(
        self,
        program: CompiledProgram,
        params: ExternalParameterValues,
    ) -> RenderableThing:
        """Run the program and return the root node's renderable result."""
        if program.return_value is None:
            raise ProgramRuntimeError(f"Program for node {program.root} has no return value")

        values = self.execute(program, params)
        result = values.get(program.root, {}).get(program.return_value)
        if not is_renderable(result):
            raise ProgramRuntimeError(
                f"Node {program.root} returned {type(result).__name__}, which can't be rendered"
            )
        return result

    def run_program_side_effects(
        self,
        program: CompiledProgram,
        params: ExternalParameterValues,
    ) -> None:
        """Run the program for its effects only; the result is discarded."""
        self.execute(program, params)
