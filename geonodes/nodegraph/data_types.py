"""Socket data types shared by the editor graph and the compiler graph."""

from __future__ import annotations

from enum import Enum


class DataType(Enum):
    """Type carried by a node socket."""
    VECTOR = "vector"
    SCALAR = "scalar"
    SELECTION = "selection"
    MESH = "mesh"
    HEIGHTMAP = "heightmap"
    STRING = "string"
    ENUM = "enum"
    NEW_FILE = "new_file"

    @staticmethod
    def can_connect(output_type: "DataType", input_type: "DataType") -> bool:
        """Check whether an output of one type may feed an input of another."""
        if output_type == input_type:
            return True
        # Scalars broadcast to all three vector components
        return output_type == DataType.SCALAR and input_type == DataType.VECTOR

    @staticmethod
    def from_str(value: str) -> "DataType":
        try:
            return DataType(value)
        except ValueError:
            raise ValueError(f"Unknown data type: {value!r}") from None


class ParamKind(Enum):
    """Where an input may take its value from."""
    CONNECTION_ONLY = "connection_only"
    CONSTANT_ONLY = "constant_only"
    CONNECTION_OR_CONSTANT = "connection_or_constant"

    def accepts_connection(self) -> bool:
        return self != ParamKind.CONSTANT_ONLY

    def accepts_constant(self) -> bool:
        return self != ParamKind.CONNECTION_ONLY
