"""Exception hierarchy for the graph → program → artifact pipeline."""


class GeonodesError(Exception):
    """Base exception for all geonodes errors."""
    pass


class GraphConstructionError(GeonodesError):
    """Malformed graph: bad port reference, duplicate port name, type mismatch."""
    pass


class CompileError(GeonodesError):
    """The program compiler rejected the graph (cycle, missing input, ...)."""
    pass


class ParameterResolutionError(GeonodesError):
    """An external parameter does not resolve against the current graph."""
    pass


class ProgramRuntimeError(GeonodesError):
    """Execution of a compiled program failed."""
    pass


class MeshGenerationError(GeonodesError):
    """Geometry buffers could not be generated from a mesh."""
    pass
