"""
geonodes - procedural geometry from node graphs.

Modules:
- nodegraph - editable graph data and its translation to the compiler graph
- compiler - program compiler, operations and runtime
- mesh - half-edge meshes, height maps and draw buffers
- application - per-frame orchestration and viewport buffer extraction
"""

__version__ = '0.1.0'
