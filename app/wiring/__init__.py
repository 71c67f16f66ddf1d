"""
Pure wiring algorithms: geometry, wire mutation primitives, collinear
merging and topology rebuilding. Nothing here holds state.
"""

from .topology_builder import rebuild_topology
from .unify import unify_inline_wires

__all__ = ["rebuild_topology", "unify_inline_wires"]
