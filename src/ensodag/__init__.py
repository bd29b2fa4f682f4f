"""
ensodag - Hierarchical ENSO transition graph analytics.

Indexes, queries and spatially binds the multi-level transition DAG of
climate-state clusters (level 0 = observed La Niña / Neutral / El Niño
classes, level n = clusters at n months lead time).

Key Components:
- core: index utility, data types, graph store, dataset context
- analysis: cumulative probability, most probable path, date highlighting
- binding: matching rendered SVG shapes to nodes and edges
- parsing: dataset JSON and SVG shape extraction

Usage:
    from ensodag import GraphContext, load_dataset

    result = load_dataset("json_files/vertical_transition_graph.json", "json_files/K_max.json")
    ctx = GraphContext()
    ctx.load_dataset(result.graph, result.index)
    ctx.analyzer.probability(6, 2)
"""

__version__ = "0.1.0"

from .core.context import GraphContext, LoadTicket
from .core.index import HierarchyIndex
from .core.types import TransitionEdge, TransitionNode
from .parsing.dataset import DatasetParser, load_dataset

__all__ = [
    "__version__",
    "GraphContext",
    "LoadTicket",
    "HierarchyIndex",
    "TransitionEdge",
    "TransitionNode",
    "DatasetParser",
    "load_dataset",
]
