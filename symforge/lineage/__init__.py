"""Lineage graph of capsules and the transitions between them."""

from .graph import DEFAULT_GRAPH_NAME, LineageEdge, LineageGraphBuilder, LineageNode

__all__ = ["DEFAULT_GRAPH_NAME", "LineageNode", "LineageEdge", "LineageGraphBuilder"]
