"""
Capsule lineage graph.

Nodes are capsules and edges are transitions between them (morphs,
interpolations). Both collections are append-only. Concurrent pipeline
branches may add to one builder; every mutation and every snapshot holds
the builder's lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..errors import UnknownCapsuleError
from ..models import SymbolCapsule

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_NAME = "CapsuleLineage"


@dataclass(frozen=True)
class LineageNode:
    identity: str
    symbol_type: str
    style: str
    contributor: str
    generated_on: datetime
    interpolation_factor: float | None = None

    @classmethod
    def from_capsule(cls, capsule: SymbolCapsule) -> LineageNode:
        return cls(
            identity=capsule.identity,
            symbol_type=capsule.symbol_type.value,
            style=capsule.template_name,
            contributor=capsule.contributor,
            generated_on=capsule.generated_on,
            interpolation_factor=capsule.interpolation_factor,
        )

    @property
    def label(self) -> str:
        factor = "n/a" if self.interpolation_factor is None else f"{self.interpolation_factor:g}"
        return f"{self.symbol_type}\n({self.style})\nFactor: {factor}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "symbol_type": self.symbol_type,
            "style": self.style,
            "contributor": self.contributor,
            "generated_on": self.generated_on.isoformat(),
            "interpolation_factor": self.interpolation_factor,
        }


@dataclass(frozen=True)
class LineageEdge:
    from_id: str
    to_id: str
    transition_type: str
    audit_tag: str

    @property
    def label(self) -> str:
        return f"{self.transition_type}\n{self.audit_tag}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "transition_type": self.transition_type,
            "audit_tag": self.audit_tag,
        }


def esc(s: str) -> str:
    """Escape a string for a double-quoted DOT id or label."""
    return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class LineageGraphBuilder:
    """
    Append-only lineage graph.

    add_capsule is not idempotent: adding the same capsule twice records two
    nodes. In strict mode, link() refuses endpoints that are not yet nodes.
    """

    def __init__(self, *, strict: bool = True):
        self.strict = strict
        self._lock = threading.RLock()
        self._nodes: list[LineageNode] = []
        self._edges: list[LineageEdge] = []
        self._ids: set[str] = set()

    def add_capsule(self, capsule: SymbolCapsule) -> LineageNode:
        if capsule is None:
            raise TypeError("capsule cannot be None")
        node = LineageNode.from_capsule(capsule)
        with self._lock:
            self._nodes.append(node)
            self._ids.add(node.identity)
        logger.debug("lineage node %s", node.identity[:12])
        return node

    def link(self, from_id: str, to_id: str, transition_type: str, audit_tag: str) -> LineageEdge:
        """
        Record a transition from one capsule to another.

        Self-loops and parallel edges are allowed.

        Raises:
            UnknownCapsuleError: in strict mode, if either endpoint is not a node
        """
        edge = LineageEdge(
            from_id=from_id,
            to_id=to_id,
            transition_type=transition_type,
            audit_tag=audit_tag,
        )
        with self._lock:
            if self.strict:
                if from_id not in self._ids:
                    raise UnknownCapsuleError(from_id, "source")
                if to_id not in self._ids:
                    raise UnknownCapsuleError(to_id, "target")
            self._edges.append(edge)
        logger.debug("lineage edge %s -> %s (%s)", from_id[:12], to_id[:12], transition_type)
        return edge

    @property
    def nodes(self) -> tuple[LineageNode, ...]:
        with self._lock:
            return tuple(self._nodes)

    @property
    def edges(self) -> tuple[LineageEdge, ...]:
        with self._lock:
            return tuple(self._edges)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._ids

    def node(self, identity: str) -> LineageNode | None:
        """First node recorded for an identity."""
        with self._lock:
            for n in self._nodes:
                if n.identity == identity:
                    return n
        return None

    def ancestors(self, identity: str) -> set[str]:
        """Identities with a path to the given identity."""
        return self._walk(identity, upstream=True)

    def descendants(self, identity: str) -> set[str]:
        """Identities reachable from the given identity."""
        return self._walk(identity, upstream=False)

    def _walk(self, start: str, *, upstream: bool) -> set[str]:
        adjacency: dict[str, set[str]] = {}
        for edge in self.edges:
            src, dst = (edge.to_id, edge.from_id) if upstream else (edge.from_id, edge.to_id)
            adjacency.setdefault(src, set()).add(dst)

        seen: set[str] = set()
        stack = list(adjacency.get(start, ()))
        while stack:
            cur = stack.pop()
            if cur in seen:
                continue
            seen.add(cur)
            stack.extend(adjacency.get(cur, ()))
        # A self-loop or cycle back to start is not ancestry.
        seen.discard(start)
        return seen

    def export_dot(self, name: str = DEFAULT_GRAPH_NAME) -> str:
        """
        Serialize the graph as Graphviz DOT.

        Nodes, then edges, each in insertion order, so identical insertion
        order always yields identical text.
        """
        nodes, edges = self._snapshot()
        lines = [
            f'digraph "{esc(name)}" {{',
            "  rankdir=LR;",
            "  node [shape=box, style=rounded];",
        ]
        for n in nodes:
            lines.append(f'  "{esc(n.identity)}" [label="{esc(n.label)}"];')
        for e in edges:
            lines.append(f'  "{esc(e.from_id)}" -> "{esc(e.to_id)}" [label="{esc(e.label)}"];')
        lines.append("}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        nodes, edges = self._snapshot()
        return {
            "nodes": [n.to_dict() for n in nodes],
            "edges": [e.to_dict() for e in edges],
        }

    def _snapshot(self) -> tuple[tuple[LineageNode, ...], tuple[LineageEdge, ...]]:
        with self._lock:
            return tuple(self._nodes), tuple(self._edges)
