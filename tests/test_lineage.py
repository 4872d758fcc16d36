import threading

import pytest

from conftest import make_capsule
from symforge.capsule import morph_capsules
from symforge.errors import UnknownCapsuleError
from symforge.lineage import LineageGraphBuilder
from symforge.models import SymbolType
from symforge.raster.buffer import RasterBuffer


def _pair():
    x = make_capsule(RasterBuffer.filled(4, 4, 0), template_name="flat")
    y = make_capsule(RasterBuffer.filled(4, 4, 255), symbol_type=SymbolType.SHARP, template_name="sharp")
    return x, y


def _statements(dot: str) -> tuple[list[str], list[str]]:
    body = [line.strip() for line in dot.splitlines() if line.strip().startswith('"')]
    edges = [line for line in body if "->" in line]
    nodes = [line for line in body if "->" not in line]
    return nodes, edges


def test_round_trip_one_statement_per_node_and_edge() -> None:
    x, y = _pair()
    graph = LineageGraphBuilder()
    graph.add_capsule(x)
    graph.add_capsule(y)
    graph.link(x.identity, y.identity, "Morph", "tag1")

    nodes, edges = _statements(graph.export_dot())
    assert len(nodes) == 2
    assert len(edges) == 1
    assert "Morph" in edges[0] and "tag1" in edges[0]


def test_dot_layout_and_labels() -> None:
    x, y = _pair()
    child = morph_capsules(x, y, 0.25, contributor="tester")
    graph = LineageGraphBuilder()
    for c in (x, y, child):
        graph.add_capsule(c)
    graph.link(x.identity, child.identity, "Morph", "batch-7")

    dot = graph.export_dot()
    assert dot.startswith('digraph "CapsuleLineage" {\n')
    assert "  rankdir=LR;" in dot
    assert f'"{x.identity}" [label="flat\\n(flat)\\nFactor: n/a"];' in dot
    assert f'[label="flat\\n(flat_morph_flat_to_sharp)\\nFactor: 0.25"];' in dot
    assert f'"{x.identity}" -> "{child.identity}" [label="Morph\\nbatch-7"];' in dot
    assert dot.endswith("}\n")


def test_export_is_deterministic_for_same_insertion_order() -> None:
    x, y = _pair()

    def build() -> str:
        g = LineageGraphBuilder()
        g.add_capsule(x)
        g.add_capsule(y)
        g.link(y.identity, x.identity, "Interpolation", "t")
        return g.export_dot("Run")

    assert build() == build()


def test_labels_are_escaped() -> None:
    x = make_capsule(RasterBuffer.filled(2, 2, 0), template_name='say "hi" \\ bye')
    graph = LineageGraphBuilder()
    graph.add_capsule(x)
    graph.link(x.identity, x.identity, 'quote"d', "back\\slash")

    dot = graph.export_dot('my "graph"')
    assert 'digraph "my \\"graph\\"" {' in dot
    assert '(say \\"hi\\" \\\\ bye)' in dot
    assert '[label="quote\\"d\\nback\\\\slash"]' in dot


def test_duplicates_self_loops_and_parallel_edges_are_kept() -> None:
    x, y = _pair()
    graph = LineageGraphBuilder()
    graph.add_capsule(x)
    graph.add_capsule(x)
    graph.add_capsule(y)
    graph.link(x.identity, y.identity, "Morph", "a")
    graph.link(x.identity, y.identity, "Morph", "a")
    graph.link(y.identity, y.identity, "Touch-up", "b")

    assert len(graph.nodes) == 3
    assert len(graph.edges) == 3
    nodes, edges = _statements(graph.export_dot())
    assert (len(nodes), len(edges)) == (3, 3)


def test_strict_links_require_known_endpoints() -> None:
    x, y = _pair()
    graph = LineageGraphBuilder()
    graph.add_capsule(x)

    with pytest.raises(UnknownCapsuleError, match="Unknown target capsule"):
        graph.link(x.identity, y.identity, "Morph", "t")
    with pytest.raises(UnknownCapsuleError, match="Unknown source capsule"):
        graph.link(y.identity, x.identity, "Morph", "t")
    assert graph.edges == ()


def test_permissive_links() -> None:
    graph = LineageGraphBuilder(strict=False)
    edge = graph.link("a" * 64, "b" * 64, "Morph", "t")
    assert graph.edges == (edge,)


def test_ancestry_queries() -> None:
    x, y = _pair()
    child = morph_capsules(x, y, 0.5, contributor="tester")
    grandchild = morph_capsules(child, y, 0.5, contributor="tester")
    graph = LineageGraphBuilder()
    for c in (x, y, child, grandchild):
        graph.add_capsule(c)
    graph.link(x.identity, child.identity, "Morph", "t")
    graph.link(y.identity, child.identity, "Morph", "t")
    graph.link(child.identity, grandchild.identity, "Morph", "t")
    graph.link(y.identity, grandchild.identity, "Morph", "t")

    assert graph.ancestors(grandchild.identity) == {x.identity, y.identity, child.identity}
    assert graph.descendants(x.identity) == {child.identity, grandchild.identity}
    assert graph.node(child.identity).interpolation_factor == 0.5
    assert graph.node("missing") is None
    assert child.identity in graph

    data = graph.to_dict()
    assert len(data["nodes"]) == 4
    assert data["edges"][0] == {
        "from": x.identity,
        "to": child.identity,
        "transition_type": "Morph",
        "audit_tag": "t",
    }


def test_concurrent_branches_lose_nothing() -> None:
    graph = LineageGraphBuilder()
    capsules = [make_capsule(RasterBuffer.filled(2, 2, v)) for v in range(40)]
    root = capsules[0]
    graph.add_capsule(root)

    def branch(chunk):
        for c in chunk:
            graph.add_capsule(c)
            graph.link(root.identity, c.identity, "Morph", "thread")

    threads = [threading.Thread(target=branch, args=(capsules[i::4],)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(graph.nodes) == 41
    assert len(graph.edges) == 40
    nodes, edges = _statements(graph.export_dot())
    assert (len(nodes), len(edges)) == (41, 40)
