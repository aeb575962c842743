"""Tests for flowchart placement, overlap resolution, and routing."""

import math

import pytest

from archgraph.config_manager import LayoutSettings
from archgraph.layers import calculate_layers
from archgraph.layout import (
    LayoutEngine,
    calculate_importance,
    curved_path,
    elbow_path,
    route_path,
    source_anchor,
    stepped_path,
    target_anchor,
)
from archgraph.metrics import calculate_metrics
from archgraph.models import (
    ArchitectureAnalysis,
    EdgeType,
    FlowchartConnection,
    FlowchartNode,
    FlowchartNodeType,
    GraphEdge,
    GraphNode,
    Language,
    Layer,
    NodeMetadata,
    NodeType,
    Point,
)


def _graph_node(node_id, node_type=NodeType.MODULE, path=None, is_entry=False,
                complexity=1, loc=10, dependents=(), patterns=()):
    return GraphNode(
        id=node_id,
        name=node_id,
        type=node_type,
        file_path=path or f"lib/{node_id}.ts",
        language=Language.TYPESCRIPT,
        lines_of_code=loc,
        complexity=complexity,
        dependents=list(dependents),
        metadata=NodeMetadata(is_entry=is_entry, patterns=list(patterns)),
    )


def _analysis(nodes, edges=()):
    edges = list(edges)
    return ArchitectureAnalysis(
        nodes=nodes,
        edges=edges,
        layers=calculate_layers(nodes),
        metrics=calculate_metrics(nodes, edges),
    )


def _box(node_id, x, y, layer_index=0, width=180, height=80):
    return FlowchartNode(
        id=node_id,
        label=node_id,
        type=FlowchartNodeType.SERVICE,
        x=x,
        y=y,
        width=width,
        height=height,
        layer_index=layer_index,
    )


@pytest.fixture
def engine() -> LayoutEngine:
    return LayoutEngine()


class TestImportance:
    def test_baseline(self):
        """Test importance of a bare node."""
        assert calculate_importance(_graph_node("a")) == 1.1

    def test_contributions(self):
        """Test each importance contribution."""
        node = _graph_node(
            "a",
            complexity=5,
            loc=250,
            dependents=["b", "c"],
            patterns=["singleton", "callback"],
        )
        # 1 + 1 dependents + 0.5 complexity + 1 singleton + 0.5 size
        assert calculate_importance(node) == 4.0

    def test_capped_at_five(self):
        """Test the importance cap."""
        node = _graph_node("a", is_entry=True, complexity=20, loc=600, dependents=["x"] * 10)
        assert calculate_importance(node) == 5.0


class TestPlacement:
    def test_empty_analysis(self, engine: LayoutEngine):
        """Test laying out an empty analysis."""
        flowchart = engine.generate_flowchart(ArchitectureAnalysis())

        assert flowchart.nodes == []
        assert flowchart.connections == []
        assert list(flowchart.layers) == [layer.value for layer in Layer]
        assert flowchart.metrics.total_nodes == 0
        assert flowchart.metrics.total_connections == 0

    def test_empty_bands_use_minimum_heights(self, engine: LayoutEngine):
        """Test band heights when layers are empty."""
        bands = engine.generate_flowchart(ArchitectureAnalysis()).layers
        heights = [bands[layer.value].height for layer in Layer]
        assert heights == list(LayoutSettings().min_band_heights)
        assert bands["entry"].y == 50
        assert bands["presentation"].y == 50 + 120 + 50

    def test_single_node_is_centered(self, engine: LayoutEngine):
        """Test centering a lone node."""
        flowchart = engine.generate_flowchart(_analysis([_graph_node("a")]))
        (node,) = flowchart.nodes

        assert node.x == 510
        band = flowchart.layers["business"]
        assert band.y <= node.y
        assert node.y + node.height <= band.y + band.height
        assert node.layer_index == Layer.BUSINESS.position
        assert node.type == FlowchartNodeType.SERVICE

    def test_entry_node_type(self, engine: LayoutEngine):
        """Test the flowchart type of an entry node."""
        flowchart = engine.generate_flowchart(_analysis([_graph_node("a", is_entry=True)]))
        assert flowchart.nodes[0].type == FlowchartNodeType.ENTRY
        assert flowchart.nodes[0].metadata["is_entry"] is True

    def test_row_is_ordered_by_importance_then_name(self, engine: LayoutEngine):
        """Test ordering within a row."""
        nodes = [
            _graph_node("b"),
            _graph_node("a"),
            _graph_node("busy", dependents=["x", "y"]),
        ]
        flowchart = engine.generate_flowchart(_analysis(nodes), optimize=False)
        order = [n.id for n in sorted(flowchart.nodes, key=lambda n: n.x)]
        assert order == ["busy", "a", "b"]

    def test_no_shared_coordinates_within_a_row(self, engine: LayoutEngine):
        """Test that nodes in a row never share a position."""
        nodes = [_graph_node(f"svc{i}", NodeType.SERVICE) for i in range(8)]
        flowchart = engine.generate_flowchart(_analysis(nodes))
        coords = {(n.layer_index, n.level, n.x, n.y) for n in flowchart.nodes}
        assert len(coords) == len(nodes)

    def test_levels_become_rows(self, engine: LayoutEngine):
        """Test one row per dependency level."""
        nodes = [_graph_node("a"), _graph_node("b")]
        flowchart = engine.generate_flowchart(_analysis(nodes, [GraphEdge("a", "b")]), optimize=False)
        by_id = {n.id: n for n in flowchart.nodes}

        assert by_id["a"].level == 2
        assert by_id["b"].level == 1
        assert by_id["a"].y > by_id["b"].y

    def test_bands_do_not_overlap(self, engine: LayoutEngine):
        """Test that layer bands are stacked."""
        nodes = [_graph_node(f"n{i}") for i in range(6)]
        edges = [GraphEdge(f"n{i}", f"n{i + 1}") for i in range(5)]
        bands = engine.generate_flowchart(_analysis(nodes, edges)).layers
        ordered = [bands[layer.value] for layer in Layer]

        for upper, lower in zip(ordered, ordered[1:]):
            assert upper.y + upper.height <= lower.y
        # six rows in one band grow past its minimum height
        assert bands["business"].height == 6 * 120 - 40 + 40

    def test_layer_assignment_is_respected(self, engine: LayoutEngine):
        """Test that nodes stay inside their layer band."""
        node = _graph_node("a")
        analysis = _analysis([node])
        analysis.layers.business.remove("a")
        analysis.layers.data.append("a")

        flowchart = engine.generate_flowchart(analysis)
        assert flowchart.nodes[0].layer_index == Layer.DATA.position


class TestOverlap:
    def test_detection_is_strict(self):
        """Test that touching boxes do not overlap."""
        assert LayoutEngine.nodes_overlap(_box("a", 0, 0), _box("b", 100, 40))
        assert not LayoutEngine.nodes_overlap(_box("a", 0, 0), _box("b", 180, 0))

    def test_overlapping_pair_is_separated(self, engine: LayoutEngine):
        """Test separating two overlapping nodes."""
        nodes = [_box("a", 0, 0), _box("b", 10, 0)]
        iterations = engine.reduce_overlap(nodes)

        assert not LayoutEngine.nodes_overlap(*nodes)
        assert 0 < iterations < LayoutSettings().max_overlap_iterations
        assert nodes[0].y == nodes[1].y == 0

    def test_coincident_nodes_move_along_x(self, engine: LayoutEngine):
        """Test separating nodes at the same point."""
        nodes = [_box("a", 100, 100), _box("b", 100, 100)]
        engine.reduce_overlap(nodes)

        assert nodes[0].x < nodes[1].x
        assert nodes[0].y == nodes[1].y == 100

    def test_no_overlap_means_no_movement(self, engine: LayoutEngine):
        """Test that a clean layout is left alone."""
        nodes = [_box("a", 0, 0), _box("b", 500, 0)]
        assert engine.reduce_overlap(nodes) == 0
        assert (nodes[1].x, nodes[1].y) == (500, 0)

    def test_iteration_cap(self):
        """Test the overlap pass stops at its limit."""
        engine = LayoutEngine(LayoutSettings(max_overlap_iterations=1))
        nodes = [_box(str(i), 0, 0) for i in range(5)]
        assert engine.reduce_overlap(nodes) == 1


class TestAnchors:
    def test_source_anchor_sides(self):
        """Test source anchors by direction."""
        box = _box("a", 0, 0)  # center (90, 40)
        assert source_anchor(box, Point(500, 40)) == Point(180, 40)
        assert source_anchor(box, Point(90, 500)) == Point(90, 80)
        assert source_anchor(box, Point(-500, 40)) == Point(0, 40)
        assert source_anchor(box, Point(300, -500)) == Point(180, 40)
        assert source_anchor(box, Point(-300, -500)) == Point(0, 40)

    def test_target_anchor_sides(self):
        """Test target anchors by direction."""
        box = _box("a", 0, 0)
        assert target_anchor(box, Point(90, -500)) == Point(90, 0)
        assert target_anchor(box, Point(500, 40)) == Point(180, 40)
        assert target_anchor(box, Point(-500, 40)) == Point(0, 40)
        assert target_anchor(box, Point(90, 40)) == Point(0, 40)


class TestPaths:
    start, end = Point(0, 0), Point(100, 300)

    def test_elbow(self):
        """Test the elbow route for inheritance."""
        path = elbow_path(self.start, self.end)
        assert path == [self.start, Point(0, 150), Point(100, 150), self.end]

    def test_stepped(self):
        """Test the stepped route across layers."""
        path = stepped_path(self.start, self.end)
        assert len(path) == 6
        assert path[0] == self.start and path[-1] == self.end
        assert path[1] == Point(0, 100)
        assert path[4] == Point(100, 200)

    def test_curve_offset_is_capped(self):
        """Test the curve offset cap."""
        path = curved_path(self.start, self.end, 1)
        mid = Point(50, 150)
        control = path[1]
        offset = math.hypot(control.x - mid.x, control.y - mid.y)
        assert len(path) == 3
        assert offset == pytest.approx(60)

    def test_short_curve_offset_scales_with_distance(self):
        """Test curve offsets on short connections."""
        path = curved_path(Point(0, 0), Point(100, 0), 0)
        assert path[1] == Point(50, 20)

    def test_upward_curve_bends_the_other_way(self):
        """Test curve direction for upward connections."""
        down = curved_path(Point(0, 0), Point(100, 0), 1)
        up = curved_path(Point(0, 0), Point(100, 0), -1)
        assert down[1].y == -up[1].y

    def test_zero_length_curve(self):
        """Test a connection with coincident ends."""
        assert curved_path(self.start, self.start, 0) == [self.start] * 3

    @pytest.mark.parametrize("edge_type,delta,points", [
        (EdgeType.INHERITANCE, 3, 4),
        (EdgeType.IMPORT, 2, 6),
        (EdgeType.IMPORT, -2, 6),
        (EdgeType.IMPORT, 1, 3),
        (EdgeType.DEPENDENCY, 0, 3),
    ])
    def test_route_shape(self, edge_type, delta, points):
        """Test the number of points per route."""
        assert len(route_path(self.start, self.end, delta, edge_type)) == points


class TestRouting:
    def test_every_internal_connection_gets_a_path(self, engine: LayoutEngine):
        """Test paths on an optimized flowchart."""
        nodes = [
            _graph_node("app", NodeType.COMPONENT),
            _graph_node("svc", NodeType.SERVICE),
            _graph_node("cfg", NodeType.CONFIG),
        ]
        edges = [
            GraphEdge("app", "svc"),
            GraphEdge("app", "cfg"),
            GraphEdge("svc", "external_lodash"),
        ]
        flowchart = engine.generate_flowchart(_analysis(nodes, edges))
        paths = {(c.source, c.target): c.path for c in flowchart.connections}

        assert len(paths[("app", "svc")]) == 3
        # presentation to infrastructure skips two bands
        assert len(paths[("app", "cfg")]) == 6
        assert paths[("svc", "external_lodash")] is None
        assert flowchart.metrics.total_connections == 3

    def test_missing_endpoint_has_no_path(self, engine: LayoutEngine):
        """Test a connection to an external node."""
        conn = FlowchartConnection("a", "ghost", EdgeType.IMPORT)
        engine.route_connections([conn], [_box("a", 0, 0)])
        assert conn.path is None

    def test_unoptimized_flowchart_has_no_paths(self, engine: LayoutEngine):
        """Test a flowchart built without optimization."""
        nodes = [_graph_node("a"), _graph_node("b")]
        flowchart = engine.generate_flowchart(_analysis(nodes, [GraphEdge("a", "b")]), optimize=False)
        assert flowchart.connections[0].path is None
