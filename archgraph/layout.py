"""Layered diagram layout: node placement, overlap resolution, and
connection routing."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from .config_manager import LayoutSettings
from .hierarchy import calculate_levels
from .layers import classify_layer
from .metrics import round2
from .models import (
    ArchitectureAnalysis,
    EdgeType,
    Flowchart,
    FlowchartConnection,
    FlowchartMetrics,
    FlowchartNode,
    FlowchartNodeType,
    GraphNode,
    Layer,
    LayerBand,
    NodeType,
    Point,
)

logger = logging.getLogger(__name__)

FLOWCHART_TYPES: Dict[NodeType, FlowchartNodeType] = {
    NodeType.COMPONENT: FlowchartNodeType.COMPONENT,
    NodeType.SERVICE: FlowchartNodeType.SERVICE,
    NodeType.UTILITY: FlowchartNodeType.UTIL,
    NodeType.API: FlowchartNodeType.API,
    NodeType.DATABASE: FlowchartNodeType.DATABASE,
    NodeType.CONFIG: FlowchartNodeType.CONFIG,
    NodeType.HOOK: FlowchartNodeType.HOOK,
    NodeType.MODULE: FlowchartNodeType.SERVICE,
    NodeType.TEST: FlowchartNodeType.TEST,
}

_KEY_PATTERNS = ("singleton", "observer", "mvc")


def calculate_importance(node: GraphNode) -> float:
    importance = 1.0
    if node.metadata.is_entry:
        importance += 3
    importance += len(node.dependents) * 0.5
    importance += node.complexity * 0.1
    importance += sum(1 for p in _KEY_PATTERNS if p in node.metadata.patterns)
    if node.lines_of_code > 200:
        importance += 0.5
    if node.lines_of_code > 500:
        importance += 0.5
    return round2(min(importance, 5.0))


# ===================================================================
# Path routing (pure functions)
# ===================================================================

def source_anchor(node: FlowchartNode, toward: Point) -> Point:
    """Point on the right, bottom, or left edge of *node* facing *toward*."""
    center = node.center
    dx, dy = toward.x - center.x, toward.y - center.y
    angle = math.degrees(math.atan2(dy, dx))

    right = Point(node.x + node.width, center.y)
    left = Point(node.x, center.y)
    if -45 <= angle <= 45:
        return right
    if 45 < angle < 135:
        return Point(center.x, node.y + node.height)
    if angle >= 135 or angle <= -135:
        return left
    return right if dx >= 0 else left


def target_anchor(node: FlowchartNode, origin: Point) -> Point:
    """Point on the left, top, or right edge of *node* facing *origin*."""
    center = node.center
    dx, dy = origin.x - center.x, origin.y - center.y
    if dx == 0 and dy == 0:
        return Point(node.x, center.y)
    angle = math.degrees(math.atan2(dy, dx))
    if -135 < angle < -45:
        return Point(center.x, node.y)
    if -45 <= angle <= 45:
        return Point(node.x + node.width, center.y)
    return Point(node.x, center.y)


def elbow_path(start: Point, end: Point) -> List[Point]:
    mid_y = (start.y + end.y) / 2
    return [start, Point(start.x, mid_y), Point(end.x, mid_y), end]


def stepped_path(start: Point, end: Point) -> List[Point]:
    dy = end.y - start.y
    first = start.y + dy / 3
    second = start.y + 2 * dy / 3
    mid_x = (start.x + end.x) / 2
    return [
        start,
        Point(start.x, first),
        Point(mid_x, first),
        Point(mid_x, second),
        Point(end.x, second),
        end,
    ]


def curved_path(
    start: Point,
    end: Point,
    layer_delta: int,
    curve_factor: float = 0.2,
    max_offset: float = 60.0,
) -> List[Point]:
    dx, dy = end.x - start.x, end.y - start.y
    distance = math.hypot(dx, dy)
    mid = Point((start.x + end.x) / 2, (start.y + end.y) / 2)
    if distance == 0:
        return [start, mid, end]
    offset = min(distance * curve_factor, max_offset)
    if layer_delta < 0:
        offset = -offset
    return [start, Point(mid.x - dy / distance * offset, mid.y + dx / distance * offset), end]


def route_path(
    start: Point,
    end: Point,
    layer_delta: int,
    edge_type: EdgeType,
    curve_factor: float = 0.2,
    max_offset: float = 60.0,
) -> List[Point]:
    if edge_type == EdgeType.INHERITANCE:
        return elbow_path(start, end)
    if abs(layer_delta) > 1:
        return stepped_path(start, end)
    return curved_path(start, end, layer_delta, curve_factor, max_offset)


# ===================================================================
# Layout engine
# ===================================================================

class LayoutEngine:
    """Places analysis nodes into layer bands and routes their connections.

    Layers are stacked top to bottom in :class:`Layer` order; inside a band
    each hierarchy level gets its own row.
    """

    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        self.settings = settings or LayoutSettings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_flowchart(self, analysis: ArchitectureAnalysis, optimize: bool = True) -> Flowchart:
        levels = calculate_levels([n.id for n in analysis.nodes], analysis.edges)
        nodes, bands = self._place_nodes(analysis, levels)
        connections = [
            FlowchartConnection(
                source=edge.source,
                target=edge.target,
                type=edge.type,
                strength=edge.strength,
            )
            for edge in analysis.edges
        ]
        m = analysis.metrics
        flowchart = Flowchart(
            nodes=nodes,
            connections=connections,
            layers=bands,
            metrics=FlowchartMetrics(
                total_nodes=len(analysis.nodes),
                total_connections=len(analysis.edges),
                average_complexity=m.average_complexity,
                coupling=m.coupling,
                cohesion=m.cohesion,
            ),
        )
        if optimize:
            flowchart = self.optimize_layout(flowchart)
        return flowchart

    def optimize_layout(self, flowchart: Flowchart) -> Flowchart:
        iterations = self.reduce_overlap(flowchart.nodes)
        logger.debug("Overlap pass finished after %d iteration(s)", iterations)
        self.route_connections(flowchart.connections, flowchart.nodes)
        return flowchart

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _place_nodes(
        self,
        analysis: ArchitectureAnalysis,
        levels: Dict[str, int],
    ) -> Tuple[List[FlowchartNode], Dict[str, LayerBand]]:
        s = self.settings
        groups: Dict[Layer, Dict[int, List[Tuple[GraphNode, float]]]] = {
            layer: defaultdict(list) for layer in Layer
        }
        assigned = {
            node_id: layer
            for layer in Layer
            for node_id in analysis.layers.members(layer)
        }
        for node in analysis.nodes:
            layer = assigned.get(node.id) or classify_layer(
                node.type, node.metadata.is_entry, node.file_path
            )
            groups[layer][levels.get(node.id, 1)].append((node, calculate_importance(node)))

        placed: List[FlowchartNode] = []
        bands: Dict[str, LayerBand] = {}
        row_height = s.node_height + s.level_spacing
        band_y = s.margin

        for layer in Layer:
            by_level = groups[layer]
            rows = sorted(by_level)
            content = len(rows) * row_height - s.level_spacing if rows else 0.0
            min_height = 0.0
            if layer.position < len(s.min_band_heights):
                min_height = s.min_band_heights[layer.position]
            band_height = max(min_height, content + 2 * s.band_padding)
            bands[layer.value] = LayerBand(y=band_y, height=band_height)

            top = band_y + (band_height - content) / 2
            for row, level in enumerate(rows):
                members = sorted(
                    by_level[level],
                    key=lambda item: (-item[1], item[0].name, item[0].id),
                )
                xs = self._row_positions(len(members))
                for (node, importance), x in zip(members, xs):
                    placed.append(self._flowchart_node(
                        node, layer, level, importance, x, top + row * row_height,
                    ))

            band_y += band_height + s.layer_spacing

        return placed, bands

    def _row_positions(self, count: int) -> List[float]:
        s = self.settings
        total = count * s.node_width + (count - 1) * s.node_spacing
        start = (s.canvas_width - total) / 2
        return [start + i * (s.node_width + s.node_spacing) for i in range(count)]

    def _flowchart_node(
        self,
        node: GraphNode,
        layer: Layer,
        level: int,
        importance: float,
        x: float,
        y: float,
    ) -> FlowchartNode:
        flow_type = FlowchartNodeType.ENTRY if node.metadata.is_entry else FLOWCHART_TYPES[node.type]
        return FlowchartNode(
            id=node.id,
            label=node.name,
            type=flow_type,
            x=x,
            y=y,
            width=self.settings.node_width,
            height=self.settings.node_height,
            layer_index=layer.position,
            level=level,
            importance=importance,
            file_path=node.file_path,
            complexity=node.complexity,
            metadata={
                "lines_of_code": node.lines_of_code,
                "language": node.language.value,
                "patterns": list(node.metadata.patterns),
                "dependencies": list(node.dependencies),
                "dependents": list(node.dependents),
                "is_entry": node.metadata.is_entry,
                "is_async": node.metadata.is_async,
                "has_error_handling": node.metadata.has_error_handling,
            },
        )

    # ------------------------------------------------------------------
    # Overlap resolution
    # ------------------------------------------------------------------

    @staticmethod
    def nodes_overlap(a: FlowchartNode, b: FlowchartNode) -> bool:
        return (
            a.x < b.x + b.width
            and b.x < a.x + a.width
            and a.y < b.y + b.height
            and b.y < a.y + a.height
        )

    def _separate(self, a: FlowchartNode, b: FlowchartNode) -> None:
        ca, cb = a.center, b.center
        dx, dy = cb.x - ca.x, cb.y - ca.y
        depth = min(
            (a.width + b.width) / 2 - abs(dx),
            (a.height + b.height) / 2 - abs(dy),
        )
        distance = math.hypot(dx, dy)
        if distance == 0:
            ux, uy = 1.0, 0.0
        else:
            ux, uy = dx / distance, dy / distance

        shift = (depth + self.settings.node_spacing) / 2
        a.x -= ux * shift
        a.y -= uy * shift
        b.x += ux * shift
        b.y += uy * shift

    def reduce_overlap(self, nodes: List[FlowchartNode]) -> int:
        """Push overlapping pairs apart; returns the sweeps used.

        Stops at ``max_overlap_iterations`` even if overlaps remain.
        """
        for iteration in range(self.settings.max_overlap_iterations):
            moved = False
            for i in range(len(nodes)):
                for j in range(i + 1, len(nodes)):
                    if self.nodes_overlap(nodes[i], nodes[j]):
                        self._separate(nodes[i], nodes[j])
                        moved = True
            if not moved:
                return iteration
        logger.debug("Overlap pass hit the iteration cap with %d nodes", len(nodes))
        return self.settings.max_overlap_iterations

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def route_connections(
        self,
        connections: List[FlowchartConnection],
        nodes: List[FlowchartNode],
    ) -> None:
        by_id = {n.id: n for n in nodes}
        for conn in connections:
            src, dst = by_id.get(conn.source), by_id.get(conn.target)
            if src is None or dst is None:
                conn.path = None
                continue
            start = source_anchor(src, dst.center)
            end = target_anchor(dst, src.center)
            conn.path = route_path(
                start,
                end,
                dst.layer_index - src.layer_index,
                conn.type,
                self.settings.curve_factor,
                self.settings.max_curve_offset,
            )
