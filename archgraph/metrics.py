"""Aggregate graph metrics."""

from __future__ import annotations

import math
from typing import List

from .models import GraphEdge, GraphNode, Metrics, is_external


def round2(value: float) -> float:
    """Round half-up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


def calculate_metrics(nodes: List[GraphNode], edges: List[GraphEdge]) -> Metrics:
    total_files = len(nodes)
    total_lines = sum(n.lines_of_code for n in nodes)

    average_complexity = (
        sum(n.complexity for n in nodes) / total_files if total_files else 0.0
    )
    coupling = (
        sum(len(n.dependencies) for n in nodes) / total_files if total_files else 0.0
    )

    internal = sum(
        1 for e in edges if not is_external(e.source) and not is_external(e.target)
    )
    cohesion = internal / len(edges) if edges else 0.0

    return Metrics(
        total_files=total_files,
        total_lines=total_lines,
        average_complexity=round2(average_complexity),
        coupling=round2(coupling),
        cohesion=round2(cohesion),
    )
