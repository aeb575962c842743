"""Export helpers for Mermaid, JSON, and DOT outputs."""

from __future__ import annotations

import dataclasses
import json
from typing import Dict, List

from .models import (
    EXTERNAL_PREFIX,
    ArchitectureAnalysis,
    EdgeType,
    Flowchart,
    FlowchartNodeType,
    is_external,
)
from .query import focused_subgraph

# (open, close) brackets per node type
_MERMAID_SHAPES: Dict[FlowchartNodeType, tuple] = {
    FlowchartNodeType.ENTRY: (">", "]"),
    FlowchartNodeType.COMPONENT: ("[", "]"),
    FlowchartNodeType.SERVICE: ("[", "]"),
    FlowchartNodeType.DATABASE: ("[(", ")]"),
    FlowchartNodeType.EXTERNAL: ("{{", "}}"),
    FlowchartNodeType.CONFIG: ("[/", "/]"),
    FlowchartNodeType.API: ("[", "]"),
    FlowchartNodeType.HOOK: ("(", ")"),
    FlowchartNodeType.UTIL: ("[[", "]]"),
    FlowchartNodeType.TEST: ("[\\", "\\]"),
}

_MERMAID_ARROWS: Dict[EdgeType, str] = {
    EdgeType.IMPORT: "-->",
    EdgeType.EXPORT: "-->",
    EdgeType.CALL: "-.->",
    EdgeType.DEPENDENCY: "==>",
    EdgeType.INHERITANCE: "--o",
}


def _mermaid_node(node_id: str, label: str, node_type: FlowchartNodeType) -> str:
    open_, close = _MERMAID_SHAPES[node_type]
    return f'  {node_id}{open_}"{label.replace(chr(34), "&quot;")}"{close}'


def render_mermaid(flowchart: Flowchart) -> str:
    lines = ["graph TD"]
    for node in flowchart.nodes:
        lines.append(_mermaid_node(node.id, node.label, node.type))

    externals: List[str] = []
    for conn in flowchart.connections:
        if is_external(conn.target) and conn.target not in externals:
            externals.append(conn.target)
    for ext in externals:
        lines.append(_mermaid_node(ext, ext[len(EXTERNAL_PREFIX):], FlowchartNodeType.EXTERNAL))

    for conn in flowchart.connections:
        lines.append(f"  {conn.source} {_MERMAID_ARROWS[conn.type]} {conn.target}")
    return "\n".join(lines) + "\n"


def render_json(flowchart: Flowchart) -> str:
    return json.dumps(dataclasses.asdict(flowchart), indent=2)


def render_analysis_json(analysis: ArchitectureAnalysis) -> str:
    return json.dumps(dataclasses.asdict(analysis), indent=2)


def render_dot(analysis: ArchitectureAnalysis, focus: str = "") -> str:
    nodes = {n.id: n for n in analysis.nodes}
    selected = focused_subgraph(analysis, focus)

    lines = ["digraph Architecture {"]
    lines.append("  rankdir=TB;")

    for node_id in selected["nodes"]:
        node = nodes[node_id]
        label = f"{node.type.value}\\n{node.file_path}"
        lines.append(f'  "{node_id}" [label="{_esc(label)}"];')

    for edge in selected["edges"]:
        if edge.source not in nodes:
            continue
        style = ' style="dashed"' if is_external(edge.target) else ""
        lines.append(
            f'  "{edge.source}" -> "{edge.target}" [label="{_esc(edge.type.value)}"{style}];'
        )

    lines.append("}")
    return "\n".join(lines) + "\n"


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
