"""Node filtering and focused subgraphs over a finished analysis."""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from .models import ArchitectureAnalysis, GraphEdge, GraphNode, Language, NodeType


def filter_nodes(
    analysis: ArchitectureAnalysis,
    folder: Optional[str] = None,
    language: Optional[Union[Language, str]] = None,
    node_type: Optional[Union[NodeType, str]] = None,
) -> List[GraphNode]:
    """Return nodes under *folder* that match *language* and *node_type*."""
    prefix = folder.strip("/") + "/" if folder else ""
    result: List[GraphNode] = []
    for node in analysis.nodes:
        if prefix and not node.file_path.startswith(prefix):
            continue
        if language is not None and node.language != Language(language):
            continue
        if node_type is not None and node.type != NodeType(node_type):
            continue
        result.append(node)
    return result


def focused_subgraph(analysis: ArchitectureAnalysis, focus: str) -> Dict[str, List]:
    """Nodes matching *focus* plus their direct neighbours.

    An empty or unmatched focus returns the whole graph.
    """
    ids = [n.id for n in analysis.nodes]
    if not focus:
        return {"nodes": ids, "edges": list(analysis.edges)}

    focus_ids = {
        n.id
        for n in analysis.nodes
        if focus in n.id or focus in n.name or focus in n.file_path
    }
    if not focus_ids:
        return {"nodes": ids, "edges": list(analysis.edges)}

    edge_subset: List[GraphEdge] = [
        e for e in analysis.edges if e.source in focus_ids or e.target in focus_ids
    ]
    known = set(ids)
    node_subset = set(focus_ids)
    for e in edge_subset:
        if e.source in known:
            node_subset.add(e.source)
        if e.target in known:
            node_subset.add(e.target)
    return {"nodes": sorted(node_subset), "edges": edge_subset}
