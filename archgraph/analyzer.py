"""End-to-end architecture analysis of one repository snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .config_manager import AnalysisSettings
from .layers import calculate_layers
from .metrics import calculate_metrics
from .models import ArchitectureAnalysis, FileEntry, GraphEdge, GraphNode
from .parser import SourceParser
from .resolver import DependencyResolver

logger = logging.getLogger(__name__)

TreeInput = Iterable[Union[FileEntry, Dict[str, Any]]]


@dataclass
class AnalysisContext:
    """Mutable state owned by a single :meth:`ArchitectureAnalyzer.analyze` call."""

    parser: SourceParser
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    skipped: int = 0

    def register(self, node: GraphNode) -> None:
        # Two paths can sanitize to one id; keep the smaller path so the
        # winner does not depend on arrival order.
        existing = self.nodes.get(node.id)
        if existing is None or node.file_path < existing.file_path:
            self.nodes[node.id] = node


class ArchitectureAnalyzer:
    """Builds an :class:`ArchitectureAnalysis` from a nested file tree.

    The analyzer holds only settings; every call works on a fresh
    :class:`AnalysisContext`, so one instance can serve concurrent
    analyses of different repositories.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None) -> None:
        self.settings = settings or AnalysisSettings()

    def analyze(self, file_tree: TreeInput) -> ArchitectureAnalysis:
        context = AnalysisContext(parser=SourceParser(self.settings.max_file_size))
        self._parse_tree(file_tree, context)

        # Resolution needs the complete node set.
        nodes = dict(sorted(context.nodes.items()))
        context.edges = DependencyResolver(nodes).resolve_all()

        node_list = list(nodes.values())
        analysis = ArchitectureAnalysis(
            nodes=node_list,
            edges=context.edges,
            layers=calculate_layers(node_list),
            metrics=calculate_metrics(node_list, context.edges),
        )
        logger.info(
            "Analyzed %d files (%d skipped): %d edges",
            len(node_list), context.skipped, len(context.edges),
        )
        return analysis

    def _parse_tree(self, file_tree: TreeInput, context: AnalysisContext) -> None:
        stack: List[FileEntry] = [
            item if isinstance(item, FileEntry) else FileEntry.from_dict(item)
            for item in file_tree
        ]
        stack.reverse()

        while stack:
            entry = stack.pop()
            if entry.is_dir:
                stack.extend(reversed(entry.children))
                continue
            if entry.type != "file":
                logger.debug("Skipping %s (type: %s)", entry.path, entry.type)
                continue
            if not context.parser.should_parse(entry):
                context.skipped += 1
                continue

            try:
                node = context.parser.parse_file(entry)
            except Exception as exc:
                logger.warning("Failed to parse %s: %s", entry.path, exc)
                context.skipped += 1
                continue

            if node is None:
                context.skipped += 1
                continue
            context.register(node)


def analyze(file_tree: TreeInput, settings: Optional[AnalysisSettings] = None) -> ArchitectureAnalysis:
    return ArchitectureAnalyzer(settings).analyze(file_tree)
