"""Import resolution: raw import specifiers to dependency edges."""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Dict, List, Optional, Tuple

from .config import RESOLVABLE_EXTENSIONS
from .models import EXTERNAL_PREFIX, EdgeType, GraphEdge, GraphNode, Language, is_external
from .parser import node_id_for, normalize_path

logger = logging.getLogger(__name__)

_JS_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")
_JS_LANGUAGES = (Language.JAVASCRIPT, Language.TYPESCRIPT)


def strip_extension(path: str, extensions: Tuple[str, ...] = RESOLVABLE_EXTENSIONS) -> str:
    for ext in extensions:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def external_id(specifier: str) -> str:
    return EXTERNAL_PREFIX + re.sub(r"[^a-zA-Z0-9]", "_", specifier)


def _is_relative(specifier: str) -> bool:
    return specifier.startswith(("./", "../")) or specifier in (".", "..")


def _same_family(a: Language, b: Language) -> bool:
    return a == b or (a in _JS_LANGUAGES and b in _JS_LANGUAGES)


def _pick_same_family(candidates: List[GraphNode], importer: GraphNode) -> GraphNode:
    for node in candidates:
        if _same_family(node.language, importer.language):
            return node
    return candidates[0]


class DependencyResolver:
    """Resolves imports against the complete node set of one analysis run.

    Construct it only once every node is registered: bare-specifier matching
    scans the whole set.  Nodes are visited in id order so the first match
    never depends on the order files arrived in.
    """

    def __init__(self, nodes: Dict[str, GraphNode]) -> None:
        self._nodes: Dict[str, GraphNode] = dict(sorted(nodes.items()))
        self._by_stem: Dict[str, List[GraphNode]] = {}
        self._python_paths: List[Tuple[str, List[str]]] = []
        self._js_names: List[Tuple[str, str]] = []

        for node_id, node in self._nodes.items():
            self._by_stem.setdefault(strip_extension(node.file_path), []).append(node)
            if node.language == Language.PYTHON:
                parts = strip_extension(node.file_path, (".py",)).split("/")
                self._python_paths.append((node_id, parts))
            elif node.language in _JS_LANGUAGES:
                filename = posixpath.basename(node.file_path)
                self._js_names.append((node_id, strip_extension(filename, _JS_EXTENSIONS)))

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def _lookup_path(self, path: str, importer: GraphNode) -> str:
        """Return the node id for a path without extension.

        When several files share the stem (``foo.ts`` next to ``foo.py``),
        one in the importer's language family wins; otherwise the smallest id.
        Falls back to the id the path would have, which is not a
        registered node and therefore produces no edge.
        """
        stem = strip_extension(normalize_path(path))
        for candidate in (stem, f"{stem}/index", f"{stem}/__init__"):
            nodes = self._by_stem.get(candidate)
            if nodes:
                return _pick_same_family(nodes, importer).id
        return node_id_for(stem)

    def _match_python(self, specifier: str) -> Optional[str]:
        wanted = specifier.split(".")
        size = len(wanted)

        for node_id, parts in self._python_paths:
            if size <= len(parts) and parts[len(parts) - size:] == wanted:
                return node_id

        for node_id, parts in self._python_paths:
            for start in range(len(parts) - size + 1):
                if parts[start:start + size] == wanted:
                    return node_id
        return None

    def _match_js_filename(self, specifier: str) -> Optional[str]:
        for node_id, name in self._js_names:
            if name == specifier:
                return node_id
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, specifier: str, importer: GraphNode) -> str:
        """Map one import of *importer* to a node id or an ``external_*`` id."""
        base_dir = posixpath.dirname(importer.file_path)

        if _is_relative(specifier):
            return self._lookup_path(posixpath.join(base_dir, specifier), importer)

        if importer.language == Language.PYTHON and specifier.startswith("."):
            rest = specifier.lstrip(".")
            for _ in range(len(specifier) - len(rest) - 1):
                base_dir = posixpath.dirname(base_dir)
            target = posixpath.join(base_dir, rest.replace(".", "/")) if rest else base_dir
            return self._lookup_path(target, importer)

        if specifier.startswith("/"):
            return self._lookup_path(specifier, importer)

        matched: Optional[str] = None
        if importer.language == Language.PYTHON:
            if "." in specifier:
                matched = self._match_python(specifier)
        elif importer.language in _JS_LANGUAGES:
            if "." not in specifier and "/" not in specifier:
                matched = self._match_js_filename(specifier)

        return matched if matched is not None else external_id(specifier)

    def resolve_all(self) -> List[GraphEdge]:
        """Fill ``dependencies``/``dependents`` on every node and return edges.

        Repeated imports of the same target from one file raise the edge's
        strength instead of adding a second edge.
        """
        edges: Dict[Tuple[str, str], GraphEdge] = {}

        for node in self._nodes.values():
            node.dependents = []

        for node in self._nodes.values():
            dependencies: List[str] = []
            for specifier in node.imports:
                target = self.resolve(specifier, node)
                if target not in self._nodes and not is_external(target):
                    logger.debug("Unresolved import '%s' in %s", specifier, node.file_path)
                    continue
                key = (node.id, target)
                if key in edges:
                    edges[key].strength += 1
                    continue
                edges[key] = GraphEdge(source=node.id, target=target, type=EdgeType.IMPORT)
                dependencies.append(target)
            node.dependencies = dependencies

        for edge in edges.values():
            if edge.target in self._nodes:
                self._nodes[edge.target].dependents.append(edge.source)

        logger.debug("Resolved %d edges across %d nodes", len(edges), len(self._nodes))
        return list(edges.values())
