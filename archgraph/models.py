"""Core data models shared by parsing, resolution, and layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Language(str, Enum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    RUST = "rust"
    UNKNOWN = "unknown"


class NodeType(str, Enum):
    COMPONENT = "component"
    SERVICE = "service"
    UTILITY = "utility"
    API = "api"
    DATABASE = "database"
    CONFIG = "config"
    HOOK = "hook"
    MODULE = "module"
    TEST = "test"


class EdgeType(str, Enum):
    IMPORT = "import"
    EXPORT = "export"
    CALL = "call"
    DEPENDENCY = "dependency"
    INHERITANCE = "inheritance"


class Layer(str, Enum):
    """Architectural layers, in top-to-bottom display order."""

    ENTRY = "entry"
    PRESENTATION = "presentation"
    BUSINESS = "business"
    DATA = "data"
    INFRASTRUCTURE = "infrastructure"

    @property
    def position(self) -> int:
        return list(Layer).index(self)


class FlowchartNodeType(str, Enum):
    ENTRY = "entry"
    COMPONENT = "component"
    SERVICE = "service"
    DATABASE = "database"
    EXTERNAL = "external"
    CONFIG = "config"
    API = "api"
    HOOK = "hook"
    UTIL = "util"
    TEST = "test"


EXTERNAL_PREFIX = "external_"


def is_external(node_id: str) -> bool:
    return node_id.startswith(EXTERNAL_PREFIX)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass
class FileEntry:
    """One entry of the nested file tree handed to the analyzer."""

    name: str
    path: str
    type: str = "file"
    size: Optional[int] = None
    content: Optional[str] = None
    relevant: Optional[bool] = None
    children: List["FileEntry"] = field(default_factory=list)

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileEntry":
        return cls(
            name=data.get("name") or data.get("path", "").rsplit("/", 1)[-1],
            path=data.get("path", ""),
            type=data.get("type", "file"),
            size=data.get("size"),
            content=data.get("content"),
            relevant=data.get("relevant"),
            children=[cls.from_dict(c) for c in data.get("children") or []],
        )


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------

@dataclass
class NodeMetadata:
    is_entry: bool = False
    is_async: bool = False
    has_error_handling: bool = False
    patterns: List[str] = field(default_factory=list)


@dataclass
class GraphNode:
    id: str
    name: str
    type: NodeType
    file_path: str
    language: Language
    lines_of_code: int
    complexity: int
    start_line: int = 1
    end_line: int = 1
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    metadata: NodeMetadata = field(default_factory=NodeMetadata)


@dataclass
class GraphEdge:
    source: str
    target: str
    type: EdgeType = EdgeType.IMPORT
    strength: int = 1


@dataclass
class LayerAssignment:
    entry: List[str] = field(default_factory=list)
    presentation: List[str] = field(default_factory=list)
    business: List[str] = field(default_factory=list)
    data: List[str] = field(default_factory=list)
    infrastructure: List[str] = field(default_factory=list)

    def members(self, layer: Layer) -> List[str]:
        return getattr(self, layer.value)

    def layer_of(self, node_id: str) -> Optional[Layer]:
        for layer in Layer:
            if node_id in self.members(layer):
                return layer
        return None

    def as_dict(self) -> Dict[str, List[str]]:
        return {layer.value: list(self.members(layer)) for layer in Layer}


@dataclass
class Metrics:
    total_files: int = 0
    total_lines: int = 0
    average_complexity: float = 0.0
    coupling: float = 0.0
    cohesion: float = 0.0


@dataclass
class ArchitectureAnalysis:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    layers: LayerAssignment = field(default_factory=LayerAssignment)
    metrics: Metrics = field(default_factory=Metrics)

    def node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


# ---------------------------------------------------------------------------
# Flowchart
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass
class FlowchartNode:
    id: str
    label: str
    type: FlowchartNodeType
    x: float
    y: float
    width: float
    height: float
    layer_index: int
    level: int = 1
    importance: float = 1.0
    file_path: str = ""
    complexity: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class FlowchartConnection:
    source: str
    target: str
    type: EdgeType
    strength: int = 1
    path: Optional[List[Point]] = None


@dataclass
class LayerBand:
    y: float
    height: float


@dataclass
class FlowchartMetrics:
    total_nodes: int = 0
    total_connections: int = 0
    average_complexity: float = 0.0
    coupling: float = 0.0
    cohesion: float = 0.0


@dataclass
class Flowchart:
    nodes: List[FlowchartNode] = field(default_factory=list)
    connections: List[FlowchartConnection] = field(default_factory=list)
    layers: Dict[str, LayerBand] = field(default_factory=dict)
    metrics: FlowchartMetrics = field(default_factory=FlowchartMetrics)
