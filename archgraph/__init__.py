"""archgraph: repository architecture graphs and diagram layouts."""

from .analyzer import ArchitectureAnalyzer, analyze
from .layout import LayoutEngine
from .models import ArchitectureAnalysis, FileEntry, Flowchart

__version__ = "0.1.0"

__all__ = [
    "ArchitectureAnalysis",
    "ArchitectureAnalyzer",
    "FileEntry",
    "Flowchart",
    "LayoutEngine",
    "analyze",
    "__version__",
]
