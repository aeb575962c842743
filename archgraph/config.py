"""Static configuration: file relevance tables and local settings paths."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, FrozenSet, Set, Tuple

BASE_DIR = Path(os.environ.get("ARCHGRAPH_HOME", str(Path.home() / ".archgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Files above this many bytes are never parsed.
MAX_FILE_SIZE = 100_000

LANGUAGE_EXTENSIONS: Dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "py": "python",
    "java": "java",
    "go": "go",
    "rs": "rust",
}

RELEVANT_EXTENSIONS: Tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".py", ".java", ".go", ".rs",
    ".json", ".html", ".css", ".scss",
)

IMPORTANT_FILES: FrozenSet[str] = frozenset({
    "package.json", "tsconfig.json", "jest.config.js", "webpack.config.js",
    "vite.config.js", "next.config.js", "nuxt.config.js", "tailwind.config.js",
})

IRRELEVANT_PATTERNS: Tuple[str, ...] = (
    "node_modules", ".git", "dist", "build", "coverage",
    ".min.", ".bundle.", "vendor/",
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
)

# Extensions stripped from import specifiers before lookup.
RESOLVABLE_EXTENSIONS: Tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js", ".py")

# Parent directories too generic to prefix a node name with.
GENERIC_DIRS: FrozenSet[str] = frozenset({"src", "lib", "components", "utils"})

SKIP_DIRS: Set[str] = {
    ".venv", "venv", "__pycache__", "node_modules", ".git",
    "site-packages", ".tox", ".pytest_cache", "build", "dist",
    ".mypy_cache", ".ruff_cache", "htmlcov", ".eggs", "coverage",
}
