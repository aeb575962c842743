"""Pytest configuration and fixtures for archgraph tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List

import pytest

from archgraph.models import FileEntry
from archgraph.parser import SourceParser


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture(scope="session")
def source_parser() -> SourceParser:
    return SourceParser()


@pytest.fixture
def make_tree() -> Callable[[Dict[str, str]], List[FileEntry]]:
    """Build a flat file tree from a ``{path: content}`` mapping."""

    def _make(files: Dict[str, str]) -> List[FileEntry]:
        return [
            FileEntry(
                name=path.rsplit("/", 1)[-1],
                path=path,
                size=len(content.encode("utf-8")),
                content=content,
            )
            for path, content in files.items()
        ]

    return _make


@pytest.fixture
def sample_python_code() -> str:
    """Sample Python module exercising every regex the parser uses."""
    return '''"""Sample module for testing."""
import os, sys as system
from mypkg.util import helper
from . import sibling
from ..core import db


def top():
    pass


async def fetch():
    try:
        return await helper()
    except ValueError:
        return None


class Thing:
    def method(self):
        pass
'''
