"""Tests for node filters and focused subgraphs."""

import pytest

from archgraph import analyze
from archgraph.models import Language, NodeType
from archgraph.query import filter_nodes, focused_subgraph


@pytest.fixture
def analysis(make_tree):
    return analyze(make_tree({
        "web/app.ts": "import { get } from './api/client';\n",
        "web/api/client.ts": "export function get() {}\n",
        "server/db.py": "import sqlite3\n",
        "server/main.py": "from server.db import connect\n",
    }))


class TestFilterNodes:
    def test_by_folder(self, analysis):
        """Test filtering by folder."""
        ids = [n.id for n in filter_nodes(analysis, folder="server/")]
        assert ids == ["server_db_py", "server_main_py"]

    def test_folder_is_a_path_prefix(self, analysis):
        """Test that folder matching uses whole path segments."""
        assert filter_nodes(analysis, folder="serv") == []

    def test_by_language(self, analysis):
        """Test filtering by language."""
        assert [n.id for n in filter_nodes(analysis, language="python")] == [
            "server_db_py",
            "server_main_py",
        ]
        assert len(filter_nodes(analysis, language=Language.TYPESCRIPT)) == 2

    def test_by_type(self, analysis):
        """Test filtering by node type."""
        nodes = filter_nodes(analysis, folder="web", node_type=NodeType.SERVICE)
        assert [n.id for n in nodes] == ["web_api_client_ts"]

    def test_no_filters(self, analysis):
        """Test that no filters keep every node."""
        assert filter_nodes(analysis) == analysis.nodes


class TestFocusedSubgraph:
    def test_focus_and_neighbours(self, analysis):
        """Test a focused subgraph."""
        sub = focused_subgraph(analysis, "db.py")

        assert sub["nodes"] == ["server_db_py", "server_main_py"]
        assert {(e.source, e.target) for e in sub["edges"]} == {
            ("server_db_py", "external_sqlite3"),
            ("server_main_py", "server_db_py"),
        }

    def test_external_neighbours_are_not_nodes(self, analysis):
        """Test that externals stay edge targets only."""
        sub = focused_subgraph(analysis, "server_db")
        assert "external_sqlite3" not in sub["nodes"]

    def test_empty_focus_is_whole_graph(self, analysis):
        """Test an empty focus."""
        sub = focused_subgraph(analysis, "")
        assert sub["nodes"] == [n.id for n in analysis.nodes]
        assert sub["edges"] == analysis.edges
