"""Unit tests for dependency graph construction."""

import random
from collections.abc import Callable

import pytest

from codescope.analyzers.base import CallInfo
from codescope.analyzers.graph_builder import GraphBuilder, PathIndex, ResolutionContext, SymbolTable
from codescope.models import Connection, FileRecord, FunctionDef

MakeRecord = Callable[[str, str], FileRecord]


def edge_keys(connections: list[Connection]) -> set[tuple[str, str, str]]:
    return {c.key for c in connections}


class TestPathIndex:
    """Tests for raw import resolution."""

    @pytest.fixture
    def index(self) -> PathIndex:
        """Create an index over a small mixed repository."""
        return PathIndex(
            [
                "src/utils/format.js",
                "src/components/Button/index.tsx",
                "src/api/client.ts",
                "pkg/core/models.py",
                "pkg/core/__init__.py",
                "pkg/app.py",
                "README.md",
            ]
        )

    def test_relative_with_extension_inferred(self, index: PathIndex) -> None:
        """Test ./ and ../ imports without an extension."""
        assert index.resolve("../utils/format", "src/api/client.ts") == "src/utils/format.js"
        assert index.resolve("./client", "src/api/other.ts") == "src/api/client.ts"

    def test_relative_directory_index(self, index: PathIndex) -> None:
        """Test that a directory import resolves to its index file."""
        assert index.resolve("../components/Button", "src/api/client.ts") == "src/components/Button/index.tsx"

    def test_relative_escaping_root(self, index: PathIndex) -> None:
        """Test that paths leaving the repository are dropped."""
        assert index.resolve("../../../outside", "src/api/client.ts") is None

    def test_alias_prefix(self, index: PathIndex) -> None:
        """Test @/ and ~/ root aliases."""
        assert index.resolve("@/api/client", "src/components/Button/index.tsx") == "src/api/client.ts"
        assert index.resolve("~/utils/format", "src/api/client.ts") == "src/utils/format.js"

    def test_python_dotted_module(self, index: PathIndex) -> None:
        """Test absolute dotted module names."""
        assert index.resolve("pkg.core.models", "pkg/app.py") == "pkg/core/models.py"
        assert index.resolve("pkg.core", "pkg/app.py") == "pkg/core/__init__.py"

    def test_python_relative_module(self, index: PathIndex) -> None:
        """Test leading-dot module names."""
        assert index.resolve(".core.models", "pkg/app.py") == "pkg/core/models.py"
        assert index.resolve("..app", "pkg/core/models.py") == "pkg/app.py"
        assert index.resolve(".", "pkg/core/models.py") == "pkg/core/__init__.py"

    def test_segment_aware_suffix(self, index: PathIndex) -> None:
        """Test that partial segment names do not match."""
        assert index.resolve("ormat", "pkg/app.py") is None
        assert index.resolve("utils/format", "pkg/app.py") == "src/utils/format.js"

    def test_external_package(self, index: PathIndex) -> None:
        """Test that third-party packages stay unresolved."""
        assert index.resolve("react", "src/api/client.ts") is None
        assert index.resolve("", "src/api/client.ts") is None

    def test_first_match_in_sorted_order(self) -> None:
        """Test that ambiguous imports resolve deterministically."""
        index = PathIndex(["b/util.js", "a/util.js"])

        assert index.resolve("util", "main.js") == "a/util.js"


class TestResolutionContext:
    """Tests for edge accumulation."""

    def test_import_edges_are_deduplicated(self) -> None:
        """Test that one import edge exists per file pair."""
        context = ResolutionContext()
        context.add_import("a.js", "b.js")
        context.add_import("a.js", "b.js")

        [edge] = context.connections()
        assert edge.count == 1
        assert edge.is_import

    def test_call_edges_accumulate(self) -> None:
        """Test that repeated call batches add up on one edge."""
        info = CallInfo()
        info.add(3)
        info.add(7)
        context = ResolutionContext()
        context.add_calls("lib.js", "app.js", "run", info)
        context.add_calls("lib.js", "app.js", "run", info)

        [edge] = context.connections()
        assert edge.count == 4
        assert edge.lines == [3, 7, 3, 7]


class TestSymbolTable:
    """Tests for the global function registry."""

    def test_duplicate_names_kept(self) -> None:
        """Test that each definition of a name is tracked."""
        a = FileRecord.from_path("a.js")
        a.functions = [FunctionDef(name="render", file="a.js", line=1)]
        b = FileRecord.from_path("b.js")
        b.functions = [FunctionDef(name="render", file="b.js", line=4)]

        table = SymbolTable.from_files([b, a])

        assert [d.file for d in table.lookup("render")] == ["a.js", "b.js"]
        assert table.known_names == frozenset({"render"})
        assert table.lookup("missing") == ()


class TestGraphBuilder:
    """Tests for GraphBuilder."""

    @pytest.fixture
    def files(self, make_record: MakeRecord) -> list[FileRecord]:
        """Create a small repository with imports and calls."""
        return [
            make_record("src/lib.js", "export function helper() {\n  return 1;\n}\n\nexport function unused() {}\n"),
            make_record(
                "src/app.js",
                'import { helper } from "./lib";\n\nfunction main() {\n  helper();\n  helper();\n  local();\n}\n\nfunction local() {}\n',
            ),
            make_record("src/other.js", 'import { helper } from "./lib";\nhelper();\n'),
            FileRecord.from_path("README.md"),
        ]

    def test_edge_direction(self, files: list[FileRecord]) -> None:
        """Test import edges point at the imported file and call edges at the caller."""
        connections = GraphBuilder().build(files)

        assert edge_keys(connections) == {
            ("src/app.js", "src/lib.js", "import"),
            ("src/other.js", "src/lib.js", "import"),
            ("src/lib.js", "src/app.js", "helper"),
            ("src/lib.js", "src/other.js", "helper"),
        }

    def test_call_counts_and_lines(self, files: list[FileRecord]) -> None:
        """Test edge weights and line lists."""
        connections = GraphBuilder().build(files)
        edge = next(c for c in connections if c.key == ("src/lib.js", "src/app.js", "helper"))

        assert edge.count == 2
        assert edge.lines == [4, 5]

    def test_call_sites_backfilled(self, files: list[FileRecord]) -> None:
        """Test that definitions learn their call sites."""
        GraphBuilder().build(files)
        helper = files[0].functions[0]

        assert helper.total_calls == 3
        assert {(s.file, s.line) for s in helper.call_sites} == {
            ("src/app.js", 4),
            ("src/app.js", 5),
            ("src/other.js", 2),
        }
        assert {s.caller for s in helper.call_sites} == {"main", None}

    def test_same_file_calls_create_no_edge(self, files: list[FileRecord]) -> None:
        """Test that calling a local function only updates bookkeeping."""
        connections = GraphBuilder().build(files)
        local = next(f for f in files[1].functions if f.name == "local")

        assert local.total_calls == 1
        assert not any(c.fn == "local" for c in connections)

    def test_unanalyzed_files_contribute_nothing(self, files: list[FileRecord]) -> None:
        """Test that metadata-only records are skipped."""
        connections = GraphBuilder().build(files)

        assert all("README.md" not in (c.source, c.target) for c in connections)

    def test_duplicate_definitions_each_get_an_edge(self, make_record: MakeRecord) -> None:
        """Test that a call links to every file defining the name."""
        files = [
            make_record("a.js", "function render() {}\n"),
            make_record("b.js", "function render() {}\n"),
            make_record("main.js", "render();\n"),
        ]

        connections = GraphBuilder().build(files)

        assert edge_keys(connections) == {("a.js", "main.js", "render"), ("b.js", "main.js", "render")}

    def test_order_independent(self, files: list[FileRecord]) -> None:
        """Test that input order does not change the output."""
        expected = [c.to_dict() for c in GraphBuilder().build(files)]
        shuffled = list(files)
        random.Random(7).shuffle(shuffled)

        assert [c.to_dict() for c in GraphBuilder().build(shuffled)] == expected

    def test_idempotent(self, files: list[FileRecord]) -> None:
        """Test that rebuilding resets call aggregation."""
        builder = GraphBuilder()
        first = [c.to_dict() for c in builder.build(files)]
        second = [c.to_dict() for c in builder.build(files)]

        assert first == second
        assert files[0].functions[0].total_calls == 3

    def test_self_import_dropped(self, make_record: MakeRecord) -> None:
        """Test that a file importing itself creates no edge."""
        files = [make_record("src/index.js", 'import x from "./index";\n')]

        assert GraphBuilder().build(files) == []

    def test_progress_per_file(self, files: list[FileRecord]) -> None:
        """Test building progress notifications."""
        events: list[tuple[str, str | None]] = []

        GraphBuilder().build(files, on_progress=lambda phase, path: events.append((phase, path)))

        assert events == [
            ("building", "src/app.js"),
            ("building", "src/lib.js"),
            ("building", "src/other.js"),
        ]
