"""Unit tests for per-file fact extraction."""

import pytest

from codescope.analyzers.base import ExtractedSymbols, LanguageStrategy
from codescope.analyzers.regex_fallback import JavaScriptRegexStrategy, PythonStrategy
from codescope.analyzers.source_parser import (
    SourceParser,
    calc_complexity,
    detect_security,
    find_variable_usages,
    is_binary,
    is_code,
)
from codescope.models import Complexity, VariableDef


class ExplodingStrategy(LanguageStrategy):
    """Strategy whose every path fails."""

    name = "exploding"
    extensions = (".boom",)

    def fallback_regex(self, content: str, path: str) -> ExtractedSymbols:
        raise RuntimeError("kaboom")


class BrokenTreeStrategy(JavaScriptRegexStrategy):
    """JavaScript strategy whose tree walk crashes on a null node."""

    def try_structured(self, content: str, path: str) -> ExtractedSymbols:
        raise AttributeError("'NoneType' object has no attribute 'type'")


class TestClassification:
    """Tests for extension-based file classification."""

    def test_code_extensions(self) -> None:
        """Test that source files are recognized case-insensitively."""
        assert is_code("App.TSX")
        assert is_code("main.go")
        assert is_code("deploy.sh")

    def test_non_code_files(self) -> None:
        """Test that docs and config files are not code."""
        assert not is_code("README.md")
        assert not is_code("package.json")
        assert not is_code("Makefile")

    def test_binary_extensions(self) -> None:
        """Test binary detection."""
        assert is_binary("logo.PNG")
        assert is_binary("fonts/inter.woff2")
        assert not is_binary("index.js")


class TestComplexity:
    """Tests for the branch-counting complexity score."""

    def test_empty_content_scores_zero(self) -> None:
        """Test that empty content has no complexity at all."""
        assert calc_complexity("") == 0

    def test_straight_line_code_scores_one(self) -> None:
        """Test the base score."""
        assert calc_complexity("const a = 1;\nconsole.log(a);") == 1

    def test_else_if_counted_twice(self) -> None:
        """Test that else-if matches both the if and else-if patterns."""
        content = "if (a) {\n} else if (b) {\n}"

        assert calc_complexity(content) == 4

    def test_logical_operators_and_ternary(self) -> None:
        """Test boolean operators and the ternary pattern."""
        assert calc_complexity("ok = a && b || c;") == 3
        assert calc_complexity("x = ready ? yes : no;") == 2

    def test_loops_and_handlers(self) -> None:
        """Test loops, switch cases and catch blocks."""
        content = """for (const x of xs) {
  while (x) {}
}
switch (v) {
  case 1: break;
  case 2: break;
}
try {} catch (e) {}
"""
        assert calc_complexity(content) == 6

    @pytest.mark.parametrize(
        "snippet",
        [
            "",
            "const a = 1;",
            "function f(x) {\n  return x ? 1 : 2;\n}",
            "for (const x of xs) {\n  if (x && y) {}\n}",
        ],
    )
    def test_adding_branches_never_lowers_score(self, snippet: str) -> None:
        """Test that appending branches keeps the score non-decreasing."""
        scores = [calc_complexity(snippet)]
        content = snippet
        for i in range(5):
            content += f"\nif (v{i} > 0) {{\n  go();\n}}"
            scores.append(calc_complexity(content))

        assert scores == sorted(scores)
        assert scores[-1] > scores[0]

    def test_levels(self) -> None:
        """Test complexity level buckets."""
        assert Complexity.from_score(15).level == "low"
        assert Complexity.from_score(16).level == "medium"
        assert Complexity.from_score(30).level == "medium"
        assert Complexity.from_score(31).level == "high"


class TestSecurity:
    """Tests for heuristic security findings."""

    def test_hardcoded_secret(self) -> None:
        """Test detecting a hardcoded password."""
        issues = detect_security('const password = "hunter2hunter2";', "app.js")

        assert len(issues) == 1
        assert issues[0].title == "Hardcoded Secret"
        assert issues[0].severity == "high"
        assert issues[0].line == 1
        assert issues[0].file == "app.js"

    def test_api_key_scenario(self) -> None:
        """Test a hardcoded API key against one read from the environment."""
        issues = detect_security('const apiKey = "sk_live_abcdef1234567890";', "keys.js")

        assert [(i.title, i.severity) for i in issues] == [("Hardcoded Secret", "high")]
        assert detect_security("const apiKey = process.env.KEY;", "keys.js") == []

    def test_secret_from_environment_is_exempt(self) -> None:
        """Test that values read from the environment are not flagged."""
        content = 'const password = "fallbackpass1" || process.env.PASSWORD;\n'
        content += 'API_KEY = "placeholder-key" if DEBUG else os.getenv("API_KEY")\n'

        assert detect_security(content, "app.js") == []

    def test_short_secret_ignored(self) -> None:
        """Test that values shorter than eight characters are not flagged."""
        assert detect_security('token = "abc"', "a.py") == []

    def test_sql_concatenation(self) -> None:
        """Test detecting SQL built by concatenation or interpolation."""
        content = 'db.query("SELECT * FROM t WHERE id=" + id);\nsql = `DELETE FROM t WHERE id=${id}`;'
        issues = detect_security(content, "db.js")

        assert [i.title for i in issues] == ["SQL Injection Risk", "SQL Injection Risk"]
        assert [i.line for i in issues] == [1, 2]

    def test_xss_is_medium(self) -> None:
        """Test the dangerouslySetInnerHTML rule."""
        issues = detect_security("<div dangerouslySetInnerHTML={{ __html: html }} />", "a.jsx")

        assert len(issues) == 1
        assert issues[0].severity == "medium"
        assert issues[0].title == "XSS Risk"

    def test_dynamic_code_execution(self) -> None:
        """Test eval and new Function."""
        issues = detect_security("eval(code);\nconst f = new Function(body);", "a.js")

        assert [i.title for i in issues] == ["Dynamic Code Execution", "Dynamic Code Execution"]

    def test_one_issue_per_rule_per_line(self) -> None:
        """Test that a line matching two rules yields two issues."""
        issues = detect_security('eval("SELECT * FROM t" + id);', "a.js")

        assert sorted(i.title for i in issues) == ["Dynamic Code Execution", "SQL Injection Risk"]

    def test_code_is_trimmed_line(self) -> None:
        """Test that the issue snippet is the stripped line."""
        issues = detect_security("    eval(x);   ", "a.js")

        assert issues[0].code == "eval(x);"


class TestVariableUsages:
    """Tests for raw identifier usage counting."""

    def test_counts_outside_declaration(self) -> None:
        """Test counting occurrences on every line but the declaration."""
        content = """const total = 1;
console.log(total);
let x = total + total;
function f() { const total = 2; return total; }
const subtotal = totals;"""
        variable = VariableDef(name="total", file="a.js", line=1)

        count, lines = find_variable_usages(content, variable)

        assert count == 3
        assert lines == [2, 3]

    def test_dollar_identifiers_are_distinct(self) -> None:
        """Test that $-prefixed names do not count as the bare name."""
        content = "let value = 1;\nconst $value = value;"
        variable = VariableDef(name="value", file="a.js", line=1)

        assert find_variable_usages(content, variable) == (1, [2])

    def test_empty_name(self) -> None:
        """Test that an empty name never matches."""
        assert find_variable_usages("a b c", VariableDef(name="", file="a.js", line=1)) == (0, [])


class TestSourceParser:
    """Tests for SourceParser dispatch and fallback."""

    @pytest.fixture
    def parser(self) -> SourceParser:
        """Create a parser with the default strategies."""
        return SourceParser()

    def test_strategy_dispatch(self, parser: SourceParser) -> None:
        """Test that strategies are picked by extension."""
        assert parser.strategy_for("src/app.tsx").name == "javascript"
        assert parser.strategy_for("main.go").name == "go"
        assert parser.strategy_for("Program.cs").name == "java"
        assert parser.strategy_for("lib.rs").name == "rust"
        assert parser.strategy_for("App.vue").name == "generic"

    def test_parse_javascript_structured(self, parser: SourceParser, javascript_source: str) -> None:
        """Test that valid JavaScript goes through the syntax tree."""
        parsed = parser.parse(javascript_source, "src/service.js")

        assert parsed.success
        assert parsed.strategy == "structured"
        assert parsed.language == "javascript"
        assert parsed.imports == ["./helper"]
        assert [f.name for f in parsed.functions] == ["constructor", "createUser", "main", "nested", "double"]
        assert parsed.complexity is not None

    def test_parse_python_uses_regex(self, parser: SourceParser, python_source: str) -> None:
        """Test Python extraction."""
        parsed = parser.parse(python_source, "pkg/service.py")

        assert parsed.success
        assert parsed.strategy == "regex"
        assert parsed.language == "python"
        assert parsed.imports == ["os", ".models"]

        by_name = {f.name: f for f in parsed.functions}
        assert set(by_name) == {"create_user", "main", "fetch_all"}
        assert by_name["create_user"].is_top_level is False
        assert by_name["fetch_all"].is_top_level is True

        variables = {v.name: v for v in parsed.variables}
        assert variables["MAX_USERS"].value_type == "number"
        assert variables["NAME"].value_type == "string"
        assert "service" not in variables

    def test_parse_fills_variable_usages(self, parser: SourceParser) -> None:
        """Test that usages are computed for every variable."""
        content = "const limit = 5;\nfunction f() {\n  return limit * 2;\n}\n"

        parsed = parser.parse(content, "a.js")

        limit = next(v for v in parsed.variables if v.name == "limit")
        assert limit.total_usages == 1
        assert limit.usage_lines == [3]

    def test_parse_invalid_javascript_falls_back(self, parser: SourceParser) -> None:
        """Test that syntax errors switch to regex extraction."""
        content = "function alpha(a, b) {\n  return a + b;\n}}\n\nconst beta = (x) => x * 2;\n"

        parsed = parser.parse(content, "broken.js")

        assert parsed.success
        assert parsed.strategy == "regex"
        assert [(f.name, f.type) for f in parsed.functions] == [("alpha", "function"), ("beta", "arrow")]

    def test_parse_collects_security(self, parser: SourceParser) -> None:
        """Test that security findings are attached to the parse result."""
        parsed = parser.parse('const secret = "abcdefghijkl";\n', "config.js")

        assert [i.title for i in parsed.security_issues] == ["Hardcoded Secret"]

    def test_parse_never_raises(self) -> None:
        """Test that an exploding strategy yields a failed result."""
        parser = SourceParser(strategies=[ExplodingStrategy()])

        parsed = parser.parse("anything", "file.boom")

        assert parsed.success is False
        assert parsed.strategy == "none"
        assert parsed.error == "kaboom"
        assert parsed.functions == []
        assert parsed.security_issues == []

    def test_tree_walk_crash_falls_back_to_regex(self) -> None:
        """Test that an unexpected error in the tree walk still yields regex facts."""
        parser = SourceParser(strategies=[BrokenTreeStrategy()])

        parsed = parser.parse("function ok(a) {\n  return a;\n}\n", "src/ok.js")

        assert parsed.success is True
        assert parsed.strategy == "regex"
        assert [f.name for f in parsed.functions] == ["ok"]

    def test_structured_availability(self, parser: SourceParser) -> None:
        """Test parser availability reporting."""
        assert parser.structured_available() is True
        assert SourceParser(strategies=[PythonStrategy()]).structured_available() is False
