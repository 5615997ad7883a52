"""Unit tests for regular-expression extraction."""

from codescope.analyzers.regex_fallback import (
    CStrategy,
    GenericStrategy,
    GoStrategy,
    JavaScriptRegexStrategy,
    JavaStrategy,
    PhpStrategy,
    PythonStrategy,
    RubyStrategy,
    RustStrategy,
    infer_python_value_type,
)


class TestPythonStrategy:
    """Tests for Python extraction."""

    def test_functions(self) -> None:
        """Test def and async def with indentation-based nesting."""
        content = """class Service:
    def method(self):
        pass


async def run():
    pass
"""
        functions = PythonStrategy().fallback_regex(content, "svc.py").functions

        assert [(f.name, f.line, f.is_top_level) for f in functions] == [
            ("method", 2, False),
            ("run", 6, True),
        ]

    def test_imports(self) -> None:
        """Test import and from-import targets."""
        content = "import os\nfrom ..core.models import User\nimport os\n"

        assert PythonStrategy().extract_imports(content) == ["os", "..core.models"]

    def test_module_variables(self) -> None:
        """Test that only unindented assignments are variables."""
        content = 'TIMEOUT: int = 30\nname = "x"\nif name == "y":\n    inner = 1\n'
        variables = PythonStrategy().extract_variables_regex(content, "a.py")

        assert [(v.name, v.value_type) for v in variables] == [("TIMEOUT", "number"), ("name", "string")]

    def test_value_type_inference(self) -> None:
        """Test value type guesses from initializer text."""
        assert infer_python_value_type('"x"') == "string"
        assert infer_python_value_type("f'{x}'") == "string"
        assert infer_python_value_type("True") == "boolean"
        assert infer_python_value_type("None") == "undefined"
        assert infer_python_value_type("-3.5") == "number"
        assert infer_python_value_type("[1, 2]") == "array"
        assert infer_python_value_type("{}") == "object"
        assert infer_python_value_type("lambda x: x") == "function"
        assert infer_python_value_type("Session()") == "instance"
        assert infer_python_value_type("load_config()") == "call"
        assert infer_python_value_type("other") is None
        assert infer_python_value_type("") is None


class TestOtherLanguages:
    """Tests for the single-pattern strategies."""

    def test_go(self) -> None:
        """Test Go functions, methods and imports."""
        content = 'package main\n\nimport "fmt"\nimport (\n\t"os"\n\tstr "strings"\n)\n\nfunc (s *Server) Start() {\n}\n\nfunc main() {\n}\n'
        strategy = GoStrategy()

        functions = strategy.fallback_regex(content, "main.go").functions
        assert [f.name for f in functions] == ["Start", "main"]
        assert all(f.is_top_level for f in functions)
        assert strategy.extract_imports(content) == ["fmt", "os", "strings"]

    def test_java(self) -> None:
        """Test Java methods and control-flow false positives."""
        content = """public class Job {
    public void run(String name) {
        if (name != null) {
        }
        else if (ready) {
        }
    }
}
"""
        functions = JavaStrategy().fallback_regex(content, "Job.java").functions

        assert [f.name for f in functions] == ["run"]
        assert functions[0].type == "method"

    def test_rust(self) -> None:
        """Test Rust fn declarations."""
        content = "pub fn new() -> Self {\n    Self {}\n}\n\nimpl Store {\n    pub(crate) async fn load(&self) {}\n}\n"
        functions = RustStrategy().fallback_regex(content, "lib.rs").functions

        assert [(f.name, f.is_top_level) for f in functions] == [("new", True), ("load", False)]

    def test_ruby(self) -> None:
        """Test Ruby singleton and predicate methods."""
        content = "class User\n  def self.call\n  end\n\n  def valid?\n  end\nend\n"
        functions = RubyStrategy().fallback_regex(content, "user.rb").functions

        assert [f.name for f in functions] == ["call", "valid?"]

    def test_php(self) -> None:
        """Test PHP functions with modifiers."""
        content = "<?php\nclass A {\n    public static function make() {}\n}\nfunction helper() {}\n"
        functions = PhpStrategy().fallback_regex(content, "a.php").functions

        assert [(f.name, f.is_top_level) for f in functions] == [("make", False), ("helper", True)]

    def test_c(self) -> None:
        """Test C function definitions."""
        content = "#include <stdio.h>\n\nint main(void) {\n    return 0;\n}\n"
        functions = CStrategy().fallback_regex(content, "main.c").functions

        assert [f.name for f in functions] == ["main"]
        assert functions[0].is_top_level

    def test_generic_only_variables(self) -> None:
        """Test that unknown languages only yield const/let/var variables."""
        symbols = GenericStrategy().fallback_regex("<script>\nconst a = 1;\n</script>\n", "App.vue")

        assert symbols.functions == []
        assert [(v.name, v.kind, v.line) for v in symbols.variables] == [("a", "const", 2)]


class TestJavaScriptRegex:
    """Tests for the JavaScript regex fallback."""

    def test_function_shapes(self) -> None:
        """Test declarations, function expressions and arrows."""
        content = """function one() {}
const two = async (a, b) => a + b;
let three = function () {};
var four = x => x;
  function five() {}
"""
        functions = JavaScriptRegexStrategy().fallback_regex(content, "a.js").functions

        assert [(f.name, f.type, f.is_top_level) for f in functions] == [
            ("one", "function", True),
            ("two", "arrow", True),
            ("three", "function", True),
            ("four", "arrow", True),
            ("five", "function", False),
        ]

    def test_snippet_runs_ten_lines_past_declaration(self) -> None:
        """Test the fallback snippet window."""
        content = "function f() {\n" + "\n".join(f"  step{i}();" for i in range(20)) + "\n}\n"
        functions = JavaScriptRegexStrategy().fallback_regex(content, "a.js").functions

        assert functions[0].code.count("\n") == 10
