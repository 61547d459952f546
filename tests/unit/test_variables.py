"""Tests for configuration variables.

Tests:
- parse_template grammar and error messages
- VariableResolver dependency ordering
- Recursive, unresolved and cyclic variables
"""

import pytest

from ontosql.config.variables import VariableResolver, is_valid_name, parse_template
from ontosql.errors import (
    RecursiveVariableError,
    UnresolvedVariableError,
    VariableCycleError,
    VariableSyntaxError,
)


# =============================================================================
# Template Tests
# =============================================================================


class TestParseTemplate:
    """Tests for the ``$$`` / ``${name}`` grammar."""

    def test_plain_text(self):
        """Test that text without dollars is a single literal."""
        template = parse_template("hello world")
        assert template.dependencies == []
        assert template.render({}) == "hello world"

    def test_empty_string(self):
        """Test that the empty string renders to itself."""
        assert parse_template("").render({}) == ""

    def test_escaped_dollar(self):
        """Test that $$ renders as a single dollar."""
        assert parse_template("costs $$5").render({}) == "costs $5"

    def test_references(self):
        """Test references in order of first appearance."""
        template = parse_template("${root}/x/${name}/${root}")
        assert template.dependencies == ["root", "name"]
        assert template.render({"root": "/r", "name": "n"}) == "/r/x/n//r"

    def test_dollar_without_brace(self):
        """Test that a lone dollar is a syntax error."""
        with pytest.raises(VariableSyntaxError, match="Expecting '\\{' after the dollar sign"):
            parse_template("a $b")

    def test_trailing_dollar(self):
        """Test that a dollar at the end is a syntax error."""
        with pytest.raises(VariableSyntaxError):
            parse_template("abc$")

    def test_unterminated_reference(self):
        """Test that ${ without } is a syntax error."""
        with pytest.raises(VariableSyntaxError, match="not followed by"):
            parse_template("${root")

    def test_empty_reference(self):
        """Test that ${} is a syntax error."""
        with pytest.raises(VariableSyntaxError, match="Empty variable name"):
            parse_template("${}")

    def test_invalid_name(self):
        """Test that names outside [0-9a-zA-Z_.-] are rejected."""
        with pytest.raises(VariableSyntaxError, match="Invalid variable name 'a b'"):
            parse_template("${a b}")

    def test_render_unknown_reference(self):
        """Test that rendering an unknown name raises."""
        with pytest.raises(UnresolvedVariableError) as exc_info:
            parse_template("${missing}").render({})
        assert exc_info.value.variable == "missing"

    def test_valid_names(self):
        """Test the name character set."""
        assert is_valid_name("data.dir-2_x")
        assert not is_valid_name("")
        assert not is_valid_name("a/b")


# =============================================================================
# Resolver Tests
# =============================================================================


class TestVariableResolver:
    """Tests for VariableResolver."""

    def test_independent_variables(self):
        """Test variables without references."""
        resolver = VariableResolver({"a": "1", "b": "2"})
        assert dict(resolver.values) == {"a": "1", "b": "2"}
        assert len(resolver) == 2
        assert "a" in resolver

    def test_chained_variables(self):
        """Test that dependencies resolve regardless of declaration order."""
        resolver = VariableResolver(
            {"db": "${dir}/onto.db", "dir": "${root}/data", "root": "/srv"}
        )
        assert resolver.values["db"] == "/srv/data/onto.db"
        assert resolver.resolve("sqlite:${db}") == "sqlite:/srv/data/onto.db"

    def test_values_are_immutable(self):
        """Test that the resolved table cannot be modified."""
        resolver = VariableResolver({"a": "1"})
        with pytest.raises(TypeError):
            resolver.values["a"] = "2"

    def test_recursive_variable(self):
        """Test that a self reference is reported on the variable."""
        with pytest.raises(RecursiveVariableError) as exc_info:
            VariableResolver({"a": "x${a}"})
        assert exc_info.value.variable == "a"
        assert str(exc_info.value) == "variables.a: Variable is recursive"

    def test_unresolved_reference(self):
        """Test that a reference to an undeclared name is reported."""
        with pytest.raises(UnresolvedVariableError) as exc_info:
            VariableResolver({"a": "${nope}"})
        assert exc_info.value.variable == "nope"
        assert exc_info.value.path == ("variables", "a")

    def test_two_cycle(self):
        """Test that a two-variable cycle names both variables."""
        with pytest.raises(VariableCycleError) as exc_info:
            VariableResolver({"a": "${b}", "b": "${a}"})
        assert exc_info.value.cycle == ["a", "b"]
        assert str(exc_info.value) == "variables: Cyclic variable dependency detected: a > b"

    def test_cycle_behind_tail(self):
        """Test that variables leading into a cycle are not part of it."""
        with pytest.raises(VariableCycleError) as exc_info:
            VariableResolver({"a": "${b}", "b": "${c}", "c": "${d}", "d": "${b}", "e": "ok"})
        assert exc_info.value.cycle == ["b", "c", "d"]

    def test_syntax_error_has_path(self):
        """Test that malformed values carry the variable path."""
        with pytest.raises(VariableSyntaxError) as exc_info:
            VariableResolver({"bad": "$x"})
        assert exc_info.value.path == ("variables", "bad")

    def test_invalid_variable_name(self):
        """Test that declared names must be valid."""
        with pytest.raises(VariableSyntaxError):
            VariableResolver({"a b": "1"})

    def test_resolve_unknown(self):
        """Test resolve() with an undefined reference."""
        resolver = VariableResolver({"a": "1"})
        with pytest.raises(UnresolvedVariableError):
            resolver.resolve("${b}")
