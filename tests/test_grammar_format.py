"""
Tests for reading grammars from their text form.

Run with: pytest tests/test_grammar_format.py -v
"""

from pathlib import Path

import pytest

from scfg.errors import ConfigurationError
from scfg.grammar import Rule
from scfg.grammar_format import load_grammar, parse_grammar

GRAMMARS = Path(__file__).parent.parent / "grammars"


class TestParseGrammar:
    """Test the heading / list-item parser."""

    def test_first_heading_is_root(self):
        """Test that the first heading becomes the root."""
        grammar = parse_grammar(
            "== <root> ==\n"
            "* <verb> the bread / DO(<verb>)\n"
            "== <verb> ==\n"
            "* take / GET\n"
        )

        assert grammar.root == "<root>"
        assert grammar.rules_for("<root>") == (Rule("<verb> the bread", "DO(<verb>)"),)
        assert grammar.rules_for("<verb>") == (Rule("take", "GET"),)

    def test_comments_and_blank_lines(self):
        """Test that comments are stripped and blank lines skipped."""
        grammar = parse_grammar(
            "# a comment line\n"
            "\n"
            "== <root> ==   # trailing comment\n"
            "* a / b  # note\n"
        )

        assert grammar.rules_for("<root>") == (Rule("a", "b"),)

    def test_windows_line_endings(self):
        """Test that CRLF line endings are accepted."""
        grammar = parse_grammar("== <root> ==\r\n* a / b\r\n* c / d\r\n")

        assert grammar.rules_for("<root>") == (Rule("a", "b"), Rule("c", "d"))

    def test_variables_section(self):
        """Test that @Variables entries are regexes, not productions."""
        grammar = load_grammar(GRAMMARS / "symbols.txt")

        assert grammar.leaf_variable_regexps() == {"<number>": r"\d+"}
        assert grammar.nonterminals() == ("<root>",)
        assert Rule("\\<number>", "BACKSLASH(<number>)") in grammar.rules_for("<root>")

    def test_variables_section_is_never_root(self):
        """Test that a leading @Variables heading does not become the root."""
        grammar = parse_grammar(
            "== @Variables ==\n"
            "* <n> / \\d+\n"
            "== <root> ==\n"
            "* <n> / N(<n>)\n"
        )

        assert grammar.root == "<root>"
        assert grammar.leaf_variable_regexps() == {"<n>": "\\d+"}

    def test_split_on_first_separator(self):
        """Test that a target may itself contain a slash."""
        grammar = parse_grammar("== <root> ==\n* a / b / c\n")

        assert grammar.rules_for("<root>") == (Rule("a", "b / c"),)

    def test_ignored_lines(self):
        """Test that items without separator and text outside items are skipped."""
        grammar = parse_grammar(
            "* orphan / item\n"
            "== <root> ==\n"
            "some prose\n"
            "* no separator here\n"
            "* a / b\n"
        )

        assert grammar.rules_for("<root>") == (Rule("a", "b"),)

    def test_no_heading(self):
        """Test that a text without headings is rejected."""
        with pytest.raises(ConfigurationError):
            parse_grammar("* a / b\n")

    def test_root_heading_without_rules(self):
        """Test that a root with no productions is rejected."""
        with pytest.raises(ConfigurationError):
            parse_grammar("== <root> ==\n== <verb> ==\n* take / GET\n")


class TestLoadGrammar:
    """Test loading grammar files."""

    def test_load_from_path(self, tmp_path):
        """Test reading a UTF-8 grammar file."""
        path = tmp_path / "greetings.txt"
        path.write_text("== <root> ==\n* שלום / hello\n", encoding="utf-8")

        grammar = load_grammar(str(path))

        assert grammar.rules_for("<root>") == (Rule("שלום", "hello"),)

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises an OSError."""
        with pytest.raises(OSError):
            load_grammar(tmp_path / "missing.txt")

    def test_bundled_grammars(self):
        """Test that every bundled grammar parses."""
        for path in sorted(GRAMMARS.glob("*.txt")):
            grammar = load_grammar(path)
            assert grammar.rules_for(grammar.root)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
