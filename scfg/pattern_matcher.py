"""
Named-Variable Pattern Matcher

Compiles patterns such as "I offer a salary of <number> <currency>" into
regular expressions, and returns the text bound to each variable, e.g.
{"<number>": "20000", "<currency>": "USD"}.

Variables may be indexed ("<number>1 + <number>2") so that two occurrences of
the same variable type bind independently. A variable repeated without an
index must match identical text at every occurrence.
"""

import logging
import re
from functools import lru_cache
from typing import Iterable, Iterator, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Regex used for nonterminals that have no explicit leaf regex
WILDCARD = ".+"


@lru_cache(maxsize=256)
def _token_scanner(names: tuple) -> re.Pattern:
    # Longest names first, so "<numbers>" is not read as "<number>" + "s"
    alternatives = "|".join(
        re.escape(name) for name in sorted(names, key=len, reverse=True)
    )
    return re.compile(rf"(?P<name>{alternatives})(?P<index>\d*)")


def _scanner(names: Iterable[str]) -> Optional[re.Pattern]:
    names = tuple(sorted(set(names)))
    if not names:
        return None
    return _token_scanner(names)


def find_variables(text: str, names: Iterable[str]) -> list[str]:
    """
    Find the variable tokens occurring in a text.

    Args:
        text: Pattern or partially resolved text
        names: Declared variable names, e.g. ["<number>", "<verb>"]

    Returns:
        Distinct tokens (with their index, if any) in order of first appearance
    """
    scanner = _scanner(names)
    if scanner is None:
        return []
    tokens = []
    for found in scanner.finditer(text):
        if found.group(0) not in tokens:
            tokens.append(found.group(0))
    return tokens


def substitute(text: str, replacements: Mapping[str, str]) -> str:
    """
    Replace variable tokens in a single pass.

    Replacement values are inserted literally and are not rescanned, and a
    token followed by a digit ("<x>10") is never mistaken for "<x>1".
    """
    if not replacements:
        return text
    alternatives = "|".join(
        re.escape(token) for token in sorted(replacements, key=len, reverse=True)
    )
    return re.sub(
        rf"(?:{alternatives})(?!\d)",
        lambda found: replacements[found.group(0)],
        text
    )


class PatternMatcher:
    """
    A regular expression whose capture groups are named by grammar variables.

    The literal parts of the pattern are escaped, so "1?" or "\\1" match
    literally; only the variable tokens carry regex semantics.
    """

    def __init__(self, pattern: str, variable_regexps: Mapping[str, str]):
        """
        Compile a pattern.

        Args:
            pattern: Text with embedded variables,
                for example "I offer a salary of <number> <currency>"
            variable_regexps: Regex per variable name,
                for example {"<number>": "\\d+", "<currency>": "[^ ]+"}
        """
        if not pattern:
            raise ConfigurationError("Pattern must be a non-empty string")
        if not variable_regexps:
            raise ConfigurationError("Variable regexps must not be empty")

        self.pattern = pattern
        self.variable_regexps = dict(variable_regexps)
        self.variables: list[str] = []
        self._groups: dict[str, str] = {}

        parts = []
        position = 0
        for found in _scanner(self.variable_regexps).finditer(pattern):
            parts.append(re.escape(pattern[position:found.start()]))
            token = found.group(0)
            if token in self._groups:
                parts.append(f"(?P={self._groups[token]})")
            else:
                group = f"v{len(self._groups)}"
                self._groups[token] = group
                self.variables.append(token)
                regexp = self.variable_regexps[found.group("name")]
                parts.append(f"(?P<{group}>{regexp})")
            position = found.end()
        parts.append(re.escape(pattern[position:]))

        try:
            self.regex = re.compile("".join(parts))
        except re.error as e:
            raise ConfigurationError(
                f"Pattern {pattern!r} does not compile: {e}"
            ) from e

    def match(self, text: str) -> "PatternMatches":
        """
        Match the text against the pattern.

        Args:
            text: Text to search

        Returns:
            Iterable of {variable: substring}, one per non-overlapping match
        """
        return PatternMatches(self, text)

    def _bindings(self, text: str) -> Iterator[dict[str, str]]:
        for found in self.regex.finditer(text):
            yield {
                token: found.group(group)
                for token, group in self._groups.items()
            }

    @classmethod
    def cached(
        cls,
        pattern: str,
        variable_regexps: Mapping[str, str]
    ) -> "PatternMatcher":
        """Return a memoized matcher for the pattern and regex table."""
        return _cached_matcher(pattern, tuple(variable_regexps.items()))

    def __repr__(self) -> str:
        return f"PatternMatcher({self.pattern!r}, variables={self.variables})"


class PatternMatches:
    """Lazy sequence of variable bindings; each iteration rescans the text."""

    def __init__(self, matcher: PatternMatcher, text: str):
        self.matcher = matcher
        self.text = text

    def __iter__(self) -> Iterator[dict[str, str]]:
        return self.matcher._bindings(self.text)


@lru_cache(maxsize=4096)
def _cached_matcher(pattern: str, variable_items: tuple) -> PatternMatcher:
    return PatternMatcher(pattern, dict(variable_items))


class RegexEntailment:
    """
    Default entailment: a hypothesis is entailed by a text if its pattern
    matches somewhere in the text.
    """

    def __init__(self, variable_regexps: Mapping[str, str]):
        if not variable_regexps:
            raise ConfigurationError("Variable regexps must not be empty")
        self._variable_items = tuple(variable_regexps.items())

    def __call__(self, text: str, hypothesis: str) -> PatternMatches:
        return _cached_matcher(hypothesis, self._variable_items).match(text)
