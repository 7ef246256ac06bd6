"""
Grammar Model - Synchronous Context-Free Grammar

An SCFG pairs a pattern in each language through shared variables, e.g.

    <root>:  <verb> the <object>  /  DO(<verb>,<object>)
    <verb>:  take  /  GET
    <object>: bread  /  FOOD

The grammar is built once and is read-only afterwards, so a single instance
can be shared by any number of translators.
"""

import itertools
import logging
import math
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from .errors import ConfigurationError, UnknownNonterminalError
from .pattern_matcher import WILDCARD, find_variables, substitute

logger = logging.getLogger(__name__)

_INDEX_SUFFIX = re.compile(r"\d+$")

# Default bound on the productions generated by Grammar.expand
MAX_EXPANSION_RULES = 10000


@dataclass(frozen=True)
class Rule:
    """A production: a source pattern and the target pattern it translates to."""
    source: str
    target: str

    def inverted(self) -> "Rule":
        """The same production read from target to source."""
        return Rule(self.target, self.source)

    def __str__(self) -> str:
        return f"{self.source} / {self.target}"


RuleTable = Union[Mapping[str, str], Iterable[Union[Rule, tuple]]]


def _as_rules(table: RuleTable) -> tuple:
    if isinstance(table, Mapping):
        pairs = table.items()
    else:
        pairs = (
            (rule.source, rule.target) if isinstance(rule, Rule) else rule
            for rule in table
        )
    # Later entries with the same source replace earlier ones
    by_source = {}
    for source, target in pairs:
        by_source[source] = target
    return tuple(Rule(source, target) for source, target in by_source.items())


class Grammar:
    """
    Synchronous Context-Free Grammar.

    Holds the root nonterminal, an ordered rule table per nonterminal and the
    regex table of terminal variables (variables that are matched directly
    and never expanded).
    """

    def __init__(
        self,
        rules: Mapping[str, RuleTable],
        root: str,
        variables: Optional[Mapping[str, str]] = None
    ):
        """
        Build a grammar.

        Args:
            rules: Rule table per nonterminal, either a mapping
                {source: target} or an iterable of Rule / (source, target)
            root: The start symbol of the grammar
            variables: Regex per terminal variable, e.g. {"<number>": "\\d+"}
        """
        if not root:
            raise ConfigurationError("Grammar root must be a non-empty string")

        tables = {
            nonterminal: _as_rules(table)
            for nonterminal, table in (rules or {}).items()
        }
        if not tables.get(root):
            raise ConfigurationError(f"Grammar root {root!r} has no rule table")

        self._root = root
        self._rules = MappingProxyType(tables)
        self._variables = MappingProxyType(dict(variables or {}))
        self._expansions: dict[tuple[str, int], tuple] = {}

        logger.debug(
            f"Grammar created: root={root}, {len(tables)} nonterminals, "
            f"{len(self._variables)} terminal variables"
        )

    @property
    def root(self) -> str:
        """The start symbol (aka root) of this grammar."""
        return self._root

    def nonterminals(self) -> tuple:
        """All nonterminals, in declaration order."""
        return tuple(self._rules)

    def base_name(self, name: str) -> str:
        """
        Strip the index of an indexed nonterminal: "<expr>2" -> "<expr>".

        Names that are not indexed nonterminals are returned unchanged.
        """
        if name in self._rules:
            return name
        stripped = _INDEX_SUFFIX.sub("", name)
        return stripped if stripped in self._rules else name

    def has_nonterminal(self, name: str) -> bool:
        """True if the (possibly indexed) name has a rule table."""
        return self.base_name(name) in self._rules

    def rules_for(self, nonterminal: str) -> tuple:
        """
        The productions of a nonterminal.

        Raises:
            UnknownNonterminalError: if the nonterminal has no rule table
        """
        try:
            return self._rules[self.base_name(nonterminal)]
        except KeyError:
            raise UnknownNonterminalError(nonterminal) from None

    def leaf_variable_regexps(self) -> dict[str, str]:
        """Regex per terminal variable (the @Variables table)."""
        return dict(self._variables)

    def variable_regexps(self) -> dict[str, str]:
        """
        Regex per variable, as used for matching.

        Nonterminals without an explicit entry match anything (".+").
        """
        regexps = dict(self._variables)
        for nonterminal in self._rules:
            regexps.setdefault(nonterminal, WILDCARD)
        return regexps

    def variable_names(self) -> tuple:
        """Every declared variable name, terminal or nonterminal."""
        return tuple(self.variable_regexps())

    def expand(
        self,
        nonterminal: str,
        max_depth: int,
        max_rules: int = MAX_EXPANSION_RULES
    ) -> tuple:
        """
        Generate the productions of a nonterminal with its nested
        nonterminals replaced by their own productions.

        Every nonterminal token in a rule is substituted by each production
        of that nonterminal, down to max_depth levels. Depth 0 returns the
        rule table unchanged. Results are memoized per (nonterminal,
        max_depth) for the lifetime of the grammar; each memoized entry
        holds at most max_rules productions.

        Args:
            nonterminal: Nonterminal to expand
            max_depth: Number of substitution levels
            max_rules: Upper bound on the number of generated productions,
                at every level of the expansion

        Returns:
            Tuple of Rules

        Raises:
            ConfigurationError: if the expansion would exceed max_rules
        """
        nonterminal = self.base_name(nonterminal)
        max_depth = max(max_depth, 0)
        key = (nonterminal, max_depth)
        if key in self._expansions:
            rules = self._expansions[key]
            self._check_size(nonterminal, max_depth, len(rules), max_rules)
            return rules

        rules = self.rules_for(nonterminal)
        if max_depth > 0:
            names = tuple(self._rules)
            plans = []
            size = 0
            for rule in rules:
                tokens = find_variables(rule.source + "\n" + rule.target, names)
                choices = [
                    self.expand(token, max_depth - 1, max_rules) for token in tokens
                ]
                size += math.prod(len(choice) for choice in choices)
                self._check_size(nonterminal, max_depth, size, max_rules)
                plans.append((rule, tokens, choices))

            expanded = {}
            for rule, tokens, choices in plans:
                for combination in itertools.product(*choices):
                    source = substitute(rule.source, {
                        token: choice.source
                        for token, choice in zip(tokens, combination)
                    })
                    target = substitute(rule.target, {
                        token: choice.target
                        for token, choice in zip(tokens, combination)
                    })
                    expanded[source] = target
            rules = tuple(Rule(source, target) for source, target in expanded.items())

        self._check_size(nonterminal, max_depth, len(rules), max_rules)
        self._expansions[key] = rules
        logger.debug(f"Expanded {nonterminal} to depth {max_depth}: {len(rules)} rules")
        return rules

    @staticmethod
    def _check_size(nonterminal: str, max_depth: int, size: int, max_rules: int) -> None:
        if size > max_rules:
            raise ConfigurationError(
                f"Expanding {nonterminal} to depth {max_depth} exceeds "
                f"{max_rules} rules"
            )

    def __repr__(self) -> str:
        return (
            f"Grammar(root={self._root!r}, nonterminals={list(self._rules)}, "
            f"variables={dict(self._variables)})"
        )
