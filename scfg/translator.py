"""
SCFG Translator - bidirectional translation with a synchronous grammar.

The algorithm is inspired by Earley top-down parsing and runs in two phases:

1. Downward loop: starting from the root productions, hypothesize which rule
   interprets which subtext. Each entailed hypothesis is kept on a result
   stack, and each nonterminal it binds opens new hypotheses on the bound
   substring.
2. Upward loop: resolve the variables of the kept hypotheses one at a time,
   composing completed sub-derivations into their parents, until the items
   are clean (no unresolved variables).

The same rule set serves both directions: translating backward simply reads
every production from target to source.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional

from .errors import (
    ConfigurationError,
    InvariantViolationError,
    UnsupportedDirectionError,
)
from .grammar import Grammar, Rule
from .pattern_matcher import RegexEntailment, find_variables, substitute
from .work_queues import CompletedSet, DedupQueue, ResultStack

logger = logging.getLogger(__name__)

# (subtext, hypothesis pattern) -> assignments of the hypothesis variables
Entailment = Callable[[str, str], Iterable[Mapping[str, str]]]


class Direction(str, Enum):
    """Translation direction relative to the grammar's rules."""
    FORWARD = "forward"      # source patterns -> target patterns
    BACKWARD = "backward"    # target patterns -> source patterns

    @classmethod
    def of(cls, forward: bool) -> "Direction":
        return cls.FORWARD if forward else cls.BACKWARD


@dataclass(frozen=True)
class DerivationItem:
    """
    The unit of work: `subtext` is derived from `variable` through the rule
    `source` / `target`.

    `assignment` holds the bindings of the variables still unresolved in the
    rule, as ordered (token, substring) pairs. It is None before entailment,
    and empty once the item is clean.
    """
    subtext: str
    variable: str
    source: str
    target: str
    assignment: Optional[tuple] = None

    @property
    def key(self) -> tuple:
        """Structural identity, shared by the open queue and the completed set."""
        return (self.subtext, self.variable, self.source, self.target)

    @property
    def lookup_key(self) -> tuple:
        return (self.subtext, self.variable)

    @property
    def is_clean(self) -> bool:
        return not self.assignment

    def with_assignment(self, assignment: Optional[tuple]) -> "DerivationItem":
        return replace(self, assignment=assignment)

    def reduced(self, token: str, source: str, target: str, remaining: tuple) -> "DerivationItem":
        """Resolve one variable token: substitute it on both sides."""
        return DerivationItem(
            self.subtext,
            self.variable,
            substitute(self.source, {token: source}),
            substitute(self.target, {token: target}),
            remaining,
        )

    def __str__(self) -> str:
        bindings = "" if self.assignment is None else f", {dict(self.assignment)}"
        return (
            f"('{self.subtext}', {self.variable} -> "
            f"{self.source} / {self.target}{bindings})"
        )


def sorted_from_long_to_short(rules: Iterable[Rule]) -> list[Rule]:
    """Order productions by decreasing source length, then alphabetically."""
    return sorted(rules, key=lambda rule: (-len(rule.source), rule.source))


class ScfgTranslator:
    """
    Translator based on a synchronous context-free grammar.

    Translation results are sets: an ambiguous text yields every distinct
    translation it derives, in no particular order.
    """

    def __init__(
        self,
        grammar: Grammar,
        entail: Optional[Entailment] = None,
        directions: Iterable = (Direction.FORWARD, Direction.BACKWARD)
    ):
        """
        Initialize the translator.

        Args:
            grammar: The synchronous grammar
            entail: Function (text, hypothesis) -> assignments of the
                hypothesis variables entailed by the text. Defaults to
                regex matching with the grammar's variable regexps.
            directions: Directions this translator may be used in
        """
        if grammar is None:
            raise ConfigurationError("A grammar is required")
        self.grammar = grammar
        self.entail = entail or RegexEntailment(grammar.variable_regexps())
        self.directions = frozenset(Direction(d) for d in directions)
        if not self.directions:
            raise ConfigurationError("At least one direction must be enabled")

    def translate(
        self,
        text: str,
        forward: bool = True,
        trace: Optional[logging.Logger] = None
    ) -> set[str]:
        """
        Translate a text forward (source to target) or backward.

        Args:
            text: Text to translate
            forward: True to translate from source to target patterns,
                False to translate from target to source patterns
            trace: Logger receiving the step-by-step trace (debug level)

        Returns:
            Set of distinct translations, empty if nothing entails the text
        """
        direction = Direction.of(forward)
        if direction not in self.directions:
            raise UnsupportedDirectionError(
                f"Translator is not configured for {direction.value} translation"
            )
        log = trace or logger
        log.debug(f"translate '{text}' ({direction.value}) start")

        open_queue = DedupQueue(key=lambda item: item.key, trace=log)
        good_stack = ResultStack(trace=log)
        completed = CompletedSet()
        productions = {}

        def productions_of(nonterminal: str) -> list[Rule]:
            if nonterminal not in productions:
                rules = self.grammar.rules_for(nonterminal)
                if direction is Direction.BACKWARD:
                    rules = [rule.inverted() for rule in rules]
                productions[nonterminal] = sorted_from_long_to_short(rules)
            return productions[nonterminal]

        # Initialization
        root = self.grammar.root
        for rule in productions_of(root):
            open_queue.add(DerivationItem(text, root, rule.source, rule.target))
        log.debug(f"Initialization end; Open.size={len(open_queue)}")

        self._downward(open_queue, good_stack, productions_of, log)
        self._upward(good_stack, completed, log)

        # Finalization
        translations = set()
        for item in completed.lookup(text, root):
            self._assert_resolved(item)
            translations.add(item.target)
        log.debug(f"translate '{text}' end: {sorted(translations)}")
        return translations

    def _downward(self, open_queue, good_stack, productions_of, log) -> None:
        while open_queue:
            item = open_queue.remove()
            log.debug(f"Drilling down on {item}")
            for assignment in self.entail(item.subtext, item.source):
                good_stack.push(item.with_assignment(tuple(assignment.items())))
                for token, value in assignment.items():
                    if not self.grammar.has_nonterminal(token):
                        continue
                    nonterminal = self.grammar.base_name(token)
                    for rule in productions_of(nonterminal):
                        open_queue.add(DerivationItem(
                            value, nonterminal, rule.source, rule.target
                        ))
            log.debug(f"Open.size={len(open_queue)} Good.size={len(good_stack)}")
        log.debug("Downward loop end")

    def _upward(self, good_stack, completed, log) -> None:
        # Items whose next variable needs completions of (subtext, variable)
        waiting = defaultdict(list)
        settled = set()

        while good_stack:
            item = good_stack.pop()
            if item in settled:
                continue
            settled.add(item)
            log.debug(f"Climbing up on {item}")

            if item.is_clean:
                clean = item.with_assignment(None)
                if completed.add(clean):
                    for parent, token, remaining in waiting[clean.lookup_key]:
                        good_stack.push(
                            parent.reduced(token, clean.source, clean.target, remaining)
                        )
                continue

            (token, value), remaining = item.assignment[0], item.assignment[1:]
            if self.grammar.has_nonterminal(token):
                # A nonterminal is resolved by the clean derivations of its substring
                lookup_key = (value, self.grammar.base_name(token))
                waiting[lookup_key].append((item, token, remaining))
                for previous in completed.lookup(*lookup_key):
                    good_stack.push(
                        item.reduced(token, previous.source, previous.target, remaining)
                    )
            else:
                good_stack.push(item.reduced(token, value, value, remaining))

            log.debug(f"Good.size={len(good_stack)} Clean.size={len(completed)}")
        log.debug("Upward loop end")

    def _assert_resolved(self, item: DerivationItem) -> None:
        names = self.grammar.variable_names()
        leftovers = find_variables(item.source + "\n" + item.target, names)
        if leftovers:
            raise InvariantViolationError(
                f"Completed derivation {item} still contains variables {leftovers}; "
                f"check the grammar rules or the entailment function"
            )
