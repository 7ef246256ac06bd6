"""
Errors raised by the SCFG translator.

Two families: configuration errors, raised synchronously when a pattern,
grammar or translator is built from bad input, and invariant violations,
raised when a finished derivation still carries unresolved variables.
"""


class ScfgError(Exception):
    """Base class for all translator errors."""


class ConfigurationError(ScfgError, ValueError):
    """Invalid pattern, variable table, grammar or translator configuration."""


class UnknownNonterminalError(ScfgError, KeyError):
    """The grammar has no rule table for the requested nonterminal."""

    def __init__(self, nonterminal: str):
        super().__init__(nonterminal)
        self.nonterminal = nonterminal

    def __str__(self) -> str:
        return f"No rule table for nonterminal {self.nonterminal!r}"


class UnsupportedDirectionError(ScfgError):
    """The translator was configured without the requested direction."""


class InvariantViolationError(ScfgError):
    """A completed derivation still contains variable syntax."""


class EntailmentError(ScfgError):
    """An entailment plug-in failed to produce assignments."""
