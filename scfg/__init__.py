"""
SCFG Bridge - bidirectional translation with synchronous context-free grammars

This package translates text between two symbolic languages (for example a
natural-language sentence and its meaning representation) using a single set
of paired production rules, in either direction.
"""

__version__ = "0.1.0"
