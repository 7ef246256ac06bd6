"""
Grammar text format.

    # comments run to the end of the line
    == <root> ==
    * <verb> the <object> / DO(<verb>,<object>)

    == <verb> ==
    * take / GET

    == @Variables ==
    * <number> / \\d+

The first heading is the root of the grammar. Entries under the reserved
"@Variables" heading are regexes of terminal variables, not productions.
"""

import logging
import re
from pathlib import Path
from typing import Union

from .errors import ConfigurationError
from .grammar import Grammar

logger = logging.getLogger(__name__)

VARIABLES_HEADING = "@Variables"

_HEADING = re.compile(r"^=+\s*(.*?)\s*=+$")
_LIST_ITEM = re.compile(r"^\*+\s*(.*)$")
_COMMENT = re.compile(r"\s*#.*$")
_SEPARATOR = re.compile(r"\s*/\s*")


def parse_grammar(grammar_text: str) -> Grammar:
    """
    Create a grammar from its text form.

    Args:
        grammar_text: Grammar in the heading / list-item format

    Returns:
        The parsed Grammar

    Raises:
        ConfigurationError: if there is no root heading or the root has no rules
    """
    rules: dict[str, dict[str, str]] = {}
    variables: dict[str, str] = {}
    root = None
    heading = None

    for line in re.split(r"[\r\n]", grammar_text):
        line = _COMMENT.sub("", line).strip()
        if not line:
            continue

        heading_match = _HEADING.match(line)
        if heading_match:
            heading = heading_match.group(1).strip()
            if root is None and heading != VARIABLES_HEADING:
                root = heading
            continue

        item_match = _LIST_ITEM.match(line)
        if not item_match or heading is None:
            continue
        fields = _SEPARATOR.split(item_match.group(1), maxsplit=1)
        if len(fields) < 2:
            continue
        source, target = fields[0].strip(), fields[1].strip()

        if heading == VARIABLES_HEADING:
            variables[source] = target
        else:
            rules.setdefault(heading, {})[source] = target

    if root is None:
        raise ConfigurationError("Grammar text has no heading to use as root")

    logger.debug(f"Parsed grammar: root={root}, nonterminals={list(rules)}")
    return Grammar(rules, root, variables)


def load_grammar(path: Union[str, Path]) -> Grammar:
    """Read and parse a grammar file (UTF-8)."""
    path = Path(path)
    logger.info(f"Loading grammar from {path}")
    return parse_grammar(path.read_text(encoding="utf-8"))
