"""
Translation Service

Wraps the SCFG translator for applications:
1. Translate the text with the grammar
2. Optionally verify each translation by translating it back
3. Report the outcome as a serializable result
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from .errors import EntailmentError, InvariantViolationError
from .grammar import Grammar
from .grammar_format import load_grammar
from .llm_entailment import LLMEntailer
from .translator import Direction, ScfgTranslator

logger = logging.getLogger(__name__)


class TranslationStatus(str, Enum):
    """Status of a translation request."""
    SUCCESS = "success"           # At least one translation
    NO_MATCH = "no_match"         # The grammar does not cover the text
    ERROR = "error"               # Defective grammar or entailment failure


@dataclass
class TranslationResult:
    """Result of translating one text."""
    text: str
    direction: Direction
    translations: list[str] = field(default_factory=list)

    # Round-trip verification: translation -> input recovered when translated back
    verified: dict[str, bool] = field(default_factory=dict)

    status: TranslationStatus = TranslationStatus.ERROR
    error_message: Optional[str] = None

    @property
    def is_verified(self) -> bool:
        """True if verification ran and every translation round-trips."""
        return bool(self.verified) and all(self.verified.values())

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "text": self.text,
            "direction": self.direction.value,
            "translations": self.translations,
            "count": len(self.translations),
            "verified": self.verified,
            "is_verified": self.is_verified,
            "status": self.status.value,
            "error_message": self.error_message,
        }


class TranslationService:
    """
    Grammar-based translation service.

    Holds one read-only grammar and one translator; safe to call from
    several requests at once since every translation owns its work state.
    """

    def __init__(
        self,
        grammar: Grammar,
        entailment_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        api_key: Optional[str] = None,
        directions: Iterable = (Direction.FORWARD, Direction.BACKWARD),
        verify_round_trip: bool = False
    ):
        """
        Initialize the service.

        Args:
            grammar: The synchronous grammar
            entailment_provider: None or "regex" for pattern matching, or an
                LLM provider ("openai", "anthropic", "gemini")
            llm_model: Model name for LLM entailment
            api_key: API key for LLM entailment
            directions: Directions the service accepts
            verify_round_trip: Verify translations by default
        """
        self.grammar = grammar
        self.verify_round_trip = verify_round_trip

        if entailment_provider and entailment_provider != "regex":
            entail = LLMEntailer(
                grammar.variable_regexps(),
                provider=entailment_provider,
                model=llm_model,
                api_key=api_key
            )
            logger.info(f"Using {entailment_provider} entailment ({entail.model})")
        else:
            entail = None
            logger.info("Using regex entailment")

        self.translator = ScfgTranslator(grammar, entail=entail, directions=directions)

    def translate(
        self,
        text: str,
        forward: bool = True,
        verify: Optional[bool] = None
    ) -> TranslationResult:
        """
        Translate a text and report the outcome.

        Args:
            text: Text to translate
            forward: Translate from source to target patterns (True) or back
            verify: Check that each translation translates back to the text;
                defaults to the service setting

        Returns:
            TranslationResult

        Raises:
            UnsupportedDirectionError: if the direction is disabled
        """
        direction = Direction.of(forward)
        result = TranslationResult(text=text, direction=direction)
        verify = self.verify_round_trip if verify is None else verify

        logger.info(f"Translating ({direction.value}): '{text}'")
        try:
            translations = self.translator.translate(text, forward)
        except (InvariantViolationError, EntailmentError) as e:
            logger.error(f"Translation failed: {e}")
            result.error_message = str(e)
            return result

        result.translations = sorted(translations)
        if not translations:
            result.status = TranslationStatus.NO_MATCH
            return result
        result.status = TranslationStatus.SUCCESS

        if verify:
            result.verified = self._verify(text, result.translations, forward)
        return result

    def _verify(self, text: str, translations: list[str], forward: bool) -> dict[str, bool]:
        """Translate each translation back and check the text is recovered."""
        reverse = Direction.of(not forward)
        if reverse not in self.translator.directions:
            logger.warning(f"Verification skipped: {reverse.value} translation is disabled")
            return {}

        verified = {}
        for translation in translations:
            try:
                back = self.translator.translate(translation, not forward)
            except (InvariantViolationError, EntailmentError) as e:
                logger.warning(f"Verification of '{translation}' failed: {e}")
                back = set()
            verified[translation] = text in back
            if not verified[translation]:
                logger.warning(f"'{translation}' does not translate back to '{text}'")
        return verified

    async def translate_async(
        self,
        text: str,
        forward: bool = True,
        verify: Optional[bool] = None
    ) -> TranslationResult:
        """
        Async version of translate for web applications.

        Runs the synchronous translation in the default executor.
        """
        import asyncio
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            lambda: self.translate(text, forward=forward, verify=verify)
        )


def create_service(
    grammar_path: Union[str, Path],
    **kwargs
) -> TranslationService:
    """
    Factory function to create a service from a grammar file.

    Args:
        grammar_path: Path of the grammar file
        **kwargs: Additional arguments for TranslationService

    Returns:
        Configured TranslationService instance
    """
    return TranslationService(load_grammar(grammar_path), **kwargs)


# Convenience function for quick translation
def translate(
    text: str,
    grammar_path: Union[str, Path],
    forward: bool = True,
    **kwargs
) -> TranslationResult:
    """
    Quick translation function.

    Args:
        text: Text to translate
        grammar_path: Path of the grammar file
        forward: Translation direction
        **kwargs: Additional service configuration

    Returns:
        TranslationResult with the translations
    """
    service = create_service(grammar_path, **kwargs)
    return service.translate(text, forward)
