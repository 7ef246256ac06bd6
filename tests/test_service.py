"""
Tests for the translation service.

Run with: pytest tests/test_service.py -v
"""

import asyncio
from pathlib import Path

import pytest

from scfg.errors import UnsupportedDirectionError
from scfg.grammar_format import load_grammar, parse_grammar
from scfg.llm_entailment import LLMEntailer
from scfg.service import (
    TranslationResult,
    TranslationService,
    TranslationStatus,
    create_service,
    translate,
)
from scfg.translator import Direction

GRAMMARS = Path(__file__).parent.parent / "grammars"


class TestTranslationService:
    """Test translation outcomes."""

    def test_success(self):
        """Test an ambiguous text with sorted translations."""
        service = create_service(GRAMMARS / "ambiguous.txt")

        result = service.translate("take the bread")

        assert result.status == TranslationStatus.SUCCESS
        assert result.direction == Direction.FORWARD
        assert result.translations == ["DO(GET)", "DO(GET,FOOD)"]
        assert result.error_message is None
        assert result.verified == {}

    def test_backward(self):
        """Test translating from target to source."""
        service = create_service(GRAMMARS / "commands.txt")

        result = service.translate("DO(GET,FOOD)", forward=False)

        assert result.direction == Direction.BACKWARD
        assert result.translations == [
            "get the bread", "get the food", "take the bread", "take the food"
        ]

    def test_no_match(self):
        """Test a text the grammar does not cover."""
        service = create_service(GRAMMARS / "flat.txt")

        result = service.translate("b d")

        assert result.status == TranslationStatus.NO_MATCH
        assert result.translations == []

    def test_defective_grammar(self):
        """Test that unresolved variables are reported as an error result."""
        grammar = parse_grammar(
            "== <root> ==\n"
            "* hello / GREET(<name>)\n"
            "== <name> ==\n"
            "* bob / BOB\n"
        )
        result = TranslationService(grammar).translate("hello")

        assert result.status == TranslationStatus.ERROR
        assert "<name>" in result.error_message

    def test_unsupported_direction(self):
        """Test that a disabled direction propagates."""
        service = create_service(GRAMMARS / "flat.txt", directions=["forward"])

        with pytest.raises(UnsupportedDirectionError):
            service.translate("b", forward=False)


class TestRoundTripVerification:
    """Test round-trip verification of translations."""

    def test_verified(self):
        """Test a translation that translates back to the input."""
        service = create_service(GRAMMARS / "commands.txt")

        result = service.translate("take the bread", verify=True)

        assert result.verified == {"DO(GET,FOOD)": True}
        assert result.is_verified

    def test_not_verified(self):
        """Test translations that each recover only part of the input."""
        service = create_service(GRAMMARS / "actions.txt")

        result = service.translate("take the bread and give the water", verify=True)

        assert result.verified == {"DO(GET,FOOD)": False, "DO(PUT,FLUID)": False}
        assert not result.is_verified

    def test_service_default(self):
        """Test that the service setting applies when verify is unset."""
        service = create_service(GRAMMARS / "flat.txt", verify_round_trip=True)

        assert service.translate("a").verified == {"b": True}
        assert service.translate("a", verify=False).verified == {}

    def test_skipped_without_reverse_direction(self):
        """Test that verification is skipped if the reverse is disabled."""
        service = create_service(
            GRAMMARS / "flat.txt", directions=["forward"], verify_round_trip=True
        )

        result = service.translate("a")

        assert result.translations == ["b"]
        assert result.verified == {}
        assert not result.is_verified


class TestTranslationResult:
    """Test result serialization."""

    def test_to_dict(self):
        """Test the JSON form of a result."""
        result = TranslationResult(
            text="a",
            direction=Direction.FORWARD,
            translations=["b"],
            verified={"b": True},
            status=TranslationStatus.SUCCESS,
        )

        assert result.to_dict() == {
            "text": "a",
            "direction": "forward",
            "translations": ["b"],
            "count": 1,
            "verified": {"b": True},
            "is_verified": True,
            "status": "success",
            "error_message": None,
        }

    def test_default_status(self):
        """Test that a fresh result is an error until filled in."""
        result = TranslationResult(text="a", direction=Direction.BACKWARD)

        assert result.status == TranslationStatus.ERROR
        assert result.to_dict()["count"] == 0


class TestServiceConfiguration:
    """Test factory functions and entailment selection."""

    def test_regex_entailment_by_default(self):
        """Test that no provider means regex entailment."""
        service = create_service(GRAMMARS / "flat.txt", entailment_provider="regex")

        assert not isinstance(service.translator.entail, LLMEntailer)

    def test_llm_entailment(self):
        """Test that an LLM provider installs the LLM entailer."""
        grammar = load_grammar(GRAMMARS / "commands.txt")

        service = TranslationService(
            grammar, entailment_provider="anthropic", llm_model="test-model", api_key="test"
        )

        assert isinstance(service.translator.entail, LLMEntailer)
        assert service.translator.entail.model == "test-model"

    def test_translate_convenience(self):
        """Test the one-shot translate function."""
        result = translate("DO(GET,FOOD)", GRAMMARS / "actions.txt", forward=False)

        assert result.translations == ["take the bread"]

    def test_translate_async(self):
        """Test the executor-backed async translation."""
        service = create_service(GRAMMARS / "actions.txt")

        result = asyncio.run(service.translate_async("take the bread", verify=True))

        assert result.translations == ["DO(GET,FOOD)"]
        assert result.is_verified


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
