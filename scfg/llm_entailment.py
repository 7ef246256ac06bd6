"""
LLM Entailment - semantic matching instead of literal matching

Replaces the default regex entailment with an LLM that decides whether a
text entails a hypothesis pattern. A hypothesis such as "<verb> the bread"
can then be entailed by "grab the loaf", as long as the model binds every
variable to a verbatim substring of the text.
"""

import json
import logging
import os
import re
from typing import Any, Mapping, Optional

from .errors import ConfigurationError, EntailmentError
from .pattern_matcher import find_variables
from .prompts import ENTAILMENT_SYSTEM, ENTAILMENT_USER

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-20241022",
    "gemini": "gemini-2.5-flash",
}


class LLMEntailer:
    """
    LLM-based entailment plug-in for ScfgTranslator.

    Called as entail(text, hypothesis); returns a list of assignments
    {variable: substring}. Assignments that bind anything other than the
    hypothesis variables, or bind text that does not occur in the input, are
    discarded, so nested hypotheses always work on substrings of the text.
    """

    def __init__(
        self,
        variable_regexps: Mapping[str, str],
        provider: str = "openai",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Any = None,
        temperature: float = 0.0
    ):
        """
        Initialize the entailer.

        Args:
            variable_regexps: Grammar variables, as for RegexEntailment (names
                are used to find the hypothesis variables; regexes are shown
                to the model as hints)
            provider: "openai", "anthropic" or "gemini"
            model: Model name (defaults per provider)
            api_key: API key (defaults to the provider's environment variable)
            client: Pre-built provider client, mainly for tests
            temperature: LLM temperature
        """
        if not variable_regexps:
            raise ConfigurationError("Variable regexps must not be empty")
        if provider not in DEFAULT_MODELS:
            raise ConfigurationError(
                f"Unsupported provider: {provider}. Use 'openai', 'anthropic', or 'gemini'"
            )
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.variable_regexps = dict(variable_regexps)
        self.temperature = temperature

        if api_key:
            self.api_key = api_key
        elif provider == "gemini":
            self.api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
        elif provider == "anthropic":
            self.api_key = os.getenv("ANTHROPIC_API_KEY")
        else:
            self.api_key = os.getenv("OPENAI_API_KEY")

        self._client = client

    def _ensure_client(self):
        """Lazy initialization of the LLM client."""
        if self._client is not None:
            return

        if self.provider == "openai":
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        elif self.provider == "anthropic":
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self.api_key)
        elif self.provider == "gemini":
            from google import genai
            self._client = genai.Client(api_key=self.api_key)

    def __call__(self, text: str, hypothesis: str) -> list[dict[str, str]]:
        """
        Ask the model which assignments make the text entail the hypothesis.

        Raises:
            EntailmentError: if the provider call fails or the response
                cannot be read
        """
        tokens = find_variables(hypothesis, self.variable_regexps)
        user_prompt = ENTAILMENT_USER.format(
            text=text,
            hypothesis=hypothesis,
            variables=self._describe_variables(tokens)
        )

        try:
            content = self._complete(user_prompt)
        except Exception as e:
            logger.error(f"LLM entailment failed: {e}")
            raise EntailmentError(f"{self.provider} entailment call failed: {e}") from e

        assignments = self._parse_response(content, text, tokens)
        logger.debug(f"Entail '{hypothesis}' by '{text}': {assignments}")
        return assignments

    def _complete(self, user_prompt: str) -> str:
        self._ensure_client()

        if self.provider == "openai":
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": ENTAILMENT_SYSTEM},
                    {"role": "user", "content": user_prompt}
                ],
                temperature=self.temperature,
                max_tokens=2000
            )
            return response.choices[0].message.content

        if self.provider == "anthropic":
            response = self._client.messages.create(
                model=self.model,
                max_tokens=2000,
                system=ENTAILMENT_SYSTEM,
                messages=[
                    {"role": "user", "content": user_prompt}
                ]
            )
            return response.content[0].text

        # Gemini uses a combined prompt approach
        from google.genai import types
        response = self._client.models.generate_content(
            model=self.model,
            contents=f"{ENTAILMENT_SYSTEM}\n\n{user_prompt}",
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=2000
            )
        )
        return response.text

    def _describe_variables(self, tokens: list[str]) -> str:
        if not tokens:
            return "(none)"
        lines = []
        for token in tokens:
            name = re.sub(r"\d+$", "", token)
            regexp = self.variable_regexps.get(token) or self.variable_regexps.get(name)
            lines.append(f"- {token}" + (f" (matches /{regexp}/)" if regexp else ""))
        return "\n".join(lines)

    def _parse_response(self, content: str, text: str, tokens: list[str]) -> list[dict[str, str]]:
        """Extract the assignments from the model response and keep the valid ones."""
        payload = self._extract_json(content)
        if not isinstance(payload, dict):
            raise EntailmentError(f"Could not read entailment response: {content!r}")

        if not tokens:
            return [{}] if payload.get("entailed") else []

        assignments = []
        for assignment in payload.get("assignments") or []:
            if not isinstance(assignment, dict) or set(assignment) != set(tokens):
                logger.warning(f"Discarding assignment with wrong variables: {assignment}")
                continue
            values = {token: assignment[token] for token in tokens}
            if not all(isinstance(v, str) and v and v in text for v in values.values()):
                logger.warning(f"Discarding assignment not grounded in the text: {assignment}")
                continue
            if values not in assignments:
                assignments.append(values)
        return assignments

    def _extract_json(self, content: str) -> Any:
        """Extract the JSON object from an LLM response."""
        # Look for code block
        code_match = re.search(r'```(?:json)?\s*([\s\S]*?)```', content)
        candidate = code_match.group(1) if code_match else content

        # Look for the outermost JSON object
        object_match = re.search(r'\{[\s\S]*\}', candidate)
        if not object_match:
            return None
        try:
            return json.loads(object_match.group(0))
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in entailment response: {e}")
            return None
