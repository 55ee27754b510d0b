"""
Skills Platform Backend — Abstract LLM Service Interface
==========================================================

What:  Abstract base class for the language model that grades submissions
       and writes recommendations, plus the JSON extraction every AI route
       shares.
Why:   The grading service depends on this contract only, so tests swap in
       a stub and a different provider needs no change to calling code.
How:   Concrete implementations implement generate() and health_check();
       generate_json() is shared and turns the free-text reply into a dict.

JSON extraction:
    Models wrap JSON in prose or ```json fences despite instructions. The
    reply is searched greedily for the first "{" through the last "}"
    (across newlines) and that span is parsed. A reply with two separate
    objects therefore fails to parse; that is reported, not repaired.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict

from skills_platform.exceptions import AIResponseFormatError

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def _no_constant(name: str) -> None:
    """NaN and Infinity are not JSON; read them as null."""
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Returns the JSON object embedded in a model reply.

    Raises:
        AIResponseFormatError: No braces in the reply, the span is not
            valid JSON, or it decodes to something other than an object.
    """
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        raise AIResponseFormatError(
            context={"reason": "no_json_object", "reply": (text or "")[:500]},
        )

    try:
        parsed = json.loads(match.group(0), parse_constant=_no_constant)
    except json.JSONDecodeError as e:
        raise AIResponseFormatError(
            context={"reason": "invalid_json", "error": str(e), "reply": text[:500]},
        ) from e

    if not isinstance(parsed, dict):
        raise AIResponseFormatError(context={"reason": "not_an_object", "reply": text[:500]})
    return parsed


class LLMService(ABC):
    """
    Abstract interface for a text-in, text-out language model.

    Contract:
        - generate() returns the model's reply text, never None
        - Implementations handle their own retry logic
        - Provider errors are wrapped in LLMServiceError
    """

    # False when the provider has no credentials; AI routes then answer 503
    enabled: bool = True

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Sends one prompt and returns the reply text.

        Raises:
            LLMServiceError: The provider failed after all retries.
            CircuitBreakerOpenError: Too many recent failures.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight connectivity test that spends no tokens."""
        ...

    async def generate_json(self, prompt: str) -> Dict[str, Any]:
        """generate() followed by extract_json_object()."""
        reply = await self.generate(prompt)
        try:
            return extract_json_object(reply)
        except AIResponseFormatError:
            logger.warning("Model reply contained no usable JSON object (%d chars)", len(reply))
            raise
