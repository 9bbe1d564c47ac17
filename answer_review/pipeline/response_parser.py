"""
Extraction of a JSON object from free-form LLM output.

Models are asked for bare JSON but regularly wrap it in code fences or
commentary. Strategies are tried in order and the first one that yields an
object wins.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from answer_review.core.errors import ParseError

logger = logging.getLogger(__name__)


def _decode_object(text: str) -> Dict[str, Any]:
    """Decode text as JSON and require a top-level object."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class ParseStrategy(ABC):
    """One way of turning raw response text into a record."""

    name: str = "strategy"

    @abstractmethod
    def parse(self, text: str) -> Dict[str, Any]:
        """
        Extract a record from text.

        Raises:
            ValueError: text does not contain a record this strategy can read
        """
        pass


class DirectParseStrategy(ParseStrategy):
    """Whole response is already valid JSON."""

    name = "direct"

    def parse(self, text: str) -> Dict[str, Any]:
        return _decode_object(text)


class FenceStrippedParseStrategy(ParseStrategy):
    """Response is JSON wrapped in markdown code fences or inline code markers."""

    name = "fence_stripped"
    FENCE_PATTERN = re.compile(r"```json|```|`")

    def parse(self, text: str) -> Dict[str, Any]:
        return _decode_object(self.FENCE_PATTERN.sub("", text).strip())


class ExtractionParseStrategy(ParseStrategy):
    """
    Response has commentary around the object.

    Starts at the first "{" and tries each following "}" in turn, so the
    shortest candidate that decodes is used and nested objects still work.
    """

    name = "extraction"
    CLOSING_BRACE = re.compile(r"\}")

    def parse(self, text: str) -> Dict[str, Any]:
        start = text.find("{")
        if start == -1:
            raise ValueError("Could not extract valid JSON: no object found")

        last_error: Optional[Exception] = None
        for match in self.CLOSING_BRACE.finditer(text, start):
            try:
                return _decode_object(text[start:match.end()])
            except ValueError as e:
                last_error = e

        raise ValueError(f"Could not extract valid JSON: {last_error or 'no closing brace'}")


DEFAULT_STRATEGIES: Sequence[ParseStrategy] = (
    DirectParseStrategy(),
    FenceStrippedParseStrategy(),
    ExtractionParseStrategy(),
)


class ResponseParser:
    """Runs parse strategies in order until one succeeds."""

    def __init__(self, strategies: Optional[Sequence[ParseStrategy]] = None):
        self.strategies: List[ParseStrategy] = list(strategies or DEFAULT_STRATEGIES)

    def parse(self, raw_text: str) -> Dict[str, Any]:
        """
        Parse raw LLM output into a dict.

        Args:
            raw_text: Response text as returned by the model

        Returns:
            The first JSON object any strategy could extract

        Raises:
            ParseError: every strategy failed; carries raw_text and all attempts
        """
        attempts: List[tuple[str, str]] = []

        for strategy in self.strategies:
            try:
                record = strategy.parse(raw_text)
            except ValueError as e:
                attempts.append((strategy.name, str(e)))
                logger.debug(f"[Parse] {strategy.name} failed: {e}")
                continue

            if attempts:
                logger.info(f"[Parse] Recovered JSON with '{strategy.name}' after {len(attempts)} failed strategies")
            return record

        logger.error(f"JSON parsing failed for response: {raw_text[:500]}")
        raise ParseError(raw_text, attempts)
