"""
LLM-based hot issue analyzer.

Uses an OpenAI-compatible API with structured output to turn a ticket
(title, rich-text description, images) into a tag proposal.

The structured output is not trusted as-is: every response goes through
normalize_analysis, which clamps the confidence and fills missing fields
with fixed fallbacks instead of rejecting the result.
"""

import logging
import math
from typing import Any, Optional, Sequence

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from .config import AnalysisSettings, LLMConfig
from .models import AnalysisResult, ExistingTag
from .prompts import build_system_prompt, build_user_content


logger = logging.getLogger(__name__)


class AnalysisServiceError(Exception):
    """The completion service failed or returned no usable result."""
    pass


class HotIssueAnalysisResponse(BaseModel):
    """Structured output schema requested from the completion service."""

    name: Optional[str] = Field(
        default=None,
        description="Tag category name; reuse an existing tag name when similar"
    )
    description: Optional[str] = Field(
        default=None,
        description="Short single-line phrase with at least one concrete entity"
    )
    confidence: Optional[float] = Field(
        default=None,
        description="Confidence score from 0 to 1"
    )
    reasoning: Optional[str] = Field(
        default=None,
        description="Brief justification or the missing information"
    )


def clamp_confidence(value: Optional[float], default: float = 0.5) -> float:
    """
    Clamp a raw confidence into [0, 1].

    Args:
        value: Raw value from the model (None when missing).
        default: Value used when the model omitted the field or sent NaN/inf.

    Returns:
        Confidence within [0, 1].
    """
    if value is None or not math.isfinite(value):
        value = default
    return min(max(float(value), 0.0), 1.0)


def normalize_analysis(
    raw: HotIssueAnalysisResponse,
    settings: Optional[AnalysisSettings] = None,
) -> AnalysisResult:
    """
    Validate a structured response and correct it where needed.

    Missing or blank name/description fall back to fixed labels, confidence
    is clamped, reasoning passes through. Over-long text is logged, never
    truncated.

    Args:
        raw: Parsed response from the completion service.
        settings: Policy constants.

    Returns:
        Normalized AnalysisResult.
    """
    settings = settings or AnalysisSettings()

    name = (raw.name or "").strip() or settings.fallback_name
    description = (raw.description or "").strip() or settings.fallback_description
    confidence = clamp_confidence(raw.confidence, settings.default_confidence)

    if raw.confidence is not None and confidence != raw.confidence:
        logger.warning(f"Confidence {raw.confidence} out of range, clamped to {confidence}")
    if len(description) > settings.max_description_length:
        logger.warning(
            f"Description exceeds {settings.max_description_length} characters "
            f"({len(description)}): '{description}'"
        )
    if raw.reasoning and len(raw.reasoning) > settings.max_reasoning_length:
        logger.warning(
            f"Reasoning exceeds {settings.max_reasoning_length} characters ({len(raw.reasoning)})"
        )

    return AnalysisResult(
        name=name,
        description=description,
        confidence=confidence,
        reasoning=raw.reasoning,
    )


class HotIssueAnalyzer:
    """
    Client for the structured-completion service.

    Configuration is passed in at construction so tests can substitute
    the OpenAI client.
    """

    def __init__(
        self,
        config: LLMConfig,
        settings: Optional[AnalysisSettings] = None,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            config: LLM configuration (credential, model, base URL).
            settings: Policy constants for prompts and validation.
            client: Pre-built OpenAI client; created from config when omitted.
        """
        self._config = config
        self._settings = settings or AnalysisSettings()

        if client is None:
            client_kwargs = {
                "api_key": config.api_key,
            }
            if config.api_base_url:
                client_kwargs["base_url"] = config.api_base_url
            client = OpenAI(**client_kwargs)

        self._client = client
        logger.debug(f"Initialized analyzer with model: {config.model}")

    def build_messages(
        self,
        title: str,
        document: Any,
        existing_tags: Sequence[ExistingTag],
    ) -> list[dict[str, Any]]:
        """Build the system and user messages for one ticket."""
        return [
            {"role": "system", "content": build_system_prompt(existing_tags, self._settings)},
            {
                "role": "user",
                "content": build_user_content(title, document, self._settings.max_images),
            },
        ]

    def analyze(
        self,
        title: str,
        document: Any,
        existing_tags: Sequence[ExistingTag],
    ) -> AnalysisResult:
        """
        Analyze a ticket and propose a tag.

        Args:
            title: Ticket title.
            document: Rich-text ticket description.
            existing_tags: Current vocabulary ordered by usage.

        Returns:
            Normalized AnalysisResult.

        Raises:
            AnalysisServiceError: If the service call fails or returns nothing.
        """
        messages = self.build_messages(title, document, existing_tags)

        try:
            response = self._client.chat.completions.parse(
                model=self._config.model,
                temperature=self._config.temperature,
                messages=messages,
                response_format=HotIssueAnalysisResponse,
            )
        except OpenAIError as e:
            logger.error(f"Completion service error: {e}")
            raise AnalysisServiceError(f"Hot issue analysis failed: {e}") from e

        parsed = response.choices[0].message.parsed if response.choices else None
        if parsed is None:
            raise AnalysisServiceError("Completion service returned no structured result")

        result = normalize_analysis(parsed, self._settings)
        logger.debug(
            f"Analyzed '{title}': {result.name} / {result.description} "
            f"(confidence: {result.confidence:.2f})"
        )
        return result
