"""
AI analysis provider.

Calls an OpenAI-compatible chat completions endpoint and normalizes the
reply into the {analysis, suggestions, microHabits, motivationalTip} shape.
"""

import json
import logging
import re
from typing import Any, Dict

import requests

from screendiary.core.config import Config
from screendiary.core.errors import TransportError
from screendiary.core.schemas import AnalysisResult
from screendiary.core.utils import format_time_to_hours, parse_string_list

logger = logging.getLogger(__name__)

MAX_REFLECTION_CHARS = 2000

SYSTEM_PROMPT = (
    "You are a gentle, non-judgmental digital wellness coach. "
    "Respond ONLY with a single JSON object."
)


class ProviderError(TransportError):
    """AI provider unavailable or returned something unusable."""


def build_prompt(payload: Dict[str, Any]) -> str:
    """Describe the draft entry for the model."""
    apps = parse_string_list(payload.get("apps"))
    tags = parse_string_list(payload.get("tags"))
    reflection = str(payload.get("reflection") or "")[:MAX_REFLECTION_CHARS]

    try:
        minutes = int(payload.get("screenTimeMinutes") or 0)
    except (TypeError, ValueError):
        minutes = 0

    return (
        "Analyze today's digital consumption entry.\n\n"
        f"Apps used: {', '.join(apps) or 'none listed'}\n"
        f"Screen time: {minutes} minutes ({format_time_to_hours(minutes)})\n"
        f"Mood tags: {', '.join(tags) or 'none'}\n"
        f"Reflection: \"{reflection}\"\n\n"
        "Respond with a JSON object with these exact keys:\n"
        "- 'analysis': 2-3 sentences about the usage pattern.\n"
        "- 'suggestions': a list of 3 practical suggestions.\n"
        "- 'microHabits': a list of 2 tiny habits to try tomorrow.\n"
        "- 'motivationalTip': one short encouraging sentence.\n"
    )


def extract_json(raw: str) -> Dict[str, Any]:
    """
    Extract the first JSON object from raw model output.

    Returns {} if nothing parseable is found.
    """
    if not raw:
        return {}
    match = re.search(r"\{.*\}", raw, re.DOTALL)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


class AnalysisProvider:
    """Text-generation backend for entry analysis."""

    def __init__(self, config: Config):
        self.config = config
        self.api_url = config.ai_api_url
        self.api_key = config.ai_api_key
        self.model = config.ai_model

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_url)

    def analyze(self, payload: Dict[str, Any]) -> AnalysisResult:
        """
        Ask the model for guidance.

        Raises ProviderError on any failure.
        """
        if not self.is_configured:
            raise ProviderError("AI provider not configured")

        try:
            response = requests.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": build_prompt(payload)},
                    ],
                    "temperature": 0.7,
                },
                timeout=self.config.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"AI provider request failed: {e}")
            raise ProviderError(f"AI provider request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("AI provider returned invalid JSON") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("AI provider returned an unexpected shape") from e

        parsed = extract_json(content)
        if not parsed.get("analysis"):
            logger.warning(f"AI reply had no analysis: {content[:200]!r}")
            raise ProviderError("AI reply could not be parsed")

        result = AnalysisResult.from_payload(parsed)
        logger.info(
            f"AI analysis generated ({len(result.suggestions)} suggestions, "
            f"{len(result.micro_habits)} micro habits)"
        )
        return result
