# taskflow/services/assistant.py
"""
Client for the external text assistant that breaks a task into steps.

The assistant is a collaborator, not part of the core: its answer is stored
verbatim on the task and never validated beyond shape. Failures never fail a
task operation; ``request_breakdown`` falls back to a fixed breakdown.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from taskflow.config.settings import Settings
from taskflow.exceptions import UpstreamDegraded

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a project manager assistant."

PLACEHOLDER_KEYS = {"", "mock-key", "your_openai_api_key_here"}

DEFAULT_BREAKDOWN: Dict[str, Any] = {
    "steps": [
        {"step": "Plan and analyze requirements", "estimateHours": "2", "difficulty": "medium"},
        {"step": "Design the solution", "estimateHours": "3", "difficulty": "medium"},
        {"step": "Implement the solution", "estimateHours": "5", "difficulty": "high"},
        {"step": "Test and verify", "estimateHours": "2", "difficulty": "medium"},
    ],
    "overallEstimateHours": 12,
    "suggestedPriority": "high",
}


def fallback_breakdown() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_BREAKDOWN)


def build_breakdown_prompt(title: str, description: str = None, due_date=None, tags: List[str] = None) -> str:
    return (
        "Break the following task into ordered actionable steps, estimate time in hours "
        "for each step with a difficulty (low/medium/high), and suggest a priority.\n\n"
        f'Task title: "{title}"\n'
        f'Description: "{description or "No description provided"}"\n'
        f'Due date: "{due_date.isoformat() if due_date else "No due date"}"\n'
        f'Tags: "{", ".join(tags) if tags else "None"}"\n\n'
        "Return JSON with: steps: [{step, estimateHours, difficulty}], "
        "overallEstimateHours, suggestedPriority"
    )


def parse_breakdown(raw: Optional[str]) -> Dict[str, Any]:
    """Decode an assistant answer; only the presence of a steps list is checked"""
    if not raw:
        raise UpstreamDegraded("Empty response from assistant")
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise UpstreamDegraded(f"Assistant returned invalid JSON: {e}") from e
    if not isinstance(parsed, dict) or not isinstance(parsed.get("steps"), list):
        raise UpstreamDegraded("Assistant response has no steps list")
    return parsed


class AssistantClient:
    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        timeout: float = None,
        client: OpenAI = None,
    ):
        self.api_key = (Settings.ASSISTANT["api_key"] if api_key is None else api_key).strip()
        self.model = model or Settings.ASSISTANT["model"]
        self.base_url = base_url or Settings.ASSISTANT["base_url"]
        self.timeout = timeout or Settings.ASSISTANT["timeout_seconds"]
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None or self.api_key not in PLACEHOLDER_KEYS

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def breakdown(self, title: str, description: str = None, due_date=None, tags: List[str] = None) -> Dict[str, Any]:
        if not self.enabled:
            raise UpstreamDegraded("Assistant API key is not configured")

        prompt = build_breakdown_prompt(title, description, due_date, tags)
        try:
            completion = self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            raise UpstreamDegraded(f"Assistant request failed: {e.__class__.__name__}") from e

        if not completion.choices:
            raise UpstreamDegraded("Assistant returned no choices")
        return parse_breakdown(completion.choices[0].message.content)


def request_breakdown(assistant, title: str, description: str = None, due_date=None, tags: List[str] = None) -> Dict[str, Any]:
    """Breakdown from the assistant, or the default breakdown when it is degraded"""
    try:
        return assistant.breakdown(title, description=description, due_date=due_date, tags=tags)
    except UpstreamDegraded as e:
        logger.warning(f"Assistant degraded, using default breakdown: {e.detail}")
        return fallback_breakdown()


_assistant: Optional[AssistantClient] = None


def get_assistant() -> AssistantClient:
    """FastAPI dependency returning the process-wide assistant client"""
    global _assistant
    if _assistant is None:
        _assistant = AssistantClient()
    return _assistant
