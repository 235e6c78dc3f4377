"""Narrative text generation for daily summaries and task drafting.

Generators are stateless. ``TemplateNarrativeGenerator`` formats the numbers
locally and never fails; ``HuggingFaceNarrativeGenerator`` asks a hosted chat
model and raises ``UpstreamError`` when the backend cannot answer. Callers
decide how to degrade.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from timetrack.config import settings

logger = logging.getLogger(__name__)

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_MINUTE = 60 * 1000


class UpstreamError(Exception):
    """The text-generation backend is unavailable or answered garbage."""


@dataclass
class NarrativeResult:
    text: str
    message: str


def format_time_spent(total_ms: int) -> str:
    hours = total_ms // MS_PER_HOUR
    minutes = (total_ms % MS_PER_HOUR) // MS_PER_MINUTE
    return f"{hours}h {minutes}m"


def build_narrative_input(summary) -> Dict[str, Any]:
    """Project a stored DailySummary onto the generator's input contract."""
    return {
        "completed_tasks": summary.completed_tasks,
        "in_progress_tasks": summary.in_progress_tasks,
        "pending_tasks": summary.pending_tasks,
        "total_time_spent": summary.total_time_spent,
        "tasks": [
            {
                "task_id": entry.task_id,
                "title": entry.task_title,
                "time_spent": entry.time_spent,
                "status": entry.status.value if entry.status else None,
            }
            for entry in summary.tasks
        ],
    }


class NarrativeGenerator(ABC):
    @abstractmethod
    async def generate_daily_summary(self, data: Dict[str, Any]) -> NarrativeResult:
        """Narrative for one day from ``build_narrative_input`` output."""

    @abstractmethod
    async def generate_task_title(self, user_input: str) -> NarrativeResult:
        """Short title drafted from free text."""

    @abstractmethod
    async def generate_task_description(self, title: str) -> NarrativeResult:
        """Plain-sentence description for a title."""


class TemplateNarrativeGenerator(NarrativeGenerator):
    async def generate_daily_summary(self, data: Dict[str, Any]) -> NarrativeResult:
        text = (
            f"You spent {format_time_spent(data['total_time_spent'])} working today. "
            f"Completed {data['completed_tasks']} tasks, "
            f"{data['in_progress_tasks']} tasks in progress, "
            f"and {data['pending_tasks']} tasks pending."
        )
        return NarrativeResult(text=text, message="Daily summary generated successfully")

    async def generate_task_title(self, user_input: str) -> NarrativeResult:
        return NarrativeResult(text=user_input.strip(), message="Task title taken from input")

    async def generate_task_description(self, title: str) -> NarrativeResult:
        return NarrativeResult(text=f'Description for "{title}"', message="Task description generated from title")


class HuggingFaceNarrativeGenerator(NarrativeGenerator):
    """Chat-completion client for the Hugging Face inference router."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        timeout: float = 15.0,
        max_tokens: int = 100,
        temperature: float = 0.7,
        attempts: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.attempts = attempts
        self.transport = transport

    async def _request(self, client: httpx.AsyncClient, prompt: str) -> str:
        response = await client.post(
            f"{self.base_url}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        response.raise_for_status()
        content = response.json()["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ValueError("empty completion")
        return content.strip()

    async def complete(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamError("HUGGING_FACE_API_KEY is not configured")

        last_error: Optional[Exception] = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.attempts + 1):
                try:
                    return await self._request(client, prompt)
                except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
                    last_error = e
                    logger.warning("Narrative backend attempt %d/%d failed: %s", attempt, self.attempts, e)
        raise UpstreamError(str(last_error)) from last_error

    async def generate_daily_summary(self, data: Dict[str, Any]) -> NarrativeResult:
        lines: List[str] = [
            f"- {task['title'] or 'Untitled task'}: {format_time_spent(task['time_spent'])} ({task['status']})"
            for task in data["tasks"]
        ]
        prompt = (
            "Write a short, encouraging summary of my work day in plain sentences. "
            f"I tracked {format_time_spent(data['total_time_spent'])} in total. "
            f"Completed tasks: {data['completed_tasks']}. "
            f"In progress: {data['in_progress_tasks']}. "
            f"Pending: {data['pending_tasks']}.\n"
            + "\n".join(lines)
        )
        text = await self.complete(prompt)
        return NarrativeResult(text=text, message="Daily summary generated successfully")

    async def generate_task_title(self, user_input: str) -> NarrativeResult:
        prompt = f'Given the user input: "{user_input}", generate a clear task title. Respond with just the title.'
        text = await self.complete(prompt)
        return NarrativeResult(text=text, message="Task title generated successfully")

    async def generate_task_description(self, title: str) -> NarrativeResult:
        prompt = (
            f'Generate a short and crisp task description for: "{title}". '
            "Return plain sentences only, without markdown or bullet points."
        )
        text = await self.complete(prompt)
        return NarrativeResult(text=text, message="Task description generated successfully")


def get_narrative_generator() -> NarrativeGenerator:
    """FastAPI dependency selecting the configured backend."""
    if settings.NARRATIVE_BACKEND == "huggingface":
        return HuggingFaceNarrativeGenerator(
            api_key=settings.HUGGING_FACE_API_KEY,
            model=settings.HUGGING_FACE_MODEL,
            base_url=settings.HUGGING_FACE_BASE_URL,
            timeout=settings.NARRATIVE_TIMEOUT_SECONDS,
            max_tokens=settings.NARRATIVE_MAX_TOKENS,
            temperature=settings.NARRATIVE_TEMPERATURE,
        )
    return TemplateNarrativeGenerator()
