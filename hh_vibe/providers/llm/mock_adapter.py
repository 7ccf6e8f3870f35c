"""Scriptable in-memory provider for tests.

Each TaskType can be given a canned answer or an error. Unscripted tasks
answer with a plain-text placeholder, which is deliberately not JSON, so
JSON call sites exercise their fallbacks unless a test scripts them.
"""

from typing import Any

from hh_vibe.providers.errors import ProviderError
from hh_vibe.providers.llm.base import LLMMessage, LLMProvider, LLMResponse, TaskType


class MockLLMProvider(LLMProvider):
    """Records every call and replays scripted answers per task.

    Attributes:
        responses: Canned completion text by task.
        errors: Errors raised by task; take precedence over responses.
        default_error: Raised for any task that has no canned response.
        calls: One dict per call with ``messages``, ``task`` and ``kwargs``.
        last_task: Task of the most recent call.
    """

    def __init__(
        self,
        responses: dict[TaskType, str] | None = None,
        default_error: ProviderError | None = None,
    ) -> None:
        # No ProviderConfig: nothing here reads defaults or retry budgets
        self.config = None
        self.responses: dict[TaskType, str] = dict(responses or {})
        self.errors: dict[TaskType, ProviderError] = {}
        self.default_error = default_error
        self.calls: list[dict[str, Any]] = []
        self.last_task: TaskType | None = None

    @property
    def provider_name(self) -> str:
        return "mock"

    def get_model_for_task(self, _task: TaskType) -> str:
        return "mock-model"

    def set_response(self, task: TaskType, content: str) -> None:
        """Script ``task`` to answer with ``content``, clearing any error."""
        self.responses[task] = content
        self.errors.pop(task, None)

    def set_error(self, task: TaskType, error: ProviderError) -> None:
        """Script ``task`` to raise ``error``."""
        self.errors[task] = error

    def _reply_for(self, task: TaskType) -> str:
        if task in self.errors:
            raise self.errors[task]
        if task in self.responses:
            return self.responses[task]
        if self.default_error is not None:
            raise self.default_error
        return f"Mock response for {task.value}"

    async def complete(
        self,
        messages: list[LLMMessage],
        task: TaskType,
        max_tokens: int | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append(
            {
                "method": "complete",
                "messages": messages,
                "task": task,
                "kwargs": {
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "json_mode": json_mode,
                },
            }
        )
        self.last_task = task

        content = self._reply_for(task)
        return LLMResponse(
            content=content,
            model="mock-model",
            input_tokens=sum(len(m.content or "") for m in messages) // 4,
            output_tokens=len(content) // 4,
            finish_reason="stop",
            latency_ms=0.0,
        )

    def calls_for(self, task: TaskType) -> list[dict[str, Any]]:
        """Recorded calls for one task, oldest first."""
        return [c for c in self.calls if c["task"] == task]

    def assert_called_with_task(self, task: TaskType) -> None:
        """Fail unless some call used ``task``."""
        tasks_called = [c["task"] for c in self.calls]
        assert task in tasks_called, f"Expected {task}, got {tasks_called}"
