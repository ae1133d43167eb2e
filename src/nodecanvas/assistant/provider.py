"""Tool-calling provider protocol and the litellm implementation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import litellm


@dataclass(slots=True)
class ToolCallingResponse:
    """Text and tool calls from one model turn.

    Each tool call is ``{"name": str, "args": dict | str}``; ``args`` is the
    raw argument string when the model produced invalid JSON.
    """

    text: str = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


@runtime_checkable
class ToolCallingProvider(Protocol):
    """Protocol for providers that can answer with tool calls."""

    async def generate(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]],
        api_key: str,
    ) -> ToolCallingResponse:
        """Run one turn.

        Args:
            system: System instructions
            prompt: User message
            tools: Function-tool declarations
            api_key: Key to authenticate this attempt with

        Returns:
            ToolCallingResponse with the model's text and tool calls
        """
        ...


def _parse_arguments(raw: Any) -> dict[str, Any] | str:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return str(raw)
    return parsed if isinstance(parsed, dict) else str(raw)


class LiteLLMToolProvider:
    """Tool-calling provider backed by ``litellm.acompletion``.

    Usage:
        provider = LiteLLMToolProvider("gpt-4o")
        response = await provider.generate(system, prompt, TOOL_DECLARATIONS, key)
    """

    def __init__(self, model: str, *, api_base: str | None = None, **kwargs: Any) -> None:
        self._model = model
        self._api_base = api_base
        self._kwargs = kwargs

    @property
    def model(self) -> str:
        return self._model

    def _build_kwargs(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]],
        api_key: str,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "api_key": api_key,
            **self._kwargs,
        }
        if tools:
            kwargs["tools"] = tools
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def generate(
        self,
        system: str,
        prompt: str,
        tools: list[dict[str, Any]],
        api_key: str,
    ) -> ToolCallingResponse:
        response = await litellm.acompletion(**self._build_kwargs(system, prompt, tools, api_key))

        message = response.choices[0].message
        calls = [
            {"name": call.function.name, "args": _parse_arguments(call.function.arguments)}
            for call in getattr(message, "tool_calls", None) or []
        ]
        return ToolCallingResponse(text=message.content or "", tool_calls=calls)
