# llm.py
# Reasoning provider: the two model operations the agent depends on.
#
# generate_object() returns the decoded JSON as-is. Validating it against
# the tool registry is the caller's responsibility: provider output is
# never trusted to have the right shape.

import json
from collections.abc import Sequence
from typing import Any, Protocol

from openai import AsyncOpenAI

from task_agent.models import Message


class ReasonerError(Exception):
    """Raised when the model returns no usable content."""


class Reasoner(Protocol):
    async def generate_object(
        self,
        messages: Sequence[Message],
        system: str,
        schema: dict[str, Any],
        *,
        name: str,
    ) -> Any: ...

    async def generate_text(self, messages: Sequence[Message], system: str) -> str: ...


def _chat_messages(messages: Sequence[Message], system: str) -> list[dict[str, str]]:
    return [{"role": "system", "content": system}] + [m.model_dump() for m in messages]


class OpenAIReasoner:
    """
    Reasoner backed by the OpenAI chat completions API.

    `base_url` points the client at any OpenAI-compatible gateway.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._owns_client = client is None
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def _complete(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=messages,
            **kwargs,
        )
        message = response.choices[0].message
        if getattr(message, "refusal", None):
            raise ReasonerError(f"Model refused: {message.refusal}")
        content = (message.content or "").strip()
        if not content:
            raise ReasonerError("Model returned an empty response")
        return content

    async def generate_object(
        self,
        messages: Sequence[Message],
        system: str,
        schema: dict[str, Any],
        *,
        name: str,
    ) -> Any:
        content = await self._complete(
            _chat_messages(messages, system),
            response_format={
                "type": "json_schema",
                "json_schema": {"name": name, "schema": schema, "strict": False},
            },
        )
        try:
            return json.loads(content, strict=False)
        except json.JSONDecodeError as exc:
            raise ReasonerError(f"Model output is not valid JSON: {exc}") from exc

    async def generate_text(self, messages: Sequence[Message], system: str) -> str:
        return await self._complete(_chat_messages(messages, system))
