"""
Language-model client used by the orchestrator.

ChatModel is the seam the orchestrator talks to; OpenAIChatModel implements
it with the OpenAI chat-completions function-calling API. Replies are
normalized into ModelReply so the orchestration loop does not depend on the
SDK's response classes.
"""
from typing import Any, Dict, List, Optional

from openai import OpenAI
from pydantic import BaseModel, Field

from storefront.config import AssistantConfig, get_config


class ToolCall(BaseModel):
    """One tool invocation requested by the model."""
    id: str
    name: str
    arguments: str = Field(default="{}", description="Raw JSON text, validated by the executor")

    def as_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class ModelReply(BaseModel):
    content: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    total_tokens: int = 0

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)

    def as_message(self) -> Dict[str, Any]:
        """Assistant message to append to the conversation before the tool results."""
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [call.as_wire() for call in self.tool_calls]
        return message


class ChatModel:
    """Interface for a tool-calling chat model."""

    def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
        timeout: Optional[float] = None,
    ) -> ModelReply:
        raise NotImplementedError


class OpenAIChatModel(ChatModel):
    def __init__(self, config: Optional[AssistantConfig] = None, client: Optional[OpenAI] = None):
        self.config = config or get_config()
        # Relies on OPENAI_API_KEY; retries are off so the request deadline holds.
        self.client = client or OpenAI(timeout=self.config.model_timeout_seconds, max_retries=0)

    def complete(self, messages, tools, timeout=None) -> ModelReply:
        completion = self.client.chat.completions.create(
            model=self.config.openai_model,
            messages=messages,
            tools=tools,
            tool_choice="auto",
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            timeout=timeout or self.config.model_timeout_seconds,
        )
        choice = completion.choices[0].message
        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}")
            for tc in (choice.tool_calls or [])
        ]
        total_tokens = completion.usage.total_tokens if completion.usage else 0
        return ModelReply(content=choice.content, tool_calls=tool_calls, total_tokens=total_tokens)
