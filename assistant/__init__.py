"""
Assistant package for the storefront: the conversation brain.

Builds prompts, calls the language model, and drives the bounded
tool-calling loop against the storefront tool executor. All LLM calls live
here; HTTP and storage stay in the storefront package.
"""
from .llm_client import ChatModel, ModelReply, OpenAIChatModel, ToolCall
from .orchestrator import (
    AssistantTimeoutError,
    OrchestrationState,
    ProductFilter,
    ShoppingAssistant,
    StoreNotFoundError,
    process_chat,
)
from .prompts import FALLBACK_MESSAGE
