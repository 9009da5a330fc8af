"""
Conversation orchestrator for the storefront shopping assistant.

Turns one chat message into a grounded answer:
1. Load store context (metadata only; the model must call filter_products)
2. Build system prompt + last N history messages + the new message
3. Call the model with the tool registry attached
4. While the model asks for tools (at most max_tool_rounds rounds):
   execute every call, append the results, call the model again
5. Extract the product filter from the last successful filter_products result
6. Log question/answer and token usage
7. Any failure along the way becomes a fixed fallback message

State machine:
    AWAITING_MODEL -> MODEL_RESPONDED -> FINAL | HAS_TOOL_CALLS
    HAS_TOOL_CALLS -> EXECUTING_TOOLS -> AWAITING_MODEL | CANCELLED
    CANCELLED -> FINAL
    FINAL -> DONE
"""
import json
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from storefront.catalog import count_active_products, get_store
from storefront.config import AssistantConfig, get_config
from storefront.models import Store
from storefront.schemas import ChatRequest, ChatResponse, FilterCriteria, ToolResult
from storefront.structured_logger import StructuredLogger
from storefront.tool_executor import ExecutionContext, execute_tool
from storefront.tool_schemas import get_all_tools_for_provider
from storefront.usage_logger import log_chat_exchange

from .llm_client import ChatModel, ModelReply, OpenAIChatModel
from .prompts import EMPTY_RESPONSE_MESSAGE, FALLBACK_MESSAGE, SYSTEM_PROMPT

logger = StructuredLogger("storefront.assistant")


class OrchestrationState(Enum):
    AWAITING_MODEL = "awaiting_model"
    MODEL_RESPONDED = "model_responded"
    HAS_TOOL_CALLS = "has_tool_calls"
    EXECUTING_TOOLS = "executing_tools"
    CANCELLED = "cancelled"
    FINAL = "final"
    DONE = "done"


class StoreNotFoundError(LookupError):
    pass


class AssistantTimeoutError(TimeoutError):
    pass


@dataclass
class ProductFilter:
    """
    UI product filter carried across tool rounds.

    product_ids stays None until a filter_products call succeeds; an empty
    successful result sets it to [] so the UI can show "no matches".
    """
    product_ids: Optional[List[str]] = None
    filter_applied: Optional[FilterCriteria] = None

    def update(self, tool_name: str, result: ToolResult) -> None:
        if tool_name != "filter_products" or not result.success:
            return
        self.product_ids = list(result.data.get("productIds") or [])
        self.filter_applied = FilterCriteria.model_validate(result.data.get("filterApplied") or {})


@dataclass
class OrchestrationRun:
    """Mutable bookkeeping for one request. Never outlives respond()."""
    store_id: str = ""
    states: List[OrchestrationState] = field(default_factory=list)
    tokens_used: int = 0
    model_calls: int = 0
    tool_rounds: int = 0
    product_filter: ProductFilter = field(default_factory=ProductFilter)

    def enter(self, state: OrchestrationState) -> None:
        self.states.append(state)

    @property
    def cancelled(self) -> bool:
        return OrchestrationState.CANCELLED in self.states


class ShoppingAssistant:
    """Store-scoped, tool-calling shopping assistant. One instance per request."""

    def __init__(self, db: Session, model: Optional[ChatModel] = None,
                 config: Optional[AssistantConfig] = None):
        self.db = db
        self.config = config or get_config()
        self.model = model
        self.tools = get_all_tools_for_provider("openai")
        self.last_run: Optional[OrchestrationRun] = None

    def respond(self, request: ChatRequest,
                should_stop: Optional[Callable[[], bool]] = None) -> ChatResponse:
        """
        Public entry point. Never raises: failures produce FALLBACK_MESSAGE.

        should_stop is polled after each round of tool execution; when it
        returns True the follow-up model call is skipped.
        """
        run = OrchestrationRun(store_id=request.store_id)
        self.last_run = run
        try:
            answer = self._orchestrate(run, request, should_stop)
        except Exception as e:
            logger.log_error(
                type(e).__name__,
                str(e),
                stack_trace=traceback.format_exc(),
                store_id=request.store_id,
                user_id=request.user_id,
            )
            logger.warning("chat_fallback", "Returning fallback message", {"store_id": request.store_id})
            self.db.rollback()
            log_chat_exchange(self.db, request.store_id, request.user_id, request.message,
                              FALLBACK_MESSAGE, run.tokens_used)
            run.enter(OrchestrationState.DONE)
            return ChatResponse(message=FALLBACK_MESSAGE)

        # Logging failures are isolated from the answer the user already has
        log_chat_exchange(self.db, request.store_id, request.user_id, request.message,
                          answer, run.tokens_used)
        run.enter(OrchestrationState.DONE)
        logger.info(
            "chat_complete",
            "Assistant answered",
            {
                "store_id": request.store_id,
                "model_calls": run.model_calls,
                "tool_rounds": run.tool_rounds,
                "tokens_used": run.tokens_used,
                "cancelled": run.cancelled,
                "product_ids": None if run.product_filter.product_ids is None
                else len(run.product_filter.product_ids),
            },
        )
        return ChatResponse(
            message=answer,
            product_ids=run.product_filter.product_ids,
            filter_applied=run.product_filter.filter_applied,
        )

    def _orchestrate(self, run: OrchestrationRun, request: ChatRequest,
                     should_stop: Optional[Callable[[], bool]]) -> str:
        deadline = time.monotonic() + self.config.request_timeout_seconds

        store = get_store(self.db, request.store_id)
        if store is None:
            raise StoreNotFoundError(f"Store not found: {request.store_id}")

        context = ExecutionContext(
            store_id=request.store_id,
            user_id=request.user_id,
            user_role=request.user_role,
        )
        messages = self.build_messages(store, request)

        reply = self._call_model(run, messages, deadline)
        while reply.wants_tools and run.tool_rounds < self.config.max_tool_rounds:
            run.tool_rounds += 1
            run.enter(OrchestrationState.HAS_TOOL_CALLS)
            messages.append(reply.as_message())

            run.enter(OrchestrationState.EXECUTING_TOOLS)
            for call in reply.tool_calls:
                result = execute_tool(self.db, call.name, call.arguments, context, call_id=call.id)
                run.product_filter.update(call.name, result)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": result.to_content()})

            if should_stop is not None and should_stop():
                run.enter(OrchestrationState.CANCELLED)
                logger.info("chat_cancelled", "Skipping model recall", {"store_id": request.store_id,
                                                                          "round": run.tool_rounds})
                break
            reply = self._call_model(run, messages, deadline)

        if reply.wants_tools and run.tool_rounds >= self.config.max_tool_rounds:
            logger.warning(
                "tool_round_limit",
                "Stopped with tool calls still pending",
                {"store_id": request.store_id, "rounds": run.tool_rounds,
                 "pending": [c.name for c in reply.tool_calls]},
            )

        run.enter(OrchestrationState.FINAL)
        return reply.content or EMPTY_RESPONSE_MESSAGE

    def _call_model(self, run: OrchestrationRun, messages: List[Dict[str, Any]],
                    deadline: float) -> ModelReply:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AssistantTimeoutError("Request deadline exceeded before model call")

        if self.model is None:
            # Built lazily so a missing API key lands in the fallback path
            self.model = OpenAIChatModel(self.config)

        run.enter(OrchestrationState.AWAITING_MODEL)
        start = time.time()
        reply = self.model.complete(
            list(messages),
            self.tools,
            timeout=min(self.config.model_timeout_seconds, remaining),
        )
        run.model_calls += 1
        run.tokens_used += reply.total_tokens
        run.enter(OrchestrationState.MODEL_RESPONDED)

        logger.log_model_call(
            run.store_id,
            run.model_calls,
            (time.time() - start) * 1000,
            len(reply.tool_calls),
            reply.total_tokens,
        )
        return reply

    def build_messages(self, store: Store, request: ChatRequest) -> List[Dict[str, Any]]:
        """System prompt, the most recent history, then the new user message."""
        store_context = {
            "name": store.store_name,
            "description": store.description,
            "city": store.city,
            "category": store.category,
            "businessHours": store.business_hours,
            "productCount": count_active_products(self.db, store.id),
        }
        messages: List[Dict[str, Any]] = [{
            "role": "system",
            "content": SYSTEM_PROMPT.format(
                store_name=store.store_name,
                store_context=json.dumps(store_context, indent=2),
            ),
        }]

        limit = self.config.history_limit
        recent = request.history[-limit:] if limit > 0 else []
        for msg in recent:
            messages.append({"role": "user" if msg.role == "user" else "assistant", "content": msg.content})

        messages.append({"role": "user", "content": request.message})
        return messages


def process_chat(db: Session, request: ChatRequest, model: Optional[ChatModel] = None,
                 should_stop: Optional[Callable[[], bool]] = None) -> ChatResponse:
    """Answer one chat request. Never raises."""
    return ShoppingAssistant(db, model=model).respond(request, should_stop=should_stop)
