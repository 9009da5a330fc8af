"""
Structured JSON logger for the shopping assistant.

Every entry is a single JSON line with:
- timestamp (ISO 8601, UTC)
- level
- logger name
- event_type (model_call, tool_call, chat_complete, chat_fallback, ...)
- message (human-readable)
- context (structured data: store_id, tool name, latency, ...)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from storefront.config import get_config


class StructuredLogger:
    """JSON structured logger for assistant and tool events."""

    def __init__(self, name: str = "storefront", log_level: Optional[str] = None):
        self.name = name
        level = getattr(logging, (log_level or get_config().log_level).upper(), logging.INFO)
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
        self.logger.propagate = False

    def _log(self, level: int, event_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": logging.getLevelName(level),
            "logger": self.name,
            "event_type": event_type,
            "message": message,
        }
        if context:
            entry["context"] = context
        self.logger.log(level, json.dumps(entry, default=str))

    def debug(self, event_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, event_type, message, context)

    def info(self, event_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, event_type, message, context)

    def warning(self, event_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, event_type, message, context)

    def error(self, event_type: str, message: str, context: Optional[Dict[str, Any]] = None):
        self._log(logging.ERROR, event_type, message, context)

    # Assistant events

    def log_model_call(self, store_id: str, round_index: int, latency_ms: float,
                       tool_calls: int, tokens: int):
        """Log one language-model invocation."""
        self.info(
            "model_call",
            f"Model replied with {tool_calls} tool call(s)",
            {
                "store_id": store_id,
                "round": round_index,
                "latency_ms": round(latency_ms, 2),
                "tool_calls": tool_calls,
                "tokens": tokens,
            },
        )

    def log_tool_call(self, tool_name: str, call_id: Optional[str], store_id: str,
                      success: bool, latency_ms: float, error: Optional[str] = None):
        """Log one tool execution."""
        context: Dict[str, Any] = {
            "tool": tool_name,
            "call_id": call_id,
            "store_id": store_id,
            "success": success,
            "latency_ms": round(latency_ms, 2),
        }
        if error:
            context["error"] = error
        self.info("tool_call", f"{tool_name} -> {'ok' if success else 'failed'}", context)

    def log_error(self, error_type: str, error_message: str, stack_trace: Optional[str] = None,
                  **context: Any):
        """Log an error with optional stack trace."""
        ctx: Dict[str, Any] = {"error_type": error_type, "error_message": error_message, **context}
        if stack_trace:
            ctx["stack_trace"] = stack_trace
        self.error("error", f"{error_type}: {error_message}", ctx)
