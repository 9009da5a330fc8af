"""
Usage and audit logging for the shopping assistant.

Append-only rows:
- ai_queries: question/answer pairs per user
- token_usage: model tokens per store and user
- activity_logs: cart intents recorded by the assistant tools
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models import AIQuery, ActivityLog, TokenUsage
from storefront.structured_logger import StructuredLogger

logger = StructuredLogger("storefront.usage")

QUERY_HISTORY_LIMIT = 50


def record_chat_exchange(
    db: Session,
    store_id: str,
    user_id: str,
    question: str,
    answer: str,
    tokens_used: int,
) -> None:
    """Insert the query row and the token usage row in one commit."""
    db.add(AIQuery(user_id=user_id, question=question, answer=answer))
    db.add(TokenUsage(store_id=store_id, user_id=user_id, tokens_used=tokens_used))
    db.commit()


def log_chat_exchange(
    db: Session,
    store_id: str,
    user_id: str,
    question: str,
    answer: str,
    tokens_used: int,
) -> bool:
    """
    Best-effort variant of record_chat_exchange.

    Returns False (and rolls back) when the write fails; never raises a
    database error to the caller.
    """
    try:
        record_chat_exchange(db, store_id, user_id, question, answer, tokens_used)
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "usage_log_failed",
            f"Failed to log chat exchange: {e}",
            {"store_id": store_id, "user_id": user_id, "tokens_used": tokens_used},
        )
        return False


def record_ai_query(
    db: Session,
    user_id: str,
    question: str,
    answer: str,
    product_id: Optional[str] = None,
) -> AIQuery:
    query = AIQuery(user_id=user_id, question=question, answer=answer, product_id=product_id)
    db.add(query)
    db.commit()
    return query


def record_activity(
    db: Session,
    user_id: str,
    action_type: str,
    target_id: Optional[str],
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    entry = ActivityLog(user_id=user_id, action_type=action_type, target_id=target_id, details=details)
    db.add(entry)
    db.commit()
    return entry


def get_user_query_history(db: Session, user_id: str, limit: int = QUERY_HISTORY_LIMIT) -> List[AIQuery]:
    """Most recent assistant queries for a user, newest first."""
    return (
        db.query(AIQuery)
        .filter(AIQuery.user_id == user_id)
        .order_by(AIQuery.created_at.desc(), AIQuery.id.desc())
        .limit(limit)
        .all()
    )
