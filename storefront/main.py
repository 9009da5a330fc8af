"""
Storefront Assistant - Main FastAPI Application

Exposes the AI shopping assistant to the storefront UI, plus read-only
views of the tool registry and a user's past assistant queries.
"""

import os
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

from assistant import ChatModel, process_chat
from storefront.database import Base, engine, get_db
from storefront.schemas import AIQueryEntry, ChatRequest, ChatResponse
from storefront.structured_logger import StructuredLogger
from storefront.tool_schemas import ToolCategory, get_all_tools_for_provider
from storefront.usage_logger import get_user_query_history

logger = StructuredLogger("storefront.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup. In production, use migrations instead."""
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("startup", f"Could not run create_all: {e}. Tables should already exist.")
    yield


app = FastAPI(
    title="Storefront Assistant",
    description="Store-scoped AI shopping assistant with tool calling over the product catalog",
    version="1.0.0",
    lifespan=lifespan,
)

# In production, configure this more strictly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LatencyLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration for every non-OPTIONS request."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)
        t0 = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request",
            f"{request.method} {request.url.path} -> {response.status_code}",
            {
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - t0) * 1000, 1),
            },
        )
        return response


app.add_middleware(LatencyLoggingMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return a generic 500."""
    logger.log_error(type(exc).__name__, str(exc), stack_trace=traceback.format_exc(),
                     path=request.url.path)
    is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
    detail = str(exc) if is_dev else "Internal server error"
    return JSONResponse(status_code=500, content={"detail": detail, "type": type(exc).__name__})


def get_chat_model() -> Optional[ChatModel]:
    """
    Dependency for the language model. None means the assistant builds the
    default OpenAI client itself; tests override this with a scripted model.
    """
    return None


#
# Health
#

@app.get("/health")
def health_check() -> Dict[str, str]:
    return {"status": "ok"}


#
# Assistant
#

@app.post(
    "/api/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
)
def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    model: Optional[ChatModel] = Depends(get_chat_model),
) -> ChatResponse:
    """
    Answer one chat message for a store.

    Always 200 for a valid body: failures inside the assistant come back as
    its fallback message.
    """
    return process_chat(db, request, model=model)


@app.get("/api/chat/history/{user_id}", response_model=List[AIQueryEntry])
def chat_history(user_id: str, db: Session = Depends(get_db)) -> List[AIQueryEntry]:
    """Last 50 assistant queries for a user, newest first."""
    return [AIQueryEntry.model_validate(q) for q in get_user_query_history(db, user_id)]


@app.get("/api/tools")
def list_tools(provider: str = "openai", category: Optional[ToolCategory] = None) -> Dict[str, Any]:
    """The tool registry as offered to the given model provider, optionally one category only."""
    try:
        tools = get_all_tools_for_provider(provider, category=category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"provider": provider, "category": category.value if category else None, "tools": tools}


#
# Development Server
#

if __name__ == "__main__":
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=True)
