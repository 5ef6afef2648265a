"""FastAPI server exposing the orchestrator tools over HTTP.

Provides:
- GET /api/v1/tools: tool names, descriptions and payload schemas
- POST /api/v1/tools/{tool_name}: invoke a tool with a JSON payload
- GET /health: liveness and LLM mode
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from agentloom import __version__
from agentloom.api.tools import get_dispatcher
from agentloom.api.tools import router as tools_router
from agentloom.logging_config import configure_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager: configure logging and build the orchestrator."""
    configure_logging()
    dispatcher = get_dispatcher()
    logger.info(
        "agentloom %s serving %d tools (dry_run=%s)",
        __version__,
        len(dispatcher.tools()),
        dispatcher.orchestrator.executor.dry_run,
    )
    yield
    logger.info("agentloom shutting down")


# Create FastAPI app
app = FastAPI(
    title="agentloom",
    description="Agent execution and evolution engine",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(tools_router)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    dispatcher = get_dispatcher()
    mode = "dry_run" if dispatcher.orchestrator.executor.dry_run else "llm"
    return {"status": "healthy", "mode": mode}
