"""FastMCP instance and application lifespan."""

from __future__ import annotations

import logging

from fastmcp import FastMCP
from fastmcp.server.lifespan import lifespan

from ..runner import DiffSession, DiffWorker

logger = logging.getLogger(__name__)


@lifespan
async def app_lifespan(server: FastMCP):
    """Start the diff worker and the caller session on startup."""
    logger.info("Text compare MCP server starting...")

    # Worker is stopped and joined on every exit path
    with DiffWorker() as worker:
        session = DiffSession(worker)
        logger.info("Text compare MCP server started")
        try:
            yield {"worker": worker, "session": session}
        finally:
            logger.info("Text compare MCP server stopped")


mcp = FastMCP("text-compare-mcp", lifespan=app_lifespan)
