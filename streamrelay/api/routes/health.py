"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter, Response

from streamrelay import __version__
from streamrelay.core.logging import get_logger


router = APIRouter()
logger = get_logger(__name__)


@router.get("/health/live")
async def liveness_probe(response: Response) -> dict[str, Any]:
    """Liveness probe.

    Only verifies that the application process is serving requests.
    """
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"

    logger.debug("liveness_probe_request")

    return {
        "status": "pass",
        "version": __version__,
        "output": "Application process is running",
    }
