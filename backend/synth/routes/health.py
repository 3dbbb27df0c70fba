"""
Synth Backend: Health Check Route
==================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Reports whether the application store is wired up, how many records
       each entity kind holds, and how many scheduled tasks are pending.
Who:   Called by container health checks, load balancers and monitoring.

Status levels:
    - healthy:   Store initialised (HTTP 200)
    - degraded:  Store missing, e.g. lifespan did not run (HTTP 200, flagged)
"""

import logging
import time

from fastapi import APIRouter, Request

from synth import __version__
from synth.dependencies import get_store
from synth.exceptions import SynthError
from synth.schemas.health import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialised once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its in-memory store. "
        "Used by health checks and load balancers to determine if the service "
        "can handle traffic."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    """
    Check the health of the service and its store.

    The store probe is a pair of counting reads; it never mutates state.
    """
    try:
        store = get_store(request)
    except SynthError as e:
        logger.warning("Health check: %s", e.message)
        return HealthResponse(
            status="degraded",
            version=__version__,
            store="missing",
            uptime_seconds=round(time.time() - _start_time, 2),
        )

    return HealthResponse(
        status="healthy",
        version=__version__,
        store="ready",
        records=store.count_records(),
        pending_tasks=store.count_pending_tasks(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
