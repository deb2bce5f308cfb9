"""Health check endpoints. No authentication; used for liveness and readiness probes."""

from fastapi import APIRouter, Request

from rbac.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(request: Request) -> ReadinessResponse:
    """Report resolution cache state. An unavailable Redis backend degrades, it does not fail."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        return ReadinessResponse(cache="disabled")
    state = "enabled" if cache.backend.is_available() else "unavailable"
    return ReadinessResponse(status="ok" if state == "enabled" else "degraded", cache=state)
