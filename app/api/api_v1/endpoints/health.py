from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.database import timed_health_check

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Database reachability plus the most recent monitoring sample."""
    healthy, response_time = await run_in_threadpool(timed_health_check)
    monitor = getattr(request.app.state, "db_monitor", None)
    latest = monitor.get_latest_metrics() if monitor is not None else None

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "database": "connected" if healthy else "disconnected",
            "responseTime": f"{response_time:.0f}ms",
            "latestMetrics": latest.to_dict() if latest is not None else None
        }
    )
