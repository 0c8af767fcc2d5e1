import logging

import uvicorn
from fastapi import APIRouter, FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app import crud, schemas
from backend.app.auth import require_admin
from backend.app.metrics import MetricsMiddleware
from shared.config import settings
from shared.store import EventStore, format_timestamp, get_store, utcnow

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Event tracking and dashboard analytics for the business directory",
    version=settings.APP_VERSION,
)

app.add_middleware(MetricsMiddleware)

app.state.store = EventStore()

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

ERROR_RESPONSES = {500: {"model": schemas.ErrorResponse}}


@router.post("/track", response_model=schemas.TrackResponse, responses=ERROR_RESPONSES)
async def track_event(
        payload: schemas.TrackRequest,
        request: Request,
        store: EventStore = Depends(get_store)
):
    """
    Record a tracking event.

    The server stamps the event timestamp; any caller-supplied timestamp is
    overwritten. Events carrying a businessId also bump that business's counters.
    """
    try:
        properties = dict(payload.properties)
        if settings.TRACK_CLIENT_INFO:
            properties["ip"] = request.client.host if request.client else None
            properties["userAgent"] = request.headers.get("user-agent")
        return crud.track_event(store, payload.event, properties)
    except Exception:
        logger.exception("Analytics tracking error")
        return JSONResponse(status_code=500, content={"error": "Failed to track event"})


@router.get("/dashboard/{business_id}", response_model=schemas.DashboardResponse, responses=ERROR_RESPONSES)
def get_dashboard(
        business_id: str,
        params: schemas.DashboardQueryParams = Depends(),
        store: EventStore = Depends(get_store)
):
    """
    Get dashboard metrics for one business.

    Recomputes totals, rankings and histograms from the raw event log over the
    requested window. Unknown businesses get an all-zero bundle.
    """
    try:
        metrics = crud.get_business_metrics(store, business_id, params.timeframe)
        return schemas.DashboardResponse(metrics=metrics, timeframe=params.timeframe)
    except Exception:
        logger.exception("Analytics dashboard error")
        return JSONResponse(status_code=500, content={"error": "Failed to get analytics data"})


@router.get("/platform", response_model=schemas.PlatformResponse, responses=ERROR_RESPONSES)
def get_platform(
        store: EventStore = Depends(get_store),
        principal: schemas.Principal = Depends(require_admin)
):
    """
    Get platform-wide analytics. Admin only.
    """
    try:
        platform_metrics = crud.get_platform_metrics(store)
        return schemas.PlatformResponse(platform_metrics=platform_metrics)
    except Exception:
        logger.exception("Platform analytics error")
        return JSONResponse(status_code=500, content={"error": "Failed to get platform analytics"})


app.include_router(router)


@app.get("/api/health")
def health_check():
    return {
        "status": "OK",
        "timestamp": format_timestamp(utcnow()),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/")
def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "Online",
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        logger.warning(f"404 - Route not found: {request.url.path}")
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Server error on {request.method} {request.url.path}: {exc}")
    message = str(exc) if settings.ENVIRONMENT == "development" else "Internal server error"
    return JSONResponse(status_code=500, content={"error": "Something went wrong!", "message": message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if request.url.path == f"{router.prefix}/track":
        logger.error(f"Analytics tracking error: malformed body ({len(exc.errors())} validation errors)")
        return JSONResponse(status_code=500, content={"error": "Failed to track event"})
    return JSONResponse(status_code=422, content={"error": "Invalid request parameters"})


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
