"""
Donor Finder - Main FastAPI Application.

Serves the single donor page and the HTMX partials behind its controls:
the donor grid (re-rendered on every filter change and polled while donors
are loading) and the donor card (re-rendered after a help request).
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Cookie, FastAPI, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .api_client import users_client
from .config import settings
from .domain import ALL_GROUPS, BLOOD_GROUP_CHOICES, BloodGroup, count_available
from .exceptions import ValidationException
from .logging_config import SERVICE_NAME, get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .middleware import (
    PerformanceMonitoringMiddleware,
    PrometheusMiddleware,
    RequestLoggingMiddleware,
)
from .session import DonorSession, SessionStore

setup_logging(
    log_level=settings.LOG_LEVEL,
    service_name=SERVICE_NAME,
    use_json=settings.LOG_JSON,
)
logger = get_logger(__name__)

session_store = SessionStore(max_sessions=settings.MAX_SESSIONS)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Logs the effective configuration on startup; on shutdown cancels pending
    donor loads and closes the users API client.
    """
    logger.info("=" * 80)
    logger.info("Starting Donor Finder")
    logger.info("=" * 80)
    logger.info(
        "Configuration loaded",
        extra={
            "extra_fields": {
                "app_name": settings.APP_NAME,
                "debug_mode": settings.DEBUG,
                "log_level": settings.LOG_LEVEL,
                "users_api_url": settings.USERS_API_URL,
                "request_timeout": settings.REQUEST_TIMEOUT,
                "max_sessions": settings.MAX_SESSIONS,
                "host": settings.HOST,
                "port": settings.PORT,
            }
        },
    )

    yield

    logger.info("Shutting down Donor Finder")
    await session_store.close()
    await users_client.close()
    logger.info("HTTP client closed")


app = FastAPI(
    title="Donor Finder",
    description="Community blood donor finder",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add middleware (order matters - first added is last executed)
app.add_middleware(PerformanceMonitoringMiddleware, slow_request_threshold_ms=1000.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)

BASE_PATH = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_PATH / "templates"))

try:
    app.mount(
        "/static",
        StaticFiles(directory=str(BASE_PATH / "static")),
        name="static",
    )
except RuntimeError:
    logger.warning("Static directory not found - serving without styles")


@app.exception_handler(ValidationException)
async def validation_exception_handler(
    request: Request, exc: ValidationException
) -> JSONResponse:
    logger.info(
        "Rejected invalid input",
        extra={
            "extra_fields": {
                "field": exc.field_name,
                "value": exc.value,
                "path": request.url.path,
            }
        },
    )
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "field": exc.field_name,
            "message": exc.message,
        },
    )


def _parse_group(value: str) -> str:
    """Accept ``"All"`` or a blood group string, raising ValidationException otherwise."""
    if value == ALL_GROUPS:
        return value
    return BloodGroup.parse(value).value


def _set_session_cookie(response: Response, session: DonorSession) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        httponly=True,
        samesite="lax",
    )


def _grid_context(session: DonorSession) -> Dict[str, Any]:
    filtered = session.filtered_donors()
    return {
        "state": session.view_state().value,
        "donors": filtered,
        "available_count": count_available(filtered),
        "request_status": session.request_status,
    }


@app.get(
    "/",
    response_class=HTMLResponse,
    tags=["Pages"],
    summary="Donor page",
    description="Open a new donor page session and start loading donors",
)
async def homepage(request: Request) -> HTMLResponse:
    """
    Render the donor page.

    Every visit starts a fresh session: donors are fetched again and
    previous help requests are forgotten.
    """
    session = session_store.create(users_client)

    response = templates.TemplateResponse(
        request=request,
        name="index.html",
        context={
            "app_name": settings.APP_NAME,
            "blood_groups": BLOOD_GROUP_CHOICES,
            "selected_group": session.selected_group,
            "city_search": session.city_search,
            **_grid_context(session),
        },
    )
    _set_session_cookie(response, session)
    return response


@app.get(
    "/donors",
    response_class=HTMLResponse,
    tags=["Donors"],
    summary="Donor grid partial",
    description="Apply filters and render the donor grid for HTMX",
)
async def donor_grid(
    request: Request,
    blood_group: str = Query(default=ALL_GROUPS, description="'All' or a blood group"),
    city: str = Query(default="", description="City search text"),
    session_id: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
) -> HTMLResponse:
    """
    Render the donor grid for the current filter selection.

    While donors are still loading the partial polls itself until the
    session has finished loading.
    """
    selected_group = _parse_group(blood_group)
    session, created = session_store.get_or_create(session_id, users_client)
    session.set_filters(selected_group=selected_group, city_search=city)

    context = _grid_context(session)
    logger.debug(
        "Rendering donor grid",
        extra={
            "extra_fields": {
                "session_id": session.session_id,
                "blood_group": selected_group,
                "city": city,
                "state": context["state"],
                "shown": len(context["donors"]),
            }
        },
    )

    response = templates.TemplateResponse(
        request=request,
        name="components/donor_grid.html",
        context={**context, "oob_count": True},
    )
    if created:
        _set_session_cookie(response, session)
    return response


@app.post(
    "/donors/{donor_id}/request",
    response_class=HTMLResponse,
    tags=["Donors"],
    summary="Request help",
    description="Mark a donor as requested and re-render its card",
)
async def request_donor_help(
    request: Request,
    donor_id: int,
    session_id: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
) -> HTMLResponse:
    """
    Register a help request and return the updated donor card.

    Requests for unavailable donors are ignored and the card is returned
    unchanged.
    """
    session, created = session_store.get_or_create(session_id, users_client)
    donor = session.find_donor(donor_id)

    if donor is None:
        logger.info(
            "Help request for unknown donor",
            extra={
                "extra_fields": {
                    "session_id": session.session_id,
                    "donor_id": donor_id,
                }
            },
        )
        response = HTMLResponse(
            content='<p class="state-text">Donor not found</p>', status_code=404
        )
    else:
        session.request_help(donor_id)
        response = templates.TemplateResponse(
            request=request,
            name="components/donor_card.html",
            context={
                "donor": donor,
                "requested": session.is_requested(donor_id),
            },
        )

    if created:
        _set_session_cookie(response, session)
    return response


@app.get(
    "/api/donors",
    tags=["Donors"],
    summary="Donor view as JSON",
    description="Filtered donors, available count and request status of the session",
)
async def donors_json(
    blood_group: str = Query(default=ALL_GROUPS),
    city: str = Query(default=""),
    session_id: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
) -> JSONResponse:
    selected_group = _parse_group(blood_group)
    session, created = session_store.get_or_create(session_id, users_client)
    session.set_filters(selected_group=selected_group, city_search=city)

    response = JSONResponse(content=session.snapshot())
    if created:
        _set_session_cookie(response, session)
    return response


@app.get(
    "/health",
    tags=["Health"],
    summary="Health check",
    description="Check service health and users API reachability",
)
async def health_check() -> Dict[str, Any]:
    """
    Report service health.

    Returns:
        ``{"status": "healthy" | "degraded", "service": ..., "dependencies": {...}}``
    """
    users_api_healthy = await users_client.health_check()

    return {
        "status": "healthy" if users_api_healthy else "degraded",
        "service": SERVICE_NAME,
        "active_sessions": len(session_store),
        "dependencies": {
            "users_api": "healthy" if users_api_healthy else "unhealthy",
        },
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()
