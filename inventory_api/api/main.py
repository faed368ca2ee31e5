from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_api.api.routes.auth import router as auth_router
from inventory_api.api.routes.dashboard import router as dashboard_router
from inventory_api.api.routes.inventory import router as inventory_router
from inventory_api.api.routes.orders import router as orders_router
from inventory_api.api.routes.products import router as products_router
from inventory_api.api.routes.reports import router as reports_router
from inventory_api.api.routes.suppliers import router as suppliers_router
from inventory_api.api.routes.tenants import router as tenants_router
from inventory_api.api.routes.users import router as users_router
from inventory_api.core.deps import Principal
from inventory_api.core.logging import bind_principal, configure_logging, correlation_id_var, tenant_id_var, user_id_var
from inventory_api.core.security import decode_token
from inventory_api.core.settings import DEV_JWT_SECRET, get_app_settings
from inventory_api.db.run_migrations import main as run_alembic
from inventory_api.db.seed import seed_all
from inventory_api.db.session import dispose_engine, get_async_session
from inventory_api.repositories.security import UserRepository
from inventory_api.schemas.common import ErrorInfo, ErrorResponse, MessageResponse
from inventory_api.schemas.realtime import WsEnvelope
from inventory_api.services.dashboard import DashboardService
from inventory_api.services.realtime import broadcast_manager

# Configure structured logging once at import
configure_logging()
logger = logging.getLogger(__name__)

settings = get_app_settings()

WS_UNAUTHORIZED = 4401

openapi_tags = [
    {"name": "Health", "description": "Liveness check."},
    {"name": "Auth", "description": "Registration, login and token rotation."},
    {"name": "Tenants", "description": "Tenant administration and statistics."},
    {"name": "Users", "description": "Profiles, avatars and user administration."},
    {"name": "Products", "description": "Product catalogue with stock levels."},
    {"name": "Inventory", "description": "Stock movements and the movement ledger."},
    {"name": "Orders", "description": "Sales orders and their stock effects."},
    {"name": "Suppliers", "description": "Suppliers and the products they deliver."},
    {"name": "Dashboard", "description": "Inventory overview, valuation and alerts."},
    {"name": "Reports", "description": "Sales analytics and generated report files (PDF/CSV/Excel)."},
    {"name": "WebSocket", "description": "Realtime dashboard channel usage."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation_id for logging and error responses.

    Tenant and user are bound later, once the bearer token has been resolved.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    token_tenant = tenant_id_var.set(None)
    token_user = user_id_var.set(None)
    request.state.correlation_id = corr
    request.state.tenant_id = None

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)
        tenant_id_var.reset(token_tenant)
        user_id_var.reset(token_user)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        tenant_id=getattr(request.state, "tenant_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Global handler for HTTPException to produce a standardized error envelope."""
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    response = _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Global handler for request validation errors with a standard structure."""
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=[{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()],
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Constraint violations that slipped past service checks (e.g. rows still referenced by orders)."""
    logger.warning("Integrity error: %s", exc.orig)
    return _build_error_response(
        request=request,
        status_code=409,
        error_type="conflict",
        message="The operation conflicts with existing data",
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all handler to avoid leaking stack traces and to return a structured error."""
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Check the JWT secret, run migrations and optional seeding on service startup.

    The default development secret is refused in production.
    """
    if settings.is_production and settings.JWT_SECRET_KEY == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop, so run it off the server loop.
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await dispose_engine()


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/websocket-info",
    response_model=Dict[str, Any],
    summary="WebSocket Usage Information",
    description="Connection details for the realtime dashboard channel, which OpenAPI cannot describe.",
    tags=["WebSocket"],
)
def websocket_info() -> Dict[str, Any]:
    return {
        "path": "/ws/dashboard",
        "query": ["token"],
        "security": "Access JWT as the 'token' query parameter; invalid tokens are closed with code 4401.",
        "messages": {
            "client_to_server": ["ping"],
            "server_to_client": ["dashboard.summary", "inventory.stock_changed", "orders.status_changed", "pong"],
        },
        "format": "JSON envelope { type: string, payload: object, at: ISO-8601, user_id?: int }",
    }


api_v1.include_router(auth_router)
api_v1.include_router(tenants_router)
api_v1.include_router(users_router)
api_v1.include_router(products_router)
api_v1.include_router(inventory_router)
api_v1.include_router(orders_router)
api_v1.include_router(suppliers_router)
api_v1.include_router(dashboard_router)
api_v1.include_router(reports_router)

app.include_router(api_v1)

# Avatars and generated reports
Path(settings.UPLOADS_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOADS_DIR), name="uploads")


def _access_claims(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid access token, or None."""
    if not token:
        return None
    try:
        claims = decode_token(token)
    except JWTError:
        return None
    if claims.get("type") != "access" or not claims.get("sub") or claims.get("tenant_id") is None:
        return None
    return claims


# PUBLIC_INTERFACE
@app.websocket("/ws/dashboard")
async def ws_dashboard(websocket: WebSocket, session: AsyncSession = Depends(get_async_session)):
    """
    WebSocket endpoint for realtime dashboard updates of the caller's tenant.

    Security:
      - Query param 'token' must be a valid access JWT of an existing user.
    Messages:
      - Server -> Client: 'dashboard.summary' on connect, then 'inventory.stock_changed'
        and 'orders.status_changed' events.
      - Client -> Server: 'ping' is answered with 'pong'; other messages are ignored.
    """
    await websocket.accept()
    claims = _access_claims(websocket.query_params.get("token"))
    user = None
    if claims is not None:
        try:
            candidate = await UserRepository(session).get_by_id(int(claims["sub"]))
            if candidate is not None and candidate.tenant_id == int(claims["tenant_id"]):
                user = candidate
        except (TypeError, ValueError):
            user = None
    if user is None:
        await websocket.close(code=WS_UNAUTHORIZED)
        return

    principal = Principal(user=user, tenant_id=user.tenant_id, role=claims.get("role"))
    bind_principal(principal.tenant_id, principal.id)
    topic = broadcast_manager.dashboard_topic(principal.tenant_id)
    await broadcast_manager.connect(topic, websocket)

    try:
        summary = await DashboardService(session).summary(principal)
        env = WsEnvelope(type="dashboard.summary", payload=summary.model_dump(mode="json"))
        await websocket.send_json(env.model_dump(mode="json"))
    except Exception:
        logger.exception("Failed to send initial dashboard summary")
    finally:
        # Release the connection; the socket may stay open for a long time.
        await session.close()

    try:
        while True:
            msg = await websocket.receive_text()
            if msg and msg.strip().lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        await broadcast_manager.disconnect(topic, websocket)
    except Exception:
        logger.exception("Error on ws_dashboard connection")
        await broadcast_manager.disconnect(topic, websocket)
        await websocket.close()
