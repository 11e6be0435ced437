"""API Gateway - FastAPI application exposing the risk decision engine."""

import logging, os, threading
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from riskgate.api.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    RiskReportRequest,
    TransferRequest,
    TransferResponse,
    UserActionRequest,
    UserStatusResponse,
)
from riskgate.api.service import RiskGateService
from riskgate.common.constants import NetworkConstants
from riskgate.common.exceptions import NotFoundError, RiskGateException, ValidationError
from riskgate.common.logging import configure_logging

configure_logging(os.environ.get("RISKGATE_LOG_LEVEL", "INFO"))
logger = logging.getLogger("riskgate_api")


class ServiceManager:
    """Thread-safe service singleton manager."""

    _instance: Optional[RiskGateService] = None
    _lock = threading.Lock()
    _initialized = False

    @classmethod
    def get_service(cls) -> RiskGateService:
        """Get or create the service instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = RiskGateService()
                    cls._initialized = True
                    logger.info("RiskGateService initialized")
        return cls._instance

    @classmethod
    def set_service(cls, service: RiskGateService) -> None:
        """Install a pre-built service (tests and embedding)."""
        with cls._lock:
            cls._instance = service
            cls._initialized = True

    @classmethod
    def shutdown(cls) -> None:
        """Shutdown the service and release resources."""
        with cls._lock:
            if cls._instance is not None:
                cls._instance.shutdown()
                cls._instance = None
                cls._initialized = False

                logger.info("RiskGateService shutdown complete")


def get_service() -> RiskGateService:
    """Get the service instance."""
    return ServiceManager.get_service()


# =============================================================================
# CORS CONFIGURATION
# =============================================================================

def get_cors_origins() -> List[str]:
    """Get allowed CORS origins from environment.

    In production, set RISKGATE_CORS_ORIGINS to a comma-separated list
    of allowed origins.
    """
    origins_env = os.environ.get("RISKGATE_CORS_ORIGINS", "")

    if origins_env:
        return [origin.strip() for origin in origins_env.split(",") if origin.strip()]

    if os.environ.get("RISKGATE_ENVIRONMENT", "development") == "production":
        logger.warning(
            "RISKGATE_CORS_ORIGINS not set in production. "
            "CORS will be disabled. Set RISKGATE_CORS_ORIGINS for cross-origin access."
        )
        return []

    logger.warning("Running in development mode with permissive CORS (allow_origins=['*'])")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("RiskGate API Gateway starting up...")
    get_service()  # Pre-initialize service
    logger.info("RiskGate API Gateway ready")

    yield

    logger.info("RiskGate API Gateway shutting down...")
    ServiceManager.shutdown()
    logger.info("RiskGate API Gateway shutdown complete")


environment = os.environ.get("RISKGATE_ENVIRONMENT", "development")
enable_docs_default = "false" if environment == "production" else "true"
enable_docs = os.environ.get("RISKGATE_ENABLE_DOCS", enable_docs_default).lower() == "true"

app = FastAPI(
    title="RiskGate API Gateway",
    description="Real-time login and transfer risk decisions.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if enable_docs else None,
    redoc_url="/redoc" if enable_docs else None,
)


cors_origins = get_cors_origins()
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error_response(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=getattr(request.state, "request_id", None),
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors."""
    logger.warning(
        "Validation error",
        extra={"request_id": getattr(request.state, "request_id", None), "error": exc.message}
    )
    return _error_response(request, 400, "validation_error", exc.message)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle unknown users on operator endpoints."""
    logger.warning(
        "User not found",
        extra={"request_id": getattr(request.state, "request_id", None), **exc.details}
    )
    return _error_response(request, 404, "not_found", exc.message)


@app.exception_handler(RiskGateException)
async def riskgate_error_handler(request: Request, exc: RiskGateException) -> JSONResponse:
    """Handle remaining RiskGate errors without exposing internals."""
    logger.error(
        "RiskGate error in request processing",
        extra={"request_id": getattr(request.state, "request_id", None), "code": exc.code},
        exc_info=True
    )
    return _error_response(
        request, 500, "processing_error", "An error occurred while processing the request"
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors.

    Logs full exception for debugging but returns sanitized message to client.
    """
    logger.exception(
        "Unexpected error",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "error_type": type(exc).__name__,
        }
    )
    return _error_response(request, 500, "internal_error", "An unexpected error occurred")


# =============================================================================
# MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to each request for tracing."""
    request_id = f"req_{uuid4().hex[:12]}"
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def _client_addresses(request: Request):
    forwarded_for = request.headers.get(NetworkConstants.FORWARDED_FOR_HEADER)
    peer_address = request.client.host if request.client else None
    return forwarded_for, peer_address


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post("/auth/login", response_model=AuthResponse, summary="Decide a login attempt")
def login(body: LoginRequest, request: Request) -> AuthResponse:
    service = get_service()
    response = service.login(body, *_client_addresses(request))
    logger.info(
        "Login decided",
        extra={"user_id": body.user_id, "outcome": response.outcome,
               "request_id": request.state.request_id}
    )
    return response


@app.post("/auth/logout", response_model=AuthResponse, summary="Record a logout")
def logout(body: LoginRequest, request: Request) -> AuthResponse:
    service = get_service()
    return service.logout(body, *_client_addresses(request))


# =============================================================================
# TRANSFER ENDPOINT
# =============================================================================

@app.post(
    "/api/transfer",
    response_model=TransferResponse,
    responses={
        400: {"description": "Invalid request", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
    summary="Decide a funds transfer",
    description=(
        "Returns ALLOWED, VERIFICATION_REQUIRED or FORCE_LOGOUT. Policy "
        "outcomes are regular 200 responses."
    ),
)
def transfer(body: TransferRequest, request: Request) -> TransferResponse:
    service = get_service()
    response = service.transfer(body, *_client_addresses(request))
    logger.info(
        "Transfer decided",
        extra={"user_id": body.user_id, "outcome": response.outcome,
               "request_id": request.state.request_id}
    )
    return response


# =============================================================================
# OPERATOR ENDPOINTS
# =============================================================================

@app.post("/user/update-risk", response_model=UserStatusResponse)
def update_risk(body: RiskReportRequest) -> UserStatusResponse:
    """Apply an external risk report (LOW/MEDIUM/HIGH)."""
    return get_service().update_risk(body)


@app.post("/user/block", response_model=UserStatusResponse)
def block_user(body: UserActionRequest) -> UserStatusResponse:
    return get_service().block(body)


@app.post("/user/unblock", response_model=UserStatusResponse)
def unblock_user(body: UserActionRequest) -> UserStatusResponse:
    return get_service().unblock(body)


@app.post("/user/set-mid", response_model=UserStatusResponse)
def set_mid_status(body: UserActionRequest) -> UserStatusResponse:
    return get_service().set_medium(body)


@app.get("/user/status/{user_id}", response_model=UserStatusResponse)
def user_status(user_id: str) -> UserStatusResponse:
    return get_service().status(user_id)


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "riskgate-gateway"}


@app.get("/ready")
async def readiness_check() -> dict:
    """Readiness check endpoint.

    Returns 503 until the service singleton is initialized.
    """
    if not ServiceManager._initialized:
        raise HTTPException(status_code=503, detail="not_ready")
    return {"status": "ready", "service": "riskgate-gateway"}


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "riskgate.api.gateway:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
        log_level="info",
    )
