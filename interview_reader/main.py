import logging
import traceback
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from interview_reader.api import auth, users
from interview_reader.config import settings
from interview_reader.exceptions import ApiError, AuthenticationError
from interview_reader.services.session_cleanup import SessionCleanupTask

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.validate_on_startup:
        settings.validate_required()

    cleanup_task = None
    if settings.cleanup_should_run:
        cleanup_task = SessionCleanupTask()
        cleanup_task.start()

    yield

    if cleanup_task:
        await cleanup_task.stop()


app = FastAPI(title="InterviewReader Auth", version="0.1.0", lifespan=lifespan)


# =============================================================================
# CSRF Origin Validation Middleware
# =============================================================================


class CSRFOriginMiddleware(BaseHTTPMiddleware):
    """
    Validate Origin/Referer headers on state-changing requests.

    - POST, PUT, PATCH, DELETE must come from the API host or the client app
    - GET, HEAD, OPTIONS are always allowed (safe methods)
    - Health check and logout are exempt; logout must always clear cookies
    """

    SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
    EXEMPT_PATHS = {"/health", "/auth/logout"}

    def _allowed_hosts(self, request: Request) -> set:
        hosts = {request.headers.get("host", "")}
        client_host = urlparse(settings.client_url).netloc
        if client_host:
            hosts.add(client_host)
        return hosts

    def _reject(self, reason: str, value, request: Request) -> JSONResponse:
        logger.warning(
            "CSRF %s: value=%s, method=%s, path=%s",
            reason,
            value,
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=403,
            content={
                "success": False,
                "status": 403,
                "message": "Origin validation failed",
                "errors": {},
            },
        )

    async def dispatch(self, request: Request, call_next):
        if request.method in self.SAFE_METHODS:
            return await call_next(request)

        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        allowed = self._allowed_hosts(request)

        # Check Origin header first, then Referer
        for header in ("origin", "referer"):
            value = request.headers.get(header)
            if value:
                if urlparse(value).netloc not in allowed:
                    return self._reject(f"{header} mismatch", value, request)
                return await call_next(request)

        return self._reject("missing origin/referer", None, request)


app.add_middleware(CSRFOriginMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_url] if settings.client_url else [],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


# =============================================================================
# Error responses
# =============================================================================


def _error_body(status: int, message: str, errors: dict, exc: Exception) -> dict:
    body = {"success": False, "status": status, "message": message, "errors": errors}
    if not settings.is_production:
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return body


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.message, exc.errors, exc),
        headers=headers,
    )


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, str(exc.detail), {}, exc),
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(auth.router)
app.include_router(users.router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
