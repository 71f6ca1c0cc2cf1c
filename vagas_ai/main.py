import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from vagas_ai.api.v1.health import router as health_router
from vagas_ai.api.v1.parse_job import router as parse_job_router
from vagas_ai.api.v1.resume import router as resume_router
from vagas_ai.core.cors import cors_allow_credentials, cors_allowed_origins
from vagas_ai.core.errors import (
    AIPipelineError,
    AITimeoutError,
    ExtractionError,
    FabricationError,
    RateLimitExceededError,
    SchemaValidationError,
)
from vagas_ai.core.rate_limit import limiter
from vagas_ai.core.config import settings
from vagas_ai.core.lifespan import lifespan

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

logger = logging.getLogger(__name__)

app = FastAPI(title="Vagas AI API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_credentials=cors_allow_credentials(),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


def _error_body(message: str, code: str, **extra) -> dict:
    return {"success": False, "error": message, "code": code, **extra}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request", "invalid_request", details=details),
    )


@app.exception_handler(RateLimitExceededError)
async def quota_exceeded_handler(request: Request, exc: RateLimitExceededError):
    headers = {"Retry-After": str(exc.retry_after)}
    if exc.check is not None:
        reset = datetime.fromtimestamp(exc.check.reset_time.requests / 1000, tz=timezone.utc)
        headers.update(
            {
                "X-RateLimit-Limit-Requests": str(exc.check.limit.requests),
                "X-RateLimit-Remaining-Requests": str(exc.check.remaining.requests),
                "X-RateLimit-Limit-Tokens": str(exc.check.limit.tokens),
                "X-RateLimit-Remaining-Tokens": str(exc.check.remaining.tokens),
                "X-RateLimit-Reset": reset.isoformat(),
            }
        )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(str(exc), exc.code, retryAfter=exc.retry_after),
        headers=headers,
    )


@app.exception_handler(AITimeoutError)
async def timeout_handler(request: Request, exc: AITimeoutError):
    logger.warning("request_timeout path=%s timeout_ms=%s", request.url.path, exc.timeout_ms)
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content=_error_body(
            "The AI service took too long to respond. Please try again.",
            exc.code,
            timeoutMs=exc.timeout_ms,
        ),
    )


@app.exception_handler(AIPipelineError)
async def pipeline_error_handler(request: Request, exc: AIPipelineError):
    logger.exception("pipeline_error path=%s code=%s", request.url.path, exc.code, exc_info=exc)
    extra = {}
    if isinstance(exc, ExtractionError) and exc.truncated:
        extra["truncated"] = True
    if isinstance(exc, (ExtractionError, SchemaValidationError, FabricationError)):
        status_code = status.HTTP_502_BAD_GATEWAY
        message = "The AI service returned unusable output. Please try again."
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = "Internal server error"
    if settings.expose_error_details:
        message = str(exc)
    return JSONResponse(status_code=status_code, content=_error_body(message, exc.code, **extra))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path, exc_info=exc)
    message = str(exc) if settings.expose_error_details else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(message, "internal_error"),
    )


app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(parse_job_router, prefix="/v1", tags=["Jobs"])
app.include_router(resume_router, prefix="/v1", tags=["Resume"])


def serve() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    serve()
