import os
import time
import hashlib
from typing import Dict
from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .config import settings
from .routers.score import router as score_router
from .routers.virtual_fitting import router as virtual_fitting_router
from .security import create_jwt, verify_api_key
from .services.profile_store import store


logger = structlog.get_logger("fitting")


app = FastAPI(title="Virtual Fitting Service", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Token buckets per client ip: (tokens, last refill)
_buckets: Dict[str, tuple[float, float]] = {}
_last_prune = 0.0
PRUNE_INTERVAL_SECONDS = 60.0


class RateLimitExceeded(Exception):
    pass


def _prune_buckets(now: float, idle_after: float) -> int:
    # A bucket idle long enough to refill is the same as a fresh one
    stale = [ident for ident, (_, last) in _buckets.items() if now - last >= idle_after]
    for ident in stale:
        del _buckets[ident]
    return len(stale)


def _rate_limit(ident: str, requests_per_min: int, burst: int) -> None:
    global _last_prune
    refill_rate = requests_per_min / 60.0
    capacity = float(burst)
    now = time.time()
    if now - _last_prune >= PRUNE_INTERVAL_SECONDS:
        _last_prune = now
        if refill_rate > 0:
            _prune_buckets(now, capacity / refill_rate)
    tokens, last = _buckets.get(ident, (capacity, now))
    tokens = min(capacity, tokens + refill_rate * (now - last))
    if tokens < 1.0:
        _buckets[ident] = (tokens, now)
        raise RateLimitExceeded(ident)
    _buckets[ident] = (tokens - 1.0, now)


def _request_id(request: Request) -> str:
    return hashlib.md5(f"{request.client.host if request.client else 'unknown'}{time.time()}".encode()).hexdigest()[:8]


def _validate_config() -> None:
    strict = os.getenv("STRICT_CONFIG", "0") == "1"
    errors = []
    if not settings.api_key or settings.api_key == "change-me":
        errors.append("API_KEY must be set to a secure value")
    if not settings.jwt_secret or settings.jwt_secret == "dev-secret":
        errors.append("JWT_SECRET must be set to a secure value")
    if not settings.catalog_api_base:
        errors.append("CATALOG_API_BASE must be set")
    if errors:
        if strict:
            raise RuntimeError("Configuration error: " + "; ".join(errors))
        else:
            for e in errors:
                logger.warning("config_warning", warning=e)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    request_id = _request_id(request)
    resp = None

    try:
        # rate limit per client ip
        client_ip = request.client.host if request.client else "unknown"
        try:
            _rate_limit(client_ip, settings.rate_limit_per_min, settings.rate_limit_burst)
        except RateLimitExceeded:
            logger.warning("rate_limit_exceeded", client_ip=client_ip, request_id=request_id)
            resp = JSONResponse(status_code=429, content={"detail": "Too Many Requests"})
            return resp

        logger.info("request_started",
                    request_id=request_id,
                    path=str(request.url.path),
                    method=request.method,
                    client_ip=client_ip,
                    user_agent=request.headers.get("user-agent", "unknown"))

        resp = await call_next(request)
        return resp

    except Exception as e:
        duration_ms = int((time.time() - start) * 1000)
        logger.error("request_failed",
                     request_id=request_id,
                     path=str(request.url.path),
                     method=request.method,
                     error=str(e),
                     duration_ms=duration_ms,
                     exc_info=True)
        raise
    finally:
        duration_ms = int((time.time() - start) * 1000)
        status_code = getattr(resp, "status_code", 0) if resp else 0
        logger.info("request_completed",
                    request_id=request_id,
                    path=str(request.url.path),
                    method=request.method,
                    status=status_code,
                    duration_ms=duration_ms)


@app.exception_handler(Exception)
async def handle_exceptions(request: Request, exc: Exception):
    request_id = _request_id(request)

    logger.error("unhandled_exception",
                 request_id=request_id,
                 path=str(request.url.path),
                 method=request.method,
                 error=str(exc),
                 error_type=type(exc).__name__,
                 exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_code": "INTERNAL_ERROR",
            "request_id": request_id,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        }
    )


@app.get("/v1/health")
async def health():
    return {"status": "ok"}


@app.get("/v1/debug/status")
async def debug_status():
    """Debug endpoint to check API health and system status"""
    return {
        "status": "ok",
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "profiles": len(store),
        "llm_notes": bool(settings.openai_api_key),
        "rate_limiting": {
            "requests_per_min": settings.rate_limit_per_min,
            "burst_capacity": settings.rate_limit_burst,
            "active_buckets": len(_buckets)
        }
    }


@app.post("/v1/auth/token", dependencies=[Depends(verify_api_key)])
async def issue_token(user_id: str = Body(..., embed=True, alias="userId")):
    """Issue a shopper token; called by the storefront backend after login."""
    token = create_jwt(user_id)
    return {"token": token}


# Routers under versioned prefix
app.include_router(score_router, prefix="/v1")
app.include_router(virtual_fitting_router, prefix="/v1")

# Validate configuration at import time (warnings by default; set STRICT_CONFIG=1 to enforce)
_validate_config()
