"""FastAPI Heartbeat. Lean."""

from __future__ import annotations

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

import os
import logging
from datetime import datetime, timezone

from app.Core.config import get_settings
from app.common.metrics import observe_request, render_latest, route_template
from app.common.ratelimit import InMemoryRateLimitStore, RateLimiter, client_key_func
from app.common.schemas import HealthCheckResponse
from app.features.code_execution.endpoints import router as code_execution_router
from app.features.judge0.service import judge0_service

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=_settings.app_name)
_START_TIME = datetime.now(timezone.utc)


# ------------------------
# CORS Setup
# ------------------------
def _split_env_csv(name: str, default: str = ""):
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_split_env_csv("CORS_ORIGINS", "http://localhost:3000"),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    from time import perf_counter

    t0 = perf_counter()
    resp = await call_next(request)
    elapsed = perf_counter() - t0
    dt = int(elapsed * 1000)
    observe_request(request.method, route_template(request), resp.status_code, elapsed)
    logging.getLogger("request").info("%s %s %dms %d", request.method, request.url.path, dt, resp.status_code)
    return resp


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    import uuid

    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger = logging.getLogger("request")
    logger.info("request.start", extra={"request_id": req_id, "path": request.url.path, "method": request.method})
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info("request.end", extra={"request_id": req_id, "path": request.url.path, "status_code": response.status_code})
    return response


# ------------------------
# Routers
# ------------------------
# Hourly per-client limit shared by every /api route, applied before route limits
global_rate_limiter = RateLimiter(
    InMemoryRateLimitStore(limit=_settings.rate_limit_global, window_s=3600),
    key_func=client_key_func(_settings.trust_forwarded_for),
)
app.include_router(code_execution_router, dependencies=[Depends(global_rate_limiter)])

if not judge0_service.is_available():
    logging.getLogger("code_execution").warning("judge0 not configured, code execution will be limited")


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness probe", response_model=HealthCheckResponse)
async def healthz():
    now = datetime.now(timezone.utc)
    return HealthCheckResponse(
        status="ok",
        time_utc=now,
        uptime_seconds=round((now - _START_TIME).total_seconds(), 2),
        version=os.getenv("APP_VERSION", "dev"),
        environment=_settings.app_env,
        components={
            "judge0": "configured" if judge0_service.is_available() else "missing-config",
        },
    )


@app.get("/metrics", tags=["meta"], summary="Prometheus metrics", include_in_schema=False)
async def metrics():
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)
