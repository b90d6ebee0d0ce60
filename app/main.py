"""FastAPI entry point. Lean."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.common.deps import get_current_user
from app.core.config import get_settings
from app.features.modules.endpoints import router as modules_router
from app.features.profiles.endpoints import router as profiles_router
from app.features.progress.endpoints import router as dashboard_router
from app.features.quiz.endpoints import router as quiz_router
from app.features.quiz.sessions import quiz_sessions

_settings = get_settings()
_START_TIME = datetime.now(timezone.utc)

app = FastAPI(title=_settings.app_name)


# ------------------------
# CORS Setup
# ------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    logger = logging.getLogger("request")
    logger.info("request.start", extra={"request_id": req_id, "path": request.url.path, "method": request.method})
    t0 = perf_counter()
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    logger.info(
        "request.end",
        extra={
            "request_id": req_id,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": int((perf_counter() - t0) * 1000),
        },
    )
    return response


# ------------------------
# Routers
# ------------------------
protected_deps = [Depends(get_current_user)]

app.include_router(profiles_router, dependencies=protected_deps)
app.include_router(modules_router, dependencies=protected_deps)
app.include_router(quiz_router, dependencies=protected_deps)
app.include_router(dashboard_router, dependencies=protected_deps)


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


@app.get("/healthz", tags=["meta"], summary="Liveness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "status": "ok",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": _settings.app_version,
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "supabase": "configured" if _settings.supabase_url else "missing-config",
        },
        "counts": {"routes": len(app.routes), "open_quiz_sessions": len(quiz_sessions)},
    }
