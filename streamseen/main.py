# streamseen/main.py

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from streamseen.core.errors import StreamSeenError
from streamseen.core.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
log = logging.getLogger("startup")

app = FastAPI(
    title="StreamSeen API",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url=None,
)

# ───────────────── CORS ─────────────────
# Bearer tokens in the Authorization header, not cookies.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ───────────────── Typed errors ─────────────────
@app.exception_handler(StreamSeenError)
async def streamseen_error_handler(request: Request, exc: StreamSeenError) -> JSONResponse:
    log.info("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ───────────────── Health ─────────────────
@app.get("/api/health", tags=["default"])
async def health() -> Dict[str, Any]:
    return {"ok": True}


# Single API namespace prefix
api = APIRouter(prefix="/api")


def _include(router_import: str, attr: str = "router", *, name_hint: str = "") -> None:
    """
    Import a router and include it.
    If it is broken, log the FULL traceback and re-raise so startup fails loudly.
    """
    label = name_hint or router_import
    try:
        mod = __import__(router_import, fromlist=[attr])
        router = getattr(mod, attr)
    except Exception as e:
        log.error("FAILED to mount router: %s (%s)", label, router_import)
        log.error("Reason: %r", e)
        log.error("Traceback:\n%s", traceback.format_exc())
        raise
    api.include_router(router)
    log.info("Mounted router: %s (prefix=%s)", label, getattr(router, "prefix", ""))


# ───────────────── Mount routers ─────────────────
_include("streamseen.routes.auth", name_hint="auth")
_include("streamseen.routes.users", name_hint="users")
_include("streamseen.routes.friends", name_hint="friends")
_include("streamseen.routes.watchlist", name_hint="watchlist")
_include("streamseen.routes.watched", name_hint="watched")
_include("streamseen.routes.recommendations", name_hint="recommendations")

# Attach /api router once, after every sub-router is on it
app.include_router(api)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("streamseen.main:app", host="0.0.0.0", port=8000, reload=True)
