from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from .routers.reports import router as reports_router
from .routers.inventory import router as inventory_router
from .routers.vat import router as vat_router
from .routers.coa import router as coa_router
from .config import settings
from .logs import json_log
from .sources import SourceUnavailable

app = FastAPI(title="Goldbooks Accounting API", version=settings.api_version)
STARTED_AT_UTC = datetime.now(timezone.utc)


def _current_request_id(req: Request) -> str:
    return getattr(req.state, "request_id", "") or req.headers.get("x-request-id") or "startup"


# Reports are full recomputations; an unreadable source fails the whole request.
@app.exception_handler(SourceUnavailable)
def _source_unavailable(req: Request, exc: SourceUnavailable):
    rid = _current_request_id(req)
    json_log(
        "error",
        "source.unavailable",
        request_id=rid,
        path=req.url.path,
        source=exc.source,
        error=exc.reason,
    )
    content = {"detail": f"failed to read {exc.source}", "request_id": rid}
    if settings.env in {"local", "dev"}:
        content["error"] = exc.reason
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(RequestValidationError)
def _request_validation_error(_req: Request, exc: Exception):
    # Query parameters are validated by hand, so anything landing here is a bad request.
    content = {"detail": "validation failed"}
    if settings.env in {"local", "dev"} and hasattr(exc, "errors"):
        content["errors"] = exc.errors()
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
def _unhandled_exception(req: Request, exc: Exception):
    rid = _current_request_id(req)
    json_log(
        "error",
        "http.request.unhandled",
        request_id=rid,
        method=req.method,
        path=req.url.path,
        error=str(exc),
    )
    content = {"detail": "internal error", "request_id": rid}
    if settings.env in {"local", "dev"}:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)

# Correlation id + basic structured request logging.
@app.middleware("http")
async def _request_logging(request: Request, call_next):
    rid = (request.headers.get("X-Request-Id") or "").strip() or uuid.uuid4().hex
    request.state.request_id = rid
    started = time.time()
    path = request.url.path
    method = request.method
    client_ip = (request.client.host if request.client else None)

    try:
        response = await call_next(request)
    except Exception as exc:
        dur_ms = int((time.time() - started) * 1000)
        json_log(
            "error",
            "http.request.error",
            request_id=rid,
            method=method,
            path=path,
            client_ip=client_ip,
            duration_ms=dur_ms,
            error=str(exc),
        )
        raise

    response.headers["X-Request-Id"] = rid
    response.headers["X-Content-Type-Options"] = "nosniff"
    if path != "/health":
        dur_ms = int((time.time() - started) * 1000)
        json_log(
            "info",
            "http.request",
            request_id=rid,
            method=method,
            path=path,
            status_code=response.status_code,
            client_ip=client_ip,
            duration_ms=dur_ms,
        )
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.include_router(reports_router)
app.include_router(inventory_router)
app.include_router(vat_router)
app.include_router(coa_router)

@app.on_event("startup")
def _startup():
    json_log(
        "info",
        "startup",
        env=settings.env,
        version=settings.api_version,
        receipt_log=settings.receipt_log_file,
        account_chart=settings.account_chart_file,
    )


def _sources_health() -> dict:
    return {
        "receipt_log": "ok" if Path(settings.receipt_log_file).is_file() else "missing",
        "account_chart": "ok" if Path(settings.account_chart_file).is_file() else "missing",
    }


@app.get("/health")
def health(req: Request):
    sources = _sources_health()
    content = {
        "status": "ok" if all(v == "ok" for v in sources.values()) else "degraded",
        "env": settings.env,
        "sources": sources,
        "service": "goldbooks-backend",
        "version": settings.api_version,
        "started_at": STARTED_AT_UTC.isoformat(),
        "request_id": _current_request_id(req),
    }
    if content["status"] != "ok":
        return JSONResponse(status_code=503, content=content)
    return content
