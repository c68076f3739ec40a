"""
api.py - FastAPI HTTP layer for the statement reconciler.

Endpoints:
  - GET  /health
  - POST /reconcile   body: {"schedules": [...], "payments": [...], "as_of": "YYYY-MM-DD"?}
  - POST /statement   body: statement envelope, optional ?as_of=YYYY-MM-DD

No reconciliation logic is implemented here.
"""

from __future__ import annotations

import os
from datetime import date
from typing import Any, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logging_config import get_logger, setup_logging
from normalize import InvalidInputError, normalize_date
from reconcile import reconcile, reconcile_statement
from report import format_statement_json

logger = get_logger("recon-api")

try:
    load_dotenv()
except UnicodeDecodeError:
    # Fallback for legacy Windows-encoded .env files.
    load_dotenv(encoding="cp1252")

app = FastAPI(
    title="Statement Reconciliation API",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Allows the statement UI to call the API from another local host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _is_debug_enabled() -> bool:
    """Return True when DEBUG mode is enabled via environment variable."""
    return os.getenv("DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def _parse_as_of(value: Any) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = normalize_date(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid as_of date: {value!r}")
    return parsed


def _debug_trace(**counts: Any) -> dict[str, Any]:
    return {"debug_enabled": True, **counts}


@app.get("/health")
def health() -> dict[str, str]:
    """Service health check."""
    return {"status": "ok"}


@app.post("/reconcile")
def reconcile_endpoint(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Reconcile raw schedule and payment collections."""
    as_of = _parse_as_of(payload.get("as_of"))
    schedules = payload.get("schedules")
    payments = payload.get("payments", [])

    try:
        statement = reconcile(schedules, payments, as_of=as_of)
    except InvalidInputError as exc:
        logger.warning("api_reconcile_rejected | error=%s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(
            "api_reconcile_error | error_type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Unexpected server error while reconciling statement.",
        ) from exc

    body = format_statement_json(statement)
    if _is_debug_enabled():
        body["debug_trace"] = _debug_trace(
            schedule_records=len(schedules),
            payment_records=len(payments),
        )
    return JSONResponse(content=body)


@app.post("/statement")
def statement_endpoint(
    payload: dict[str, Any] = Body(...),
    as_of: Optional[str] = Query(default=None),
) -> JSONResponse:
    """Reconcile a customer statement envelope."""
    as_of_date = _parse_as_of(as_of)

    try:
        statement = reconcile_statement(payload, as_of=as_of_date)
    except InvalidInputError as exc:
        logger.warning("api_statement_rejected | error=%s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(
            "api_statement_error | error_type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        raise HTTPException(
            status_code=500,
            detail="Unexpected server error while reconciling statement.",
        ) from exc

    body = format_statement_json(statement)
    if _is_debug_enabled():
        body["debug_trace"] = _debug_trace(row_count=statement.summary.row_count)
    return JSONResponse(content=body)


if __name__ == "__main__":
    setup_logging()
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("api:app", host="0.0.0.0", port=port, reload=False)
