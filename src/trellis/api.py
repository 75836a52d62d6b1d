"""REST data API for the browser UI.

Whole-collection reads and writes over the same store the MCP tools use:
``GET /api/{resource}`` returns the stored array and ``PUT /api/{resource}``
replaces it. A module-level ``_db`` is set at startup (or by test fixtures)
and injected via ``Depends(_get_db)``.

Usage:
    trellis serve                    # http://localhost:3000
    trellis serve --port 9000
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse

from trellis.core import TrellisDB
from trellis.models import now_iso
from trellis.store import COLLECTIONS

DEFAULT_PORT = 3000

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state, set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: TrellisDB | None = None


def _error_response(message: str, status_code: int) -> JSONResponse:
    """Return ``{"success": false, "error": ...}`` and log it."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s]: %s", status_code, message)
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def _invalid_resource(resource: str) -> JSONResponse:
    return _error_response(f"Invalid resource: {resource}. Valid resources: {', '.join(COLLECTIONS)}", 400)


def _get_db() -> TrellisDB:
    from fastapi import HTTPException

    if _db is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return _db


def create_app() -> Any:
    """Create the FastAPI application with the data endpoints."""
    from fastapi import Depends, FastAPI, Request

    # Expose Request in module globals so PEP 563 deferred annotations resolve
    globals()["Request"] = Request

    app = FastAPI(title="Trellis Data API", docs_url=None, redoc_url=None)

    # NOTE: handlers are async so store access stays on the event loop thread;
    # TrellisDB's lock still serializes them against MCP tool calls.

    @app.get("/api/health")
    async def api_health() -> dict[str, Any]:
        return {"status": "ok", "timestamp": now_iso()}

    @app.get("/api/{resource}")
    async def api_read(resource: str, db: TrellisDB = Depends(_get_db)) -> Any:
        if resource not in COLLECTIONS:
            return _invalid_resource(resource)
        try:
            data = db.read_collection(resource)
        except (OSError, ValueError):
            logger.exception("Failed to read %s", resource)
            return _error_response(f"Failed to read {resource}", 500)
        return {"success": True, "data": data}

    @app.put("/api/{resource}")
    async def api_write(resource: str, request: Request, db: TrellisDB = Depends(_get_db)) -> Any:
        if resource not in COLLECTIONS:
            return _invalid_resource(resource)
        try:
            body = await request.json()
        except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
            return _error_response("Invalid JSON body", 400)
        if not isinstance(body, list):
            return _error_response("Request body must be an array", 400)
        try:
            db.write_collection(resource, body)
        except OSError:
            logger.exception("Failed to write %s", resource)
            return _error_response(f"Failed to write {resource}", 500)
        return {"success": True, "data": body, "message": f"{resource} updated successfully"}

    return app


def main(port: int = DEFAULT_PORT, *, db: TrellisDB | None = None) -> None:
    """Start the data API server on localhost."""
    import uvicorn

    global _db

    _db = db if db is not None else TrellisDB.from_project()
    app = create_app()
    print(f"Trellis data API: http://localhost:{port}")
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")
