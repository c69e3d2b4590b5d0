"""
Shared snapshot endpoint.

GET     -> {"success": true, "data": {"rows", "editedKeys", "lastUpdated"}}
POST    -> body {"rows", "editedKeys"}; stored wholesale, stamped here;
           answers {"success": true, "data": {"rowCount", "editedCount", "lastUpdated"}}
OPTIONS -> empty 200 (cross-origin preflight)
other   -> {"success": false, "error": ...} with 405

Failures answer {"success": false, "error": ...} with a non-2xx status.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
import structlog

from models.sync import SnapshotReceipt, SnapshotSaveRequest, SyncEnvelope
from services.remote_store import RemoteStore
from routes.dependencies import get_server_store

logger = structlog.get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def envelope_response(envelope: SyncEnvelope, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope.to_wire(),
        headers=CORS_HEADERS,
    )


def failure(message: str, status_code: int) -> JSONResponse:
    return envelope_response(SyncEnvelope(success=False, error=message), status_code)


# ===================
# ROUTES
# ===================

@router.get("")
async def get_snapshot(store: RemoteStore = Depends(get_server_store)):
    """Return the current shared snapshot."""
    snapshot = await store.load_snapshot()

    if snapshot is None:
        logger.error("sync_endpoint_load_failed", backend=store.backend)
        return failure("Failed to load snapshot", 503)

    logger.debug(
        "sync_endpoint_served",
        rows=len(snapshot.rows),
        edited=len(snapshot.edited_keys),
        last_updated=snapshot.last_updated
    )
    return envelope_response(SyncEnvelope(success=True, data=snapshot))


@router.post("")
async def save_snapshot(request: Request, store: RemoteStore = Depends(get_server_store)):
    """Replace the shared snapshot with the posted rows and edited keys."""
    try:
        body = SnapshotSaveRequest.model_validate(await request.json())
    except (ValueError, PydanticValidationError) as e:
        logger.warning("sync_endpoint_bad_payload", error=str(e))
        return failure("Invalid snapshot payload", 400)

    stamp = await store.save_snapshot(body.rows, body.edited_keys)
    if stamp is None:
        logger.error("sync_endpoint_save_failed", backend=store.backend)
        return failure("Failed to save snapshot", 503)

    logger.info(
        "sync_endpoint_saved",
        rows=len(body.rows),
        edited=len(body.edited_keys),
        last_updated=stamp
    )
    receipt = SnapshotReceipt(
        row_count=len(body.rows),
        edited_count=len(set(body.edited_keys)),
        last_updated=stamp,
    )
    return envelope_response(SyncEnvelope(success=True, data=receipt))


@router.options("")
async def preflight():
    """Cross-origin preflight."""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route("", methods=["PUT", "PATCH", "DELETE", "HEAD", "TRACE", "CONNECT"])
async def method_not_allowed(request: Request):
    logger.warning("sync_endpoint_method_not_allowed", method=request.method)
    return failure("Method not allowed", 405)
