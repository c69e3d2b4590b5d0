"""
UPC dashboard API routes.

Every route except /login needs the X-Dashboard-Password header when a
dashboard password is configured.
"""

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from exceptions import AppError, InvalidDashboardPasswordError
from models.dashboard import DashboardView, PasswordCheck, UPCUpdate
from parsers.catalog_csv import EXPORT_FILENAME
from services.dashboard_service import DashboardService
from routes.dependencies import (
    check_password,
    get_app_settings,
    get_dashboard_service,
    require_dashboard_password,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/login")
async def login(data: PasswordCheck, request: Request):
    """
    Check the shared dashboard password.

    Raises:
        401: Incorrect password
    """
    if not check_password(get_app_settings(request), data.password):
        logger.warning("dashboard_login_rejected")
        return handle_error(InvalidDashboardPasswordError())
    return {"authenticated": True}


@router.get(
    "",
    response_model=DashboardView,
    dependencies=[Depends(require_dashboard_password)]
)
async def get_dashboard(
    only_missing: bool = Query(False, description="Only variants still needing a UPC"),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Variants that need attention plus summary counters.

    Test products ("copy" handles) and variants without a SKU are never
    shown; variants that already have a UPC are hidden unless edited in
    this session.
    """
    try:
        return service.get_view(only_missing=only_missing)
    except Exception as e:
        return handle_error(e)


@router.patch(
    "/variants/upc",
    response_model=DashboardView,
    dependencies=[Depends(require_dashboard_password)]
)
async def update_variant_upc(
    data: UPCUpdate,
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Set the UPC of one variant.

    The change is visible here immediately and in other sessions after
    their next poll.

    Raises:
        404: No variant with this handle and SKU
    """
    try:
        return await service.update_upc(data)
    except Exception as e:
        return handle_error(e)


@router.post(
    "/import",
    response_model=DashboardView,
    dependencies=[Depends(require_dashboard_password)]
)
async def import_catalog(
    file: UploadFile = File(..., description="Product export CSV"),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Replace the catalog with an uploaded product export.

    Clears the edited-variant list.

    Raises:
        422: File could not be parsed
    """
    try:
        content = await file.read()
        logger.info("catalog_upload_received", filename=file.filename, size=len(content))
        return await service.import_csv(content)
    except Exception as e:
        return handle_error(e)


@router.get(
    "/export",
    dependencies=[Depends(require_dashboard_password)]
)
async def export_catalog(service: DashboardService = Depends(get_dashboard_service)):
    """Download the full catalog with current UPCs as CSV."""
    try:
        csv_text = service.export_csv()
        return Response(
            content=csv_text,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
        )
    except Exception as e:
        return handle_error(e)


@router.post(
    "/sync",
    dependencies=[Depends(require_dashboard_password)]
)
async def force_sync(service: DashboardService = Depends(get_dashboard_service)):
    """
    Push the current catalog to the shared store now.

    Raises:
        503: Store rejected the write
    """
    try:
        status = await service.force_sync()
        return status.model_dump(mode="json", by_alias=True)
    except Exception as e:
        return handle_error(e)


@router.get(
    "/status",
    dependencies=[Depends(require_dashboard_password)]
)
async def sync_status(service: DashboardService = Depends(get_dashboard_service)):
    """Sync engine diagnostics."""
    try:
        return await service.get_status()
    except Exception as e:
        return handle_error(e)
