"""Workbook ingestion, sheet and column API endpoints."""

from fastapi import APIRouter, File, HTTPException, Path, UploadFile

from ..config import get_settings
from ..exceptions import (
    ColumnNotFoundError,
    NoWorkbookLoadedError,
    SheetNotFoundError,
    WorkbookLoadError,
)
from ..models.request import ColumnVisibilityRequest, SheetSelectionRequest
from ..models.response import ColumnVisibilityResponse, LinkMapResponse, WorkbookResponse

router = APIRouter(prefix="/api/v1", tags=["workbook"])
settings = get_settings()

# Import the global workbook session instance
from ..session_instance import workbook_session

SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


def _workbook_response() -> WorkbookResponse:
    return WorkbookResponse(
        file_name=workbook_session.file_name,
        sheet_names=workbook_session.sheet_names,
        selected_sheet=workbook_session.selected_sheet,
        columns=workbook_session.columns,
        content_columns=workbook_session.content_columns,
        column_visibility=workbook_session.column_visibility,
        total_rows=len(workbook_session.records),
    )


@router.post(
    "/workbook",
    response_model=WorkbookResponse,
    summary="Upload a workbook",
    description="Load an .xlsx or .csv file and select its preferred or first sheet"
)
async def upload_workbook(file: UploadFile = File(...)) -> WorkbookResponse:
    """
    Upload a workbook and make it the searched data set.

    The previously loaded workbook is replaced only if the new one decodes.
    """
    file_name = file.filename or ""
    if not file_name.lower().endswith(SUPPORTED_EXTENSIONS):
        raise HTTPException(status_code=422, detail="Only .xlsx, .xlsm and .csv files are supported")

    raw = await file.read()
    if len(raw) > settings.max_upload_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb} MB"
        )

    try:
        workbook_session.load_bytes(raw, file_name)
    except WorkbookLoadError as e:
        raise HTTPException(status_code=422, detail=e.message)

    return _workbook_response()


@router.get(
    "/workbook",
    response_model=WorkbookResponse,
    summary="Get workbook state",
    description="File name, sheets, selected sheet and its columns"
)
async def get_workbook() -> WorkbookResponse:
    """Get the state of the loaded workbook."""
    return _workbook_response()


@router.put(
    "/workbook/sheet",
    response_model=WorkbookResponse,
    summary="Switch sheet",
    description="Select another sheet of the loaded workbook and remember the choice"
)
async def select_sheet(request: SheetSelectionRequest) -> WorkbookResponse:
    """Switch the searched sheet."""
    try:
        workbook_session.select_sheet(request.sheet_name)
    except NoWorkbookLoadedError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except SheetNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return _workbook_response()


@router.get(
    "/workbook/links",
    response_model=LinkMapResponse,
    summary="Get hyperlinks",
    description="Hyperlink targets of the selected sheet by row number and column"
)
async def get_links() -> LinkMapResponse:
    """Get the link map of the selected sheet."""
    return LinkMapResponse(
        selected_sheet=workbook_session.selected_sheet,
        links=workbook_session.link_map
    )


@router.get(
    "/workbook/columns",
    response_model=ColumnVisibilityResponse,
    summary="Get column visibility",
    description="Visibility toggles of the selected sheet's columns"
)
async def get_columns() -> ColumnVisibilityResponse:
    """Get column visibility of the selected sheet."""
    return ColumnVisibilityResponse(
        selected_sheet=workbook_session.selected_sheet,
        column_visibility=workbook_session.column_visibility
    )


@router.put(
    "/workbook/columns/{column}",
    response_model=ColumnVisibilityResponse,
    summary="Toggle a column",
    description="Show or hide one column and remember the choice for this sheet"
)
async def set_column_visibility(
    request: ColumnVisibilityRequest,
    column: str = Path(..., description="Column name")
) -> ColumnVisibilityResponse:
    """Show or hide a column."""
    try:
        visibility = workbook_session.set_column_visibility(column, request.visible)
    except NoWorkbookLoadedError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ColumnNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return ColumnVisibilityResponse(
        selected_sheet=workbook_session.selected_sheet,
        column_visibility=visibility
    )
