"""
BrandSync API - FastAPI Application

Thin proxy between the brand dashboard and the Google spreadsheet that
stores its records:
- Read: list a sheet's records together with every sheet title
- Write: create, update or delete a record by serial number

Version: 1.0.0
"""

# ============================================================================
# IMPORTS
# ============================================================================

# FastAPI and web framework imports
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from typing import Optional
import logging

# Environment variables
from dotenv import load_dotenv
load_dotenv()  # Load .env file

# Local modules
from brandsync import __version__
from brandsync.api.schemas import ErrorResponse, ReadResponse, WriteRequest, WriteResponse
from brandsync.api.sync.service import RecordSyncService
from brandsync.api.utils import error_response, handle_errors

# ============================================================================
# CONFIGURATION
# ============================================================================

# Initialize logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI application with metadata
app = FastAPI(
    title="BrandSync API",
    description="Spreadsheet-backed CRUD for brand case-study records",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Malformed write, spreadsheet or configuration failure"},
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same ``{"error"}`` shape as every other failure."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return error_response(f"Invalid request: {exc.errors()}", 500)


# ============================================================================
# ROOT ENDPOINTS
# ============================================================================

@app.get(
    "/",
    tags=["General"],
    summary="API Information",
    description="Get basic information about the BrandSync API and available endpoints"
)
def read_root():
    """
    Root endpoint providing API information and endpoint discovery.

    Example:
        ```bash
        curl http://localhost:8000/
        ```
    """
    return {
        "message": "Welcome to the BrandSync API",
        "version": __version__,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_schema": "/openapi.json"
        },
        "endpoints": {
            "read": "GET /sync?sheet=<title> - List records of a sheet",
            "write": "POST /sync - CREATE, UPDATE or DELETE a record",
        }
    }


@app.get("/health", tags=["General"], summary="Liveness check")
def health():
    return {"status": "healthy"}


# ============================================================================
# SYNC ENDPOINTS
# ============================================================================
# /api/cms is the path the dashboard frontend calls; it serves the same
# handlers as /sync.
# ============================================================================

@app.get(
    "/sync",
    response_model=ReadResponse,
    responses=ERROR_RESPONSES,
    tags=["Records"],
    summary="List Records",
    description="Read every record of a sheet plus the list of all sheet titles"
)
@app.get("/api/cms", include_in_schema=False)
@handle_errors
def read_records(sheet: Optional[str] = None):
    """
    Read a sheet.

    The sheet defaults to the first one in the spreadsheet. Rows with an
    empty brand name are skipped. The whole sheet is returned, there is
    no paging.

    Args:
        sheet (str, optional): Sheet title

    Returns:
        JSONResponse: Object containing:
            - sheet (str): The sheet actually read
            - sheets (list): All sheet titles, for the selector
            - data (list): Records

    Example:
        ```bash
        curl "http://localhost:8000/sync?sheet=Sheet1"
        ```
    """
    service = RecordSyncService()
    result = service.read(sheet)
    return ReadResponse(**result)


@app.post(
    "/sync",
    response_model=WriteResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["Records"],
    summary="Write Record",
    description="Create, update (full overwrite) or delete a record by serial number"
)
@app.post("/api/cms", response_model=WriteResponse, response_model_exclude_none=True, include_in_schema=False)
@handle_errors
def write_record(body: WriteRequest):
    """
    Apply a single write.

    - CREATE appends the record as a new row
    - UPDATE overwrites every mapped column of the first row whose s_no
      matches; fields left out of ``data`` are cleared
    - DELETE removes the first row whose s_no matches

    An UPDATE or DELETE that matches nothing still succeeds, with
    ``matched`` set to false.

    Example:
        ```bash
        curl -X POST http://localhost:8000/sync \\
             -H 'Content-Type: application/json' \\
             -d '{"sheetName": "Sheet1", "action": "DELETE", "data": {"s_no": "3"}}'
        ```
    """
    service = RecordSyncService()
    result = service.write(body.sheetName, body.data, body.action)
    return WriteResponse(**result)
