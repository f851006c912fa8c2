"""
Pydantic schemas for request/response models.

This module contains the data validation and serialization models used
by the BrandSync API endpoints. The Record itself lives in core.models.
"""

from enum import Enum
from typing import List, Dict, Optional, Any
from pydantic import BaseModel, Field

from .core.models import Record


# ============================================================================
# READ SCHEMAS
# ============================================================================

class ReadResponse(BaseModel):
    """Response model for reading a sheet."""
    sheet: str = Field(..., description="Resolved sheet title", examples=["Sheet1"])
    sheets: List[str] = Field(..., description="Every sheet title, in spreadsheet order", examples=[["Sheet1", "Archive"]])
    data: List[Record] = Field(..., description="Records of the resolved sheet")


# ============================================================================
# WRITE SCHEMAS
# ============================================================================

class WriteAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class WriteRequest(BaseModel):
    """Body of a write call."""
    sheetName: Optional[str] = Field(None, description="Target sheet; defaults to the first sheet", examples=["Sheet1"])
    data: Dict[str, Any] = Field(default_factory=dict, description="Record fields (only s_no for DELETE)")
    action: str = Field(..., description="CREATE, UPDATE or DELETE", examples=["UPDATE"])


class WriteResponse(BaseModel):
    """Response model for write operations."""
    success: bool = Field(True, examples=[True])
    matched: Optional[bool] = Field(
        None,
        description="UPDATE/DELETE only: whether a row with the serial existed",
        examples=[True],
    )


class ErrorResponse(BaseModel):
    """Error body returned for any failed call."""
    error: str = Field(..., examples=['Sheet "Nonexistent" not found'])
