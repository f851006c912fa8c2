"""Record model and column mapping."""
from .models import (
    COLUMN_MAP,
    Record,
    record_to_row,
    row_to_record,
    serials_match,
    string_to_tags,
    tags_to_string,
)

__all__ = [
    "COLUMN_MAP",
    "Record",
    "record_to_row",
    "row_to_record",
    "serials_match",
    "string_to_tags",
    "tags_to_string",
]
