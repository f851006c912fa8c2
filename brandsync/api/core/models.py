"""
Record model and the spreadsheet column mapping.

A sheet row is a flat ``{header: cell}`` dict with no schema. ``Record`` is
the typed shape the API and the client work with; the functions here are
the only place the two meet.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# (record field, primary column, legacy column)
# Reads prefer the primary column and fall back to the legacy one.
# Writes only ever target the primary column.
COLUMN_MAP = (
    ("s_no", "s_no", None),
    ("brand_name", "brand_name", None),
    ("brand_logo", "brand_logo", None),
    ("slug", "slug", None),
    ("Founder_name", "Founder_name", None),
    ("Founder_image", "Founder_image", None),
    ("OLD_MRR", "OLD_MRR", None),
    ("timeline", "timeline", None),
    ("New_MRR", "New_MRR", None),
    ("Cover_Image_link", "Cover_Image_link", None),
    ("Cover_text", "Cover_text_1", "Cover_text"),
    ("body_text", "body_text_1", "body_text"),
    ("Custom_CTA", "Custom_CTA", None),
    ("SEO_meta_data", "SEO_meta_data", None),
    ("Category_tags", "Category_tags", None),
    ("tag", "tag", None),
)

MAPPED_FIELDS = frozenset(field for field, _primary, _legacy in COLUMN_MAP)

TAG_FIELD = "tag"
TAG_SEPARATOR = ","


def string_to_tags(value: Optional[str]) -> List[str]:
    """Split a comma-joined cell into a tag list. Blank or missing gives []."""
    if value is None:
        return []
    if not isinstance(value, str):
        value = str(value)
    if not value.strip():
        return []
    return value.split(TAG_SEPARATOR)


def tags_to_string(tags: Optional[List[str]]) -> str:
    """Join a tag list back into the cell representation."""
    if not tags:
        return ""
    return TAG_SEPARATOR.join(str(t) for t in tags)


class Record(BaseModel):
    """One brand / case-study entry."""

    model_config = ConfigDict(extra="ignore")

    s_no: str = Field("", description="Serial number, the key used for update and delete", examples=["1"])
    brand_name: str = Field("", description="Brand display name", examples=["Acme"])
    brand_logo: str = ""
    slug: str = Field("", examples=["acme"])
    Founder_name: str = ""
    Founder_image: str = ""
    OLD_MRR: str = ""
    timeline: str = Field("", examples=["6 months"])
    New_MRR: str = ""
    Cover_Image_link: str = ""
    Cover_text: str = ""
    body_text: str = Field("", description="HTML fragment authored in the rich-text editor")
    Custom_CTA: str = ""
    SEO_meta_data: str = ""
    Category_tags: str = ""
    tag: List[str] = Field(default_factory=list, description="Free-form tags", examples=[["saas", "b2b"]])
    rowIndex: Optional[int] = Field(
        None,
        description="Sheet row number at read time; never sent back on writes",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_cells(cls, value: Any, info):
        # Sheet cells come back as strings, numbers or nothing at all
        if info.field_name == "rowIndex":
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
        if info.field_name == TAG_FIELD:
            if isinstance(value, (list, tuple, set)):
                return [t if isinstance(t, str) else str(t) for t in value]
            return string_to_tags(None if value is None else str(value))
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


def _cell(raw: Mapping[str, Any], column: str) -> str:
    value = raw.get(column)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def row_to_record(raw: Mapping[str, Any]) -> Record:
    """
    Project a raw sheet row onto a Record.

    Only the columns in COLUMN_MAP are read; anything else in the row is
    dropped. Missing cells become empty strings.
    """
    values: Dict[str, Any] = {}
    for field, primary, legacy in COLUMN_MAP:
        value = _cell(raw, primary)
        if not value and legacy:
            value = _cell(raw, legacy)
        values[field] = value

    row_index = raw.get("rowIndex")
    if row_index not in (None, ""):
        try:
            values["rowIndex"] = int(row_index)
        except (TypeError, ValueError):
            pass

    return Record(**values)


def record_to_row(record: Union[Record, Mapping[str, Any]]) -> Dict[str, str]:
    """
    Flatten a Record into ``{column: cell}`` using primary column names.

    Every mapped column is present, empty ones included, so a write fully
    overwrites the stored row. ``rowIndex`` is never emitted.
    """
    if not isinstance(record, Record):
        record = Record(**{k: v for k, v in dict(record).items() if k in MAPPED_FIELDS})

    row: Dict[str, str] = {}
    for field, primary, _legacy in COLUMN_MAP:
        value = getattr(record, field)
        row[primary] = tags_to_string(value) if field == TAG_FIELD else value
    return row


def serials_match(left: Any, right: Any) -> bool:
    """
    Loose serial comparison: " 1", "1", "1.0" and 1 are all the same serial.
    """
    if left is None or right is None:
        return False
    a = str(left).strip()
    b = str(right).strip()
    if a == b:
        return True
    try:
        return float(a) == float(b)
    except ValueError:
        return False
