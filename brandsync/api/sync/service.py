"""
Record Sync Service

Read and write orchestration between the API routes, the record mapping
and the spreadsheet gateway.
"""
import logging
from typing import Optional, Dict, List, Any

from ..core.models import record_to_row, row_to_record
from ..exceptions import InvalidRequest, UpstreamFailure
from ..schemas import WriteAction
from ..services.sheets import SheetsGateway, get_gateway

logger = logging.getLogger(__name__)


def has_brand_name(raw: Dict[str, Any]) -> bool:
    """Rows without a brand name are placeholders, not data."""
    name = raw.get("brand_name")
    return bool(name and str(name).strip())


class RecordSyncService:
    """Service exposing list/create/update/delete over one spreadsheet."""

    def __init__(self, gateway: Optional[SheetsGateway] = None):
        self.gateway = gateway or get_gateway()

    def resolve_sheet(self, sheet: Optional[str], sheets: List[str]) -> str:
        """Explicit title wins, else the first discovered sheet."""
        if sheet:
            return sheet
        if not sheets:
            raise UpstreamFailure("Spreadsheet has no sheets")
        return sheets[0]

    def read(self, sheet: Optional[str] = None) -> Dict[str, Any]:
        """
        Load every record of a sheet.

        Returns:
            Dict with the resolved ``sheet``, all ``sheets`` titles and the
            mapped ``data`` records (rows with an empty brand name removed)
        """
        sheets = self.gateway.list_sheets()
        title = self.resolve_sheet(sheet, sheets)

        raw_rows = self.gateway.list_rows(title)
        records = [row_to_record(raw) for raw in raw_rows if has_brand_name(raw)]
        logger.info(f"Loaded {len(records)} of {len(raw_rows)} rows from '{title}'")

        return {"sheet": title, "sheets": sheets, "data": records}

    def write(self, sheet_name: Optional[str], data: Dict[str, Any], action: str) -> Dict[str, Any]:
        """
        Apply one write. Not transactional: whatever the gateway committed
        before a failure stays committed.

        Returns:
            ``{"success": True}``, plus ``matched`` for UPDATE and DELETE
        """
        try:
            action = WriteAction(str(action).upper())
        except ValueError:
            raise InvalidRequest(f"Unknown action: {action!r} (expected CREATE, UPDATE or DELETE)")

        title = sheet_name or self.resolve_sheet(None, self.gateway.list_sheets())
        data = data or {}

        if action is WriteAction.CREATE:
            row = record_to_row(data)
            logger.info(f"Creating record {row.get('s_no')!r} in '{title}'")
            self.gateway.append_row(title, row)
            return {"success": True}

        serial = data.get("s_no")
        if serial is None or not str(serial).strip():
            raise InvalidRequest(f"{action.value} requires s_no")

        if action is WriteAction.UPDATE:
            row = record_to_row(data)
            logger.info(f"Updating record {serial!r} in '{title}'")
            matched = self.gateway.overwrite_row(title, serial, row)
        else:
            logger.info(f"Deleting record {serial!r} from '{title}'")
            matched = self.gateway.delete_row(title, serial)

        if not matched:
            logger.warning(f"{action.value}: no row with s_no={serial!r} in '{title}'")
        return {"success": True, "matched": matched}
