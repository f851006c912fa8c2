"""
Client-side record store.

Holds the records of the sheet being edited. Every write is applied to the
local list first, then sent to the API, then followed by a full reload
whatever the outcome. A failed write is reported once through ``notify``
and is not retried or rolled back locally; the reload is what brings the
list back in line with the spreadsheet.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from brandsync.api.core.models import Record, serials_match
from brandsync.api.exceptions import SyncError
from brandsync.client.api_client import SyncApiClient

logger = logging.getLogger(__name__)


class WriteState(str, Enum):
    IDLE = "idle"
    OPTIMISTIC_APPLIED = "optimistic-applied"
    IN_FLIGHT = "in-flight"
    RECONCILING = "reconciling"


class RecordStore:
    """In-memory cache of the current sheet's records."""

    def __init__(
        self,
        api: Optional[SyncApiClient] = None,
        notify: Optional[Callable[[str], None]] = None,
        on_change: Optional[Callable[["RecordStore"], None]] = None,
        sheet: Optional[str] = None,
    ):
        """
        Args:
            api: Client for the sync API
            notify: Called with a message when a write or load fails
            on_change: Called after every change to the local record list
            sheet: Sheet to start on (e.g. the user's last selection)
        """
        self.api = api or SyncApiClient()
        self.notify = notify or (lambda message: logger.warning(message))
        self.on_change = on_change
        self.current_sheet: Optional[str] = sheet
        self.sheets: List[str] = []
        self.records: List[Record] = []
        self.loading = False
        self.write_state = WriteState.IDLE

    def _changed(self):
        if self.on_change:
            self.on_change(self)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, sheet: Optional[str] = None) -> bool:
        """
        Replace the local list with the sheet's records from the API.

        Returns:
            False if the fetch failed; the previous list is kept
        """
        self.loading = True
        try:
            payload = self.api.read(sheet)
            sheets = list(payload.get("sheets") or [])
            records = [Record.model_validate(r) for r in payload.get("data") or []]
        except SyncError as e:
            logger.error(f"Failed to fetch sheet {sheet!r}: {e.message}")
            self.notify(f"Failed to load records: {e.message}")
            return False
        except ValidationError as e:
            logger.error(f"Malformed records in sheet {sheet!r}: {e}")
            self.notify(f"Failed to load records: malformed response ({e.error_count()} errors)")
            return False
        finally:
            self.loading = False

        self.sheets = sheets
        if not self.current_sheet:
            # The API reports the sheet it actually resolved
            self.current_sheet = payload.get("sheet") or sheet or (sheets[0] if sheets else None)
        self.records = records
        self._changed()
        return True

    def refresh(self) -> bool:
        return self.load(self.current_sheet)

    def select_sheet(self, title: str) -> bool:
        """Switch to another sheet and load it."""
        self.current_sheet = title
        return self.load(title)

    def find(self, serial: Any) -> Optional[Record]:
        for record in self.records:
            if serials_match(record.s_no, serial):
                return record
        return None

    def next_serial(self) -> str:
        """Serial suggested for a new record."""
        return str(len(self.records) + 1)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _write(self, action: str, data: Dict[str, Any], apply_locally: Callable[[], None]) -> bool:
        apply_locally()
        self.write_state = WriteState.OPTIMISTIC_APPLIED
        self._changed()

        self.write_state = WriteState.IN_FLIGHT
        succeeded = False
        try:
            self.api.write(self.current_sheet, data, action)
            succeeded = True
        except SyncError as e:
            logger.error(f"{action} failed for s_no={data.get('s_no')!r}: {e.message}")
            self.notify(f"Failed to sync with Google Sheets: {e.message}")
        finally:
            self.write_state = WriteState.RECONCILING
            try:
                self.load(self.current_sheet)
            finally:
                self.write_state = WriteState.IDLE
        return succeeded

    @staticmethod
    def _as_record(record: Union[Record, Dict[str, Any]]) -> Record:
        if isinstance(record, Record):
            return record
        return Record.model_validate(record)

    @staticmethod
    def _wire(record: Record) -> Dict[str, Any]:
        return record.model_dump(exclude={"rowIndex"})

    def create(self, record: Union[Record, Dict[str, Any]]) -> bool:
        """Append locally, then CREATE."""
        record = self._as_record(record)

        def apply():
            self.records = self.records + [record]

        return self._write("CREATE", self._wire(record), apply)

    def update(self, record: Union[Record, Dict[str, Any]]) -> bool:
        """Replace locally by serial, then UPDATE (full overwrite)."""
        record = self._as_record(record)

        def apply():
            self.records = [
                record if serials_match(r.s_no, record.s_no) else r
                for r in self.records
            ]

        return self._write("UPDATE", self._wire(record), apply)

    def delete(self, serial: Any) -> bool:
        """Remove locally by serial, then DELETE."""
        def apply():
            self.records = [r for r in self.records if not serials_match(r.s_no, serial)]

        return self._write("DELETE", {"s_no": str(serial)}, apply)
