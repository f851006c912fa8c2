"""
Google Sheets Gateway

The only component that talks to the spreadsheet service. Rows are read
below a fixed header row and addressed for update/delete by their serial
column, with retry logic for transient API errors.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import backoff
import gspread
from google.oauth2.service_account import Credentials

from ...config_manager import EnvConfig, get_spreadsheet_config
from ...core.models import serials_match
from ...exceptions import ConfigurationError, SheetNotFound, SyncError, UpstreamFailure

logger = logging.getLogger(__name__)

ROW_INDEX_KEY = "rowIndex"


def _retry_api(func):
    """Retry rate limits and 5xx from the Sheets API with exponential backoff."""
    return backoff.on_exception(
        backoff.expo,
        gspread.exceptions.APIError,
        max_tries=5,
        giveup=lambda e: getattr(getattr(e, "response", None), "status_code", 500) not in (429, 500, 502, 503),
    )(func)


def open_spreadsheet() -> gspread.Spreadsheet:
    """
    Authorize with the service account from the environment and open
    the configured spreadsheet.

    Raises:
        ConfigurationError: credentials or spreadsheet id are missing
    """
    config = get_spreadsheet_config()
    if not config.spreadsheet_id:
        raise ConfigurationError("Missing GOOGLE_SHEET_ID (or spreadsheet.id in config.json)")

    info = EnvConfig.get_service_account_info()
    try:
        creds = Credentials.from_service_account_info(info, scopes=EnvConfig.get_scopes())
    except ValueError as e:
        raise ConfigurationError(f"Invalid service account credentials: {e}")

    client = gspread.authorize(creds)
    logger.info(f"Opening spreadsheet: {config.spreadsheet_id}")
    return client.open_by_key(config.spreadsheet_id)


class SheetsGateway:
    """
    Row-level CRUD over the worksheets of one spreadsheet.

    Lookups by serial are a linear scan of the whole sheet on every call and
    the first physical match wins. There is no index, so duplicate serials
    always resolve to the topmost row. Sheets are expected to stay small.
    """

    def __init__(
        self,
        spreadsheet_opener: Optional[Callable[[], Any]] = None,
        header_row: Optional[int] = None,
        serial_column: Optional[str] = None,
    ):
        """
        Args:
            spreadsheet_opener: Returns a gspread.Spreadsheet (or compatible
                                object). Defaults to open_spreadsheet.
            header_row: 1-based row holding the column headers
            serial_column: Header of the serial number column
        """
        config = get_spreadsheet_config()
        self._opener = spreadsheet_opener or open_spreadsheet
        self.header_row = header_row if header_row is not None else config.header_row
        self.serial_column = serial_column or config.serial_column
        self._spreadsheet = None

    @property
    def spreadsheet(self):
        """Lazy-load the spreadsheet handle; reused for the gateway's lifetime."""
        if self._spreadsheet is None:
            try:
                self._spreadsheet = self._opener()
            except SyncError:
                raise
            except gspread.exceptions.SpreadsheetNotFound as e:
                raise UpstreamFailure(f"Spreadsheet not found or not shared with the service account: {e}")
            except Exception as e:
                logger.exception("Failed to open spreadsheet")
                raise UpstreamFailure(f"Failed to open spreadsheet: {e}")
        return self._spreadsheet

    # ------------------------------------------------------------------
    # Sheet access
    # ------------------------------------------------------------------

    def list_sheets(self) -> List[str]:
        """Sheet titles in the order the spreadsheet holds them."""
        try:
            return [ws.title for ws in self._worksheets()]
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to list sheets: {e}")

    @_retry_api
    def _worksheets(self) -> List[Any]:
        return self.spreadsheet.worksheets()

    def _worksheet(self, title: str):
        try:
            return self._fetch_worksheet(title)
        except gspread.exceptions.WorksheetNotFound:
            raise SheetNotFound(title)
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to open sheet \"{title}\": {e}")

    @_retry_api
    def _fetch_worksheet(self, title: str):
        return self.spreadsheet.worksheet(title)

    @_retry_api
    def _read_values(self, worksheet) -> List[List[Any]]:
        logger.info(f"Reading rows from worksheet '{worksheet.title}'")
        return worksheet.get_all_values()

    def _headers_and_rows(self, worksheet):
        """Split the sheet into (headers, data rows) around the header offset."""
        try:
            values = self._read_values(worksheet)
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to read sheet \"{worksheet.title}\": {e}")

        if len(values) < self.header_row:
            return [], []
        headers = [str(h).strip() for h in values[self.header_row - 1]]
        return headers, values[self.header_row:]

    def _row_dict(self, headers: List[str], values: List[Any]) -> Dict[str, str]:
        row = {}
        for i, header in enumerate(headers):
            if not header:
                continue
            cell = values[i] if i < len(values) else ""
            row[header] = "" if cell is None else str(cell)
        return row

    def _find_row_number(self, headers: List[str], rows: List[List[Any]], serial: Any) -> Optional[int]:
        """Physical row number of the first row whose serial matches, else None."""
        if self.serial_column not in headers:
            return None
        col = headers.index(self.serial_column)
        for offset, values in enumerate(rows):
            cell = values[col] if col < len(values) else ""
            if serials_match(cell, serial):
                return self.header_row + 1 + offset
        return None

    def _to_values(self, headers: List[str], mapping: Mapping[str, Any], base: Optional[List[Any]] = None) -> List[Any]:
        known = set(h for h in headers if h)
        unknown = [k for k in mapping if k not in known and k != ROW_INDEX_KEY]
        if unknown:
            logger.warning(f"Dropping columns with no matching header: {unknown}")

        values = list(base or [])
        values += [""] * (len(headers) - len(values))
        for i, header in enumerate(headers):
            if header and header in mapping:
                value = mapping[header]
                values[i] = "" if value is None else value
        return values[:len(headers)]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_rows(self, sheet_title: str) -> List[Dict[str, Any]]:
        """
        All data rows below the header row as ``{header: cell}`` dicts.

        Each dict also carries ``rowIndex``, the physical row number at read
        time. It is not stable across writes.
        """
        worksheet = self._worksheet(sheet_title)
        headers, rows = self._headers_and_rows(worksheet)

        result = []
        for offset, values in enumerate(rows):
            row = self._row_dict(headers, values)
            row[ROW_INDEX_KEY] = self.header_row + 1 + offset
            result.append(row)

        logger.info(f"Read {len(result)} rows from '{sheet_title}'")
        return result

    def get_columns(self, columns: List[str], sheet_title: str) -> List[Dict[str, Any]]:
        """Project every row onto the given columns (absent columns are skipped)."""
        return [
            {col: row[col] for col in columns if col in row}
            for row in self.list_rows(sheet_title)
        ]

    def find_one(self, column: str, value: Any, sheet_title: str) -> Optional[Dict[str, Any]]:
        """First row whose column equals value exactly, or None."""
        for row in self.list_rows(sheet_title):
            if row.get(column) == value:
                return row
        return None

    def query(self, predicate: Callable[[Dict[str, Any]], bool], sheet_title: str) -> List[Dict[str, Any]]:
        """Rows for which predicate returns True."""
        return [row for row in self.list_rows(sheet_title) if predicate(row)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append_row(self, sheet_title: str, mapping: Mapping[str, Any]) -> bool:
        """Append a row after the last data row of the sheet."""
        worksheet = self._worksheet(sheet_title)
        headers, _rows = self._headers_and_rows(worksheet)
        if not any(headers):
            raise UpstreamFailure(f"Sheet \"{sheet_title}\" has no header row at row {self.header_row}")
        values = self._to_values(headers, mapping)

        try:
            self._append(worksheet, values)
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to append row to \"{sheet_title}\": {e}")
        return True

    @_retry_api
    def _append(self, worksheet, values: List[Any]) -> None:
        logger.info(f"Appending row to worksheet '{worksheet.title}'")
        # Anchor the table at the header row so gspread finds it below the offset
        worksheet.append_row(
            values,
            value_input_option="USER_ENTERED",
            table_range=f"A{self.header_row}",
        )

    def overwrite_row(self, sheet_title: str, serial: Any, mapping: Mapping[str, Any]) -> bool:
        """
        Replace the mapped columns of the first row matching serial.

        Returns:
            False if no row matches
        """
        worksheet = self._worksheet(sheet_title)
        headers, rows = self._headers_and_rows(worksheet)
        row_number = self._find_row_number(headers, rows, serial)
        if row_number is None:
            logger.info(f"No row with {self.serial_column}={serial!r} in '{sheet_title}'")
            return False

        current = rows[row_number - self.header_row - 1]
        values = self._to_values(headers, mapping, base=current)
        try:
            self._update(worksheet, row_number, values)
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to update row {row_number} in \"{sheet_title}\": {e}")
        return True

    @_retry_api
    def _update(self, worksheet, row_number: int, values: List[Any]) -> None:
        logger.info(f"Updating row {row_number} in worksheet '{worksheet.title}'")
        worksheet.update(
            range_name=f"A{row_number}",
            values=[values],
            value_input_option="USER_ENTERED",
        )

    def delete_row(self, sheet_title: str, serial: Any) -> bool:
        """
        Delete the first row matching serial.

        Returns:
            False if no row matches
        """
        worksheet = self._worksheet(sheet_title)
        headers, rows = self._headers_and_rows(worksheet)
        row_number = self._find_row_number(headers, rows, serial)
        if row_number is None:
            logger.info(f"No row with {self.serial_column}={serial!r} in '{sheet_title}'")
            return False

        try:
            self._delete(worksheet, row_number)
        except gspread.exceptions.APIError as e:
            raise UpstreamFailure(f"Failed to delete row {row_number} in \"{sheet_title}\": {e}")
        return True

    @_retry_api
    def _delete(self, worksheet, row_number: int) -> None:
        logger.info(f"Deleting row {row_number} from worksheet '{worksheet.title}'")
        worksheet.delete_rows(row_number)


# ----------------------------------------------------------------------
# Process-wide gateway
# ----------------------------------------------------------------------

_gateway: Optional[SheetsGateway] = None
_gateway_factory: Callable[[], SheetsGateway] = SheetsGateway


def get_gateway() -> SheetsGateway:
    """Get or create the process-wide gateway (created on first use)."""
    global _gateway
    if _gateway is None:
        _gateway = _gateway_factory()
    return _gateway


def set_gateway_factory(factory: Callable[[], SheetsGateway]) -> None:
    """Swap the factory used by get_gateway and drop the current instance."""
    global _gateway_factory, _gateway
    _gateway_factory = factory
    _gateway = None


def reset_gateway() -> None:
    """Drop the current gateway and restore the default factory."""
    set_gateway_factory(SheetsGateway)
