"""Tests for the spreadsheet gateway."""

import json
import time

import gspread
import pytest
import requests

from brandsync.api.exceptions import ConfigurationError, SheetNotFound, UpstreamFailure
from brandsync.api.services.sheets import SheetsGateway, get_gateway, reset_gateway, set_gateway_factory

from conftest import FakeSpreadsheet, FakeWorksheet, HEADERS, make_row


def api_error(status):
    """A gspread APIError as raised for an HTTP error from the Sheets API."""
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps({
        "error": {"code": status, "message": f"HTTP {status}", "status": "ERROR"},
    }).encode()
    return gspread.exceptions.APIError(response)


class FlakyWorksheet(FakeWorksheet):
    """Fails get_all_values with the given HTTP statuses before answering."""

    def __init__(self, title, values, failures):
        super().__init__(title, values)
        self.failures = list(failures)

    def get_all_values(self):
        if self.failures:
            raise api_error(self.failures.pop(0))
        return super().get_all_values()


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff waits instead of sleeping."""
    waits = []
    monkeypatch.setattr(time, "sleep", waits.append)
    return waits


class TestReads:

    def test_list_sheets_in_spreadsheet_order(self, gateway):
        assert gateway.list_sheets() == ["Brands", "Archive"]

    def test_rows_start_below_header_row(self, gateway):
        rows = gateway.list_rows("Brands")
        assert [r["s_no"] for r in rows] == ["1", "2", "3"]
        assert rows[0]["brand_name"] == "Acme"
        assert rows[0]["rowIndex"] == 3
        assert rows[2]["rowIndex"] == 5

    def test_raw_rows_keep_every_header(self, gateway):
        row = gateway.list_rows("Brands")[0]
        assert row["internal_notes"] == "do not publish"
        assert row["Cover_text"] == "Old cover"

    def test_short_rows_are_padded(self):
        ws = FakeWorksheet("S", [["title"], ["s_no", "brand_name", "slug"], ["1", "Acme"]])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)
        assert gw.list_rows("S") == [{"s_no": "1", "brand_name": "Acme", "slug": "", "rowIndex": 3}]

    def test_blank_headers_are_ignored(self):
        ws = FakeWorksheet("S", [["s_no", "", "brand_name"], ["1", "junk", "Acme"]])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=1)
        assert gw.list_rows("S") == [{"s_no": "1", "brand_name": "Acme", "rowIndex": 2}]

    def test_sheet_shorter_than_header_offset_has_no_rows(self):
        ws = FakeWorksheet("S", [["only a title"]])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)
        assert gw.list_rows("S") == []

    def test_unknown_sheet(self, gateway):
        with pytest.raises(SheetNotFound) as exc_info:
            gateway.list_rows("Nonexistent")
        assert "Nonexistent" in exc_info.value.message

    def test_get_columns(self, gateway):
        assert gateway.get_columns(["s_no", "slug", "missing"], "Archive") == [{"s_no": "10", "slug": ""}]

    def test_find_one(self, gateway):
        assert gateway.find_one("slug", "acme", "Brands")["s_no"] == "1"
        assert gateway.find_one("slug", "nope", "Brands") is None

    def test_query(self, gateway):
        rows = gateway.query(lambda r: r["brand_name"].startswith("G"), "Brands")
        assert [r["s_no"] for r in rows] == ["3"]


class TestWrites:

    def test_append_row(self, gateway, brands_sheet):
        assert gateway.append_row("Brands", {"s_no": "4", "brand_name": "Umbrella"}) is True
        assert brands_sheet.row(6)["brand_name"] == "Umbrella"
        assert ("append_row", "A2") in brands_sheet.calls

    def test_append_to_unknown_sheet(self, gateway):
        with pytest.raises(SheetNotFound):
            gateway.append_row("Nonexistent", {"s_no": "1"})

    def test_append_without_header_row(self):
        ws = FakeWorksheet("S", [["only a title"]])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)
        with pytest.raises(UpstreamFailure) as exc_info:
            gw.append_row("S", {"s_no": "1", "brand_name": "Acme"})
        assert "no header row" in exc_info.value.message
        assert ws.values == [["only a title"]]

    def test_columns_without_header_are_dropped(self, gateway, brands_sheet):
        gateway.append_row("Brands", {"s_no": "4", "brand_name": "Umbrella", "not_a_column": "x"})
        assert len(brands_sheet.values[-1]) == len(HEADERS)
        assert "x" not in brands_sheet.values[-1]

    def test_overwrite_replaces_mapped_columns(self, gateway, brands_sheet):
        assert gateway.overwrite_row("Brands", "1", {"brand_name": "Acme Corp", "Founder_name": ""}) is True
        row = brands_sheet.row(3)
        assert row["brand_name"] == "Acme Corp"
        assert row["Founder_name"] == ""
        # Columns not in the mapping keep their value
        assert row["internal_notes"] == "do not publish"

    def test_overwrite_matches_loosely(self, gateway, brands_sheet):
        assert gateway.overwrite_row("Brands", 3, {"slug": "globex"}) is True
        assert brands_sheet.row(5)["slug"] == "globex"

    def test_overwrite_missing_serial(self, gateway, brands_sheet):
        before = [list(r) for r in brands_sheet.values]
        assert gateway.overwrite_row("Brands", "99", {"brand_name": "Ghost"}) is False
        assert brands_sheet.values == before

    def test_duplicate_serial_resolves_to_first_row(self):
        ws = FakeWorksheet("S", [
            ["title"],
            ["s_no", "brand_name"],
            ["1", "First"],
            ["1", "Second"],
        ])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)
        gw.overwrite_row("S", "1", {"brand_name": "Updated"})
        assert ws.values[2] == ["1", "Updated"]
        assert ws.values[3] == ["1", "Second"]

    def test_delete_is_idempotent(self, gateway, brands_sheet):
        assert gateway.delete_row("Brands", "3") is True
        assert gateway.delete_row("Brands", "3") is False
        assert [r["s_no"] for r in gateway.list_rows("Brands")] == ["1", "2"]

    def test_delete_without_serial_column(self):
        ws = FakeWorksheet("S", [["title"], ["brand_name"], ["Acme"]])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)
        assert gw.delete_row("S", "1") is False


class TestConnection:

    def test_spreadsheet_opened_lazily_once(self, spreadsheet):
        calls = []

        def opener():
            calls.append(1)
            return spreadsheet

        gw = SheetsGateway(spreadsheet_opener=opener, header_row=2)
        assert calls == []
        gw.list_sheets()
        gw.list_rows("Brands")
        assert calls == [1]

    def test_configuration_error_propagates(self):
        def opener():
            raise ConfigurationError("Missing GOOGLE_PRIVATE_KEY or GOOGLE_CLIENT_EMAIL in environment")

        gw = SheetsGateway(spreadsheet_opener=opener, header_row=2)
        with pytest.raises(ConfigurationError):
            gw.list_sheets()

    def test_other_open_failures_become_upstream_failures(self):
        def opener():
            raise ConnectionError("network down")

        gw = SheetsGateway(spreadsheet_opener=opener, header_row=2)
        with pytest.raises(UpstreamFailure) as exc_info:
            gw.list_sheets()
        assert "network down" in exc_info.value.message

    def test_process_wide_gateway_uses_factory(self, gateway):
        set_gateway_factory(lambda: gateway)
        try:
            assert get_gateway() is gateway
            assert get_gateway() is get_gateway()
        finally:
            reset_gateway()

    def test_missing_credentials(self, monkeypatch):
        for name in ("SERVICE_ACCOUNT_CREDENTIALS", "GOOGLE_CLIENT_EMAIL", "GOOGLE_PRIVATE_KEY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-id")

        gw = SheetsGateway(header_row=2)
        with pytest.raises(ConfigurationError) as exc_info:
            gw.list_sheets()
        assert "GOOGLE_CLIENT_EMAIL" in exc_info.value.message


class TestRetries:

    def rows(self):
        return [["title"], ["s_no", "brand_name"], ["1", "Acme"]]

    def test_rate_limit_is_retried(self, sleeps):
        ws = FlakyWorksheet("S", self.rows(), failures=[429])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)

        assert [r["brand_name"] for r in gw.list_rows("S")] == ["Acme"]
        assert len(sleeps) == 1
        assert ws.failures == []

    def test_client_error_is_not_retried(self, sleeps):
        ws = FlakyWorksheet("S", self.rows(), failures=[403, 403])
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)

        with pytest.raises(UpstreamFailure) as exc_info:
            gw.list_rows("S")
        assert "S" in exc_info.value.message
        assert sleeps == []
        assert ws.failures == [403]

    def test_gives_up_after_five_tries(self, sleeps):
        ws = FlakyWorksheet("S", self.rows(), failures=[503] * 6)
        gw = SheetsGateway(spreadsheet_opener=lambda: FakeSpreadsheet([ws]), header_row=2)

        with pytest.raises(UpstreamFailure):
            gw.delete_row("S", "1")
        assert len(sleeps) == 4
        assert ws.failures == [503]
        assert ws.values[2] == ["1", "Acme"]
