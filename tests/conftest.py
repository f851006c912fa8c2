"""Pytest configuration and fixtures."""

import pytest
import gspread
from fastapi.testclient import TestClient

from brandsync.api.services.sheets import SheetsGateway, reset_gateway, set_gateway_factory

HEADERS = [
    "s_no", "brand_name", "brand_logo", "slug", "Founder_name", "Founder_image",
    "OLD_MRR", "timeline", "New_MRR", "Cover_Image_link", "Cover_text", "Cover_text_1",
    "body_text", "body_text_1", "Custom_CTA", "SEO_meta_data", "Category_tags", "tag",
    "internal_notes",
]


class FakeWorksheet:
    """In-memory stand-in for gspread.Worksheet (values only)."""

    def __init__(self, title, values):
        self.title = title
        self.values = [list(row) for row in values]
        self.calls = []

    def get_all_values(self):
        self.calls.append("get_all_values")
        return [list(row) for row in self.values]

    def append_row(self, values, value_input_option=None, table_range=None):
        self.calls.append(("append_row", table_range))
        self.values.append(["" if v is None else str(v) for v in values])

    def update(self, range_name=None, values=None, value_input_option=None):
        self.calls.append(("update", range_name))
        row_number = int(range_name.lstrip("A"))
        new = ["" if v is None else str(v) for v in values[0]]
        old = self.values[row_number - 1]
        self.values[row_number - 1] = new + old[len(new):]

    def delete_rows(self, start_index, end_index=None):
        self.calls.append(("delete_rows", start_index))
        del self.values[start_index - 1:(end_index or start_index)]

    def header(self, header_row=2):
        return self.values[header_row - 1]

    def row(self, row_number, header_row=2):
        """Row as a dict keyed by header."""
        headers = self.header(header_row)
        values = self.values[row_number - 1]
        return {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}


class FakeSpreadsheet:
    def __init__(self, worksheets):
        self._worksheets = list(worksheets)

    def worksheets(self):
        return list(self._worksheets)

    def worksheet(self, title):
        for ws in self._worksheets:
            if ws.title == title:
                return ws
        raise gspread.exceptions.WorksheetNotFound(title)


def make_row(**cells):
    return [cells.get(h, "") for h in HEADERS]


@pytest.fixture
def brands_sheet():
    """Sheet with a title row, headers on row 2, data from row 3."""
    return FakeWorksheet("Brands", [
        ["Brand case studies"],
        HEADERS,
        make_row(s_no="1", brand_name="Acme", slug="acme", Founder_name="Wile E.",
                 Cover_text_1="New cover", Cover_text="Old cover", tag="saas,b2b",
                 internal_notes="do not publish"),
        make_row(s_no="2", brand_name="", slug="placeholder"),
        make_row(s_no="3", brand_name="Globex", body_text="<p>legacy body</p>", tag=""),
    ])


@pytest.fixture
def archive_sheet():
    return FakeWorksheet("Archive", [
        [""],
        HEADERS,
        make_row(s_no="10", brand_name="Initech"),
    ])


@pytest.fixture
def spreadsheet(brands_sheet, archive_sheet):
    return FakeSpreadsheet([brands_sheet, archive_sheet])


@pytest.fixture
def gateway(spreadsheet):
    return SheetsGateway(spreadsheet_opener=lambda: spreadsheet, header_row=2, serial_column="s_no")


@pytest.fixture
def client(gateway):
    """API test client whose process-wide gateway is the fake one."""
    from brandsync.api.app import app

    set_gateway_factory(lambda: gateway)
    with TestClient(app) as test_client:
        yield test_client
    reset_gateway()
