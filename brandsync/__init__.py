"""BrandSync - spreadsheet-backed brand record management."""

__version__ = "1.0.0"
