"""
Google Sheets Service Module

Provides the spreadsheet gateway used by the sync service.
"""
from .client import (
    SheetsGateway,
    get_gateway,
    open_spreadsheet,
    reset_gateway,
    set_gateway_factory,
)

__all__ = [
    'SheetsGateway',
    'get_gateway',
    'open_spreadsheet',
    'reset_gateway',
    'set_gateway_factory',
]
