"""
External Service Integrations

Usage:
    from brandsync.api.services.sheets import SheetsGateway, get_gateway
"""
from .sheets import SheetsGateway, get_gateway

__all__ = [
    'SheetsGateway',
    'get_gateway',
]
