"""Client side of BrandSync: API client and record store."""
from .api_client import SyncApiClient
from .store import RecordStore, WriteState

__all__ = ["SyncApiClient", "RecordStore", "WriteState"]
