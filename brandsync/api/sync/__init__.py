from .service import RecordSyncService

__all__ = ["RecordSyncService"]
