"""
HTTP client for the BrandSync API.
"""
import logging
from typing import Any, Dict, Optional

import requests

from brandsync.api.config_manager import get_config_manager
from brandsync.api.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


class SyncApiClient:
    """
    Calls the read and write endpoints.

    ``session`` may be any object with requests-style ``get``/``post``
    (a ``requests.Session`` by default, a FastAPI ``TestClient`` in tests).
    No timeout is set; the transport default applies.
    """

    def __init__(self, base_url: Optional[str] = None, session: Any = None, path: str = "/sync"):
        if base_url is None:
            base_url = get_config_manager().base_url
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.url = f"{self.base_url}{path}"

    def _parse(self, response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400 or not isinstance(payload, dict) or "error" in payload:
            message = payload.get("error") if isinstance(payload, dict) else None
            raise UpstreamFailure(message or f"Sync API returned HTTP {response.status_code}")
        return payload

    def read(self, sheet: Optional[str] = None) -> Dict[str, Any]:
        """GET the records of a sheet (first sheet when None)."""
        params = {"sheet": sheet} if sheet else None
        logger.info(f"Fetching records (sheet={sheet!r})")
        try:
            response = self.session.get(self.url, params=params)
        except requests.RequestException as e:
            raise UpstreamFailure(f"Sync API unreachable: {e}")
        return self._parse(response)

    def write(self, sheet_name: Optional[str], data: Dict[str, Any], action: str) -> Dict[str, Any]:
        """POST a CREATE / UPDATE / DELETE."""
        body = {"sheetName": sheet_name, "data": data, "action": action}
        logger.info(f"Sending {action} for s_no={data.get('s_no')!r} to sheet {sheet_name!r}")
        try:
            response = self.session.post(self.url, json=body)
        except requests.RequestException as e:
            raise UpstreamFailure(f"Sync API unreachable: {e}")
        return self._parse(response)
