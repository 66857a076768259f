"""
Client for the optional diagnostics sink.

The sink is a small HTTP service that keeps a running copy of a game's event
log and its latest state snapshot on disk for debugging. Posting to it is
fire-and-forget: failures are logged at debug level and reported as False,
and nothing in the engine depends on the sink being up.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class DiagnosticsClient:
    """Posts game events and snapshots to a diagnostics sink."""

    def __init__(self, base_url: str, timeout: float = 0.5,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> Optional['DiagnosticsClient']:
        """Build a client from engine config, or None if no sink is configured."""
        url = (config or {}).get('diagnostics_url')
        if not url:
            return None
        return cls(url)

    def _post(self, path: str, payload: Optional[Any] = None) -> bool:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.debug("Diagnostics sink %s unavailable: %s", url, e)
            return False

    def clear_session(self) -> bool:
        """Start a fresh log on the sink."""
        return self._post('/clear')

    def append_logs(self, entries: List[Dict[str, Any]]) -> bool:
        """Append event log entries."""
        if not entries:
            return True
        return self._post('/log', {'logs': entries})

    def replace_snapshot(self, snapshot: Dict[str, Any]) -> bool:
        """Replace the stored state snapshot."""
        return self._post('/dom-snapshot', snapshot)
