"""
Trip storage client for tripweave.

The planner does not persist anything itself. Trips and their places are
read from, and the applied visiting order written back to, the trip API
of the planner web application:

    GET   {base_url}/api/trips         -> {"trips": [...]}
    GET   {base_url}/api/trips/<id>    -> {"trip": {...}}
    PATCH {base_url}/api/trips/<id>    <- {"places": [<place document _id>, ...]}

Network failures and error responses are logged and reported as
``None`` / ``False``; they never raise into the planner.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import requests

from tripweave.models import Trip

logger = logging.getLogger(__name__)


class TripStoreClient:
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, path: str) -> Optional[dict]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Trip storage request to %s failed: %s", url, exc)
            return None
        if resp.status_code != 200:
            logger.warning("Trip storage returned %s for %s", resp.status_code, url)
            return None
        try:
            return resp.json()
        except ValueError:
            logger.warning("Trip storage returned invalid JSON for %s", url)
            return None

    def fetch_trips(self) -> List[Trip]:
        """Return all trips visible to the configured user (empty on failure)."""
        data = self._get("/api/trips")
        if not data:
            return []
        return [Trip.from_api(t) for t in data.get("trips", [])]

    def fetch_trip(self, trip_id: str) -> Optional[Trip]:
        data = self._get(f"/api/trips/{trip_id}")
        if not data or not data.get("trip"):
            return None
        return Trip.from_api(data["trip"])

    def save_place_order(self, trip_id: str, place_ids: Sequence[str]) -> bool:
        """Store the applied visiting order of a trip's places."""
        url = f"{self.base_url}/api/trips/{trip_id}"
        try:
            resp = self.session.patch(
                url, json={"places": list(place_ids)}, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.warning("Saving place order for trip %s failed: %s", trip_id, exc)
            return False
        if resp.status_code != 200:
            logger.warning("Trip storage returned %s when saving trip %s", resp.status_code, trip_id)
            return False
        return True
