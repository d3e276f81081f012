"""Client for the Harvest v2 REST API."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from . import __version__
from .config import AccessToken
from .errors import ServiceUnavailable, TimerNotFound

logger = logging.getLogger(__name__)

BASE_URL = "https://api.harvestapp.com/v2"
DEFAULT_TIMEOUT = 10.0  # seconds


class HarvestClient:
    """Thin wrapper around the Harvest time entry endpoints."""

    def __init__(
        self,
        access_token: AccessToken,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.access_token = access_token
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._user_id: Optional[int] = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.access_token.token}",
                    "Harvest-Account-Id": str(self.access_token.account_id),
                    "User-Agent": f"clockhand/{__version__}",
                },
            )
        return self._client

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._get_client().request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()

        except ValueError as e:
            raise ServiceUnavailable(f"Harvest returned an unreadable response for {path}") from e
        except httpx.TimeoutException as e:
            raise ServiceUnavailable(f"Harvest timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise ServiceUnavailable(f"Failed to reach Harvest: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise TimerNotFound(f"Harvest has no such resource: {path}") from e
            if status in (401, 403):
                raise ServiceUnavailable(
                    "Harvest rejected the access token; check access-token.json"
                ) from e
            raise ServiceUnavailable(f"Harvest request failed ({status}): {e.response.text}") from e

    def me(self) -> Dict[str, Any]:
        """The currently authenticated user."""
        user = self._request("GET", "/users/me")
        if "id" not in user:
            raise ServiceUnavailable("Harvest did not say who the access token belongs to")
        self._user_id = user["id"]
        return user

    def user_id(self) -> int:
        if self._user_id is None:
            self.me()
        return self._user_id

    def running_timer(self) -> Optional[Dict[str, Any]]:
        """The user's running time entry, or None."""
        result = self._request(
            "GET",
            "/time_entries",
            params={"user_id": self.user_id(), "is_running": "true", "per_page": 1},
        )
        entries = result.get("time_entries", [])
        return entries[0] if entries else None

    def list_time_entries(
        self,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        project_id: Optional[int] = None,
        per_page: int = 200,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"user_id": self.user_id(), "per_page": per_page}
        if from_date:
            params["from"] = from_date.isoformat()
        if to_date:
            params["to"] = to_date.isoformat()
        if project_id is not None:
            params["project_id"] = project_id

        result = self._request("GET", "/time_entries", params=params)
        return result.get("time_entries", [])

    def task_assignments(self, project_id: int) -> List[Dict[str, Any]]:
        result = self._request(
            "GET",
            f"/projects/{project_id}/task_assignments",
            params={"is_active": "true"},
        )
        return result.get("task_assignments", [])

    def create_time_entry(
        self,
        project_id: int,
        task_id: int,
        spent_date: date,
        started_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a time entry without hours, which Harvest starts as a running timer."""
        payload: Dict[str, Any] = {
            "user_id": self.user_id(),
            "project_id": project_id,
            "task_id": task_id,
            "spent_date": spent_date.isoformat(),
        }
        if started_time:
            payload["started_time"] = started_time
        if notes:
            payload["notes"] = notes
        return self._request("POST", "/time_entries", json=payload)

    def restart_time_entry(self, entry_id: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/time_entries/{entry_id}/restart")

    def stop_time_entry(self, entry_id: int) -> Dict[str, Any]:
        return self._request("PATCH", f"/time_entries/{entry_id}/stop")

    def update_notes(self, entry_id: int, notes: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/time_entries/{entry_id}", json={"notes": notes})

    def close(self):
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
