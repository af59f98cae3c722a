"""HTTP client for the notifications API, used by the inbox cache."""

from typing import Any, Dict, Optional

import httpx

from config import config
from exceptions import NotificationNotFound


class InboxApi:
    """
    Thin async wrapper over ``/api/notifications``.

    Credentials are attached per call: every method takes the bearer token, and
    the underlying ``httpx.AsyncClient`` never carries auth in its default headers,
    so one user's session cannot leak into another's request.
    """

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self._client = client or httpx.AsyncClient(base_url=base_url or config.API_URL, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    @staticmethod
    def _auth(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, token: str, notification_id: Optional[str] = None, **kwargs) -> Any:
        response = await self._client.request(method, path, headers=self._auth(token), **kwargs)
        if response.status_code == 404 and notification_id is not None:
            raise NotificationNotFound(notification_id)
        response.raise_for_status()
        return response.json()

    async def list_notifications(self, token: str, page: int = 1, limit: Optional[int] = None, read: Optional[bool] = None) -> Dict[str, Any]:
        params = {"page": page, "limit": limit or config.NOTIFICATION_PAGE_SIZE}
        if read is not None:
            params["read"] = "true" if read else "false"
        return await self._request("GET", "/api/notifications", token, params=params)

    async def unread_count(self, token: str) -> int:
        data = await self._request("GET", "/api/notifications/unread-count", token)
        return data["count"]

    async def mark_read(self, token: str, notification_id: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/notifications/{notification_id}/read", token, notification_id=notification_id)

    async def mark_all_read(self, token: str) -> Dict[str, Any]:
        return await self._request("PUT", "/api/notifications/mark-all-read", token)

    async def delete(self, token: str, notification_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/notifications/{notification_id}", token, notification_id=notification_id)
