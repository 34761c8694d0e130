"""Thin WorkOS REST client covering the list and delete endpoints."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

from .exceptions import NotFoundError, RateLimitError, WorkOSApiError
from .models import Entity

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.workos.com"
DEFAULT_TIMEOUT = 30


@dataclass
class Page:
    """One page of a cursor-paginated listing."""

    items: List[Entity] = field(default_factory=list)
    next_cursor: Optional[str] = None


class WorkOSClient:
    """WorkOS API client for listing and deleting organizations and users."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

    def _raise_for_status(self, response: requests.Response) -> None:
        if response.status_code in (200, 201, 202, 204):
            return

        message = response.reason or "Request failed"
        try:
            error_data = response.json()
            if isinstance(error_data, dict) and error_data.get('message'):
                message = error_data['message']
        except ValueError:
            if response.text:
                message = response.text

        if response.status_code == 429:
            raise RateLimitError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        raise WorkOSApiError(response.status_code, message)

    def _list(self, path: str, limit: int, order: str, after: Optional[str]) -> Dict:
        params = {'limit': limit, 'order': order}
        if after:
            params['after'] = after

        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        self._raise_for_status(response)
        return response.json()

    def _delete(self, path: str) -> None:
        response = self.session.delete(f"{self.base_url}{path}", timeout=self.timeout)
        self._raise_for_status(response)

    @staticmethod
    def _next_cursor(data: Dict) -> Optional[str]:
        return (data.get('list_metadata') or {}).get('after') or None

    def list_organizations(self, limit: int = 100, order: str = "desc", after: Optional[str] = None) -> Page:
        """Get one page of organizations."""
        data = self._list("/organizations", limit, order, after)
        items = [Entity.organization_from_api(org) for org in data.get('data') or []]
        return Page(items, self._next_cursor(data))

    def list_users(self, limit: int = 100, order: str = "desc", after: Optional[str] = None) -> Page:
        """Get one page of users."""
        data = self._list("/user_management/users", limit, order, after)
        items = [Entity.user_from_api(user) for user in data.get('data') or []]
        return Page(items, self._next_cursor(data))

    def delete_organization(self, organization_id: str) -> None:
        """Delete a WorkOS organization."""
        self._delete(f"/organizations/{organization_id}")
        logger.debug(f"Deleted organization {organization_id}")

    def delete_user(self, user_id: str) -> None:
        """Delete a WorkOS user."""
        self._delete(f"/user_management/users/{user_id}")
        logger.debug(f"Deleted user {user_id}")

    def close(self) -> None:
        self.session.close()
