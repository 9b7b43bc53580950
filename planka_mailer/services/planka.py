"""
Planka API client for board and card operations.
"""

from datetime import datetime
from typing import Any

import requests

from planka_mailer.config import settings
from planka_mailer.core.logging import get_logger
from planka_mailer.core.models import ApiResponse

log = get_logger(__name__)


def to_planka_datetime(value: datetime | None) -> str | None:
    """Serialize a due date for Planka.

    Naive datetimes are taken as local time and sent as ISO 8601 with offset.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat()


class PlankaClient:
    """Client for Planka REST API operations.

    HTTP error statuses are returned in the ApiResponse, not raised.
    Transport failures (connection, timeout) raise requests.RequestException.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.url = (url or settings.planka_url).rstrip("/")
        self.api_key = api_key or settings.planka_api_key
        self.timeout = timeout or settings.planka_timeout

        if not self.url:
            raise RuntimeError("Planka URL is not configured")
        if not self.api_key:
            raise RuntimeError("Planka API key is not configured. Set PLANKA_API_KEY.")

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @staticmethod
    def _to_response(response: requests.Response) -> ApiResponse:
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = None
        return ApiResponse(status=response.status_code, data=data)

    def _get(self, endpoint: str) -> ApiResponse:
        response = requests.get(
            f"{self.url}{endpoint}",
            headers=self._auth_headers,
            timeout=self.timeout,
        )
        return self._to_response(response)

    def _post(self, endpoint: str, data: dict[str, Any]) -> ApiResponse:
        response = requests.post(
            f"{self.url}{endpoint}",
            json=data,
            headers=self._auth_headers,
            timeout=self.timeout,
        )
        return self._to_response(response)

    def _patch(self, endpoint: str, data: dict[str, Any]) -> ApiResponse:
        response = requests.patch(
            f"{self.url}{endpoint}",
            json=data,
            headers=self._auth_headers,
            timeout=self.timeout,
        )
        return self._to_response(response)

    # Board Operations

    def get_board(self, board_id: int) -> ApiResponse:
        """
        Fetch a board together with its included lists.

        Returns:
            ApiResponse whose data holds 'item' (the board) and 'included.lists'.
        """
        response = self._get(f"/api/boards/{board_id}")
        log.debug("planka_get_board", board_id=board_id, status=response.status)
        return response

    # Card Operations

    def create_card(self, list_id: int, name: str, position: int = 0) -> ApiResponse:
        """
        Create a card in a list.

        Args:
            list_id: Target list id
            name: Card title
            position: Placement within the list (0 is the top)

        Returns:
            ApiResponse whose data holds the created card under 'item'.
        """
        response = self._post(
            f"/api/lists/{list_id}/cards",
            {"name": name, "position": position},
        )
        log.debug("planka_create_card", list_id=list_id, status=response.status)
        return response

    def update_card(
        self,
        card_id: int,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> ApiResponse:
        """Set the description and due date of an existing card."""
        response = self._patch(
            f"/api/cards/{card_id}",
            {
                "description": description,
                "dueDate": to_planka_datetime(due_date),
            },
        )
        log.debug("planka_update_card", card_id=card_id, status=response.status)
        return response

    @staticmethod
    def card_id_from(response: ApiResponse) -> int | None:
        """Extract the card id from a create_card response."""
        item = (response.data or {}).get("item") or {}
        card_id = item.get("id")
        if card_id is None:
            return None
        try:
            return int(card_id)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def lists_from(response: ApiResponse) -> list[dict[str, Any]]:
        """Extract the included lists from a get_board response, in API order."""
        included = (response.data or {}).get("included") or {}
        return list(included.get("lists") or [])
