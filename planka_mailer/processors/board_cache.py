"""
Per-batch cache of Planka boards and their preferred lists.
"""

from typing import Iterable

import requests

from planka_mailer.core.logging import get_logger
from planka_mailer.core.models import BoardCacheEntry, BoardList
from planka_mailer.services.planka import PlankaClient

log = get_logger(__name__)

# Cards go to the list with this name (case-insensitive) unless the email names a list
PREFERRED_LIST_NAME = "mail"


def choose_preferred_list(lists: list[BoardList]) -> BoardList | None:
    """The list named 'mail', else the first list, else None."""
    if not lists:
        return None
    for board_list in lists:
        if board_list.name.lower() == PREFERRED_LIST_NAME:
            return board_list
    return lists[0]


class BoardResolverCache:
    """
    Board lookups for a single batch.

    Filled once by prefetch() and only read afterwards. A board that failed
    to load is stored as None (negative entry), which is different from a
    board that was never looked up (missing key).
    """

    def __init__(self, client: PlankaClient):
        self.client = client
        self._entries: dict[int, BoardCacheEntry | None] = {}

    def __contains__(self, board_id: int) -> bool:
        return board_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def prefetch(self, board_ids: Iterable[int]) -> None:
        """Fetch every board not already cached, once each."""
        for board_id in board_ids:
            if board_id is None or board_id in self._entries:
                continue
            self._entries[board_id] = self._load(board_id)

        log.info(
            "boards_cached",
            total=len(self._entries),
            unresolved=sum(1 for entry in self._entries.values() if entry is None),
        )

    def _load(self, board_id: int) -> BoardCacheEntry | None:
        try:
            response = self.client.get_board(board_id)
        except requests.RequestException as e:
            log.warning("board_fetch_error", board_id=board_id, error=str(e))
            return None

        if not response.ok or response.data is None:
            log.warning("board_fetch_failed", board_id=board_id, status=response.status)
            return None

        lists = [BoardList.from_dict(item) for item in PlankaClient.lists_from(response)]
        preferred = choose_preferred_list(lists)
        log.debug(
            "board_cached",
            board_id=board_id,
            lists=len(lists),
            preferred_list=preferred.id if preferred else None,
        )
        return BoardCacheEntry(board=response.data, preferred_list=preferred)

    def resolve(self, board_id: int | None) -> BoardCacheEntry | None:
        """Cached entry for a board, or None if it is unknown or failed to load."""
        if board_id is None:
            return None
        return self._entries.get(board_id)

    def is_negative(self, board_id: int) -> bool:
        """True if the board was looked up in this batch and failed."""
        return board_id in self._entries and self._entries[board_id] is None
