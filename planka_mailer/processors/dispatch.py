"""
Card dispatch: turns parsed email records into Planka cards.

Each record ends up ACCEPTED (card created) or REJECTED (nothing created).
Setting the description and due date is a separate best-effort step that
never changes the disposition.
"""

from typing import Iterable

import requests

from planka_mailer.core.logging import get_logger, bind_context, clear_context
from planka_mailer.core.models import (
    CardCreation,
    Disposition,
    EmailRecord,
    ProcessingResult,
    RejectReason,
)
from planka_mailer.processors.board_cache import BoardResolverCache
from planka_mailer.services.planka import PlankaClient

log = get_logger(__name__)

# New cards always go to the top of the target list
CARD_POSITION = 0


class CardDispatcher:
    """Creates one card per resolvable record and reports a disposition for each."""

    def __init__(self, client: PlankaClient | None):
        if client is None:
            raise RuntimeError("Planka client has not been initialized")
        self.client = client

    def dispatch(
        self,
        records: Iterable[EmailRecord],
        cache: BoardResolverCache | None = None,
    ) -> list[ProcessingResult]:
        """
        Process a batch of records.

        All boards referenced by the batch are fetched before the first card
        is created.

        Args:
            records: Parsed email records
            cache: Board cache for this batch, a new one is built if omitted

        Returns:
            One ProcessingResult per record, in input order
        """
        records = list(records)
        cache = cache if cache is not None else BoardResolverCache(self.client)

        log.info("dispatch_starting", records=len(records))
        cache.prefetch({record.board_id for record in records if record.has_board})

        results = []
        for record in records:
            try:
                bind_context(uid=record.source_ref, board_id=record.board_id)
                results.append(self._dispatch_one(record, cache))
            finally:
                clear_context()

        log.info(
            "dispatch_complete",
            accepted=sum(1 for r in results if r.accepted),
            rejected=sum(1 for r in results if not r.accepted),
        )
        return results

    def _dispatch_one(self, record: EmailRecord, cache: BoardResolverCache) -> ProcessingResult:
        if not record.has_board:
            log.warning("card_rejected", reason="missing board id")
            return self._reject(record, RejectReason.MISSING_BOARD_ID)

        entry = cache.resolve(record.board_id)
        if entry is None:
            log.warning("card_rejected", reason="board not found")
            return self._reject(record, RejectReason.BOARD_NOT_FOUND)

        list_id = record.list_id
        if list_id is None and entry.preferred_list is not None:
            list_id = entry.preferred_list.id
        if list_id is None:
            log.warning("card_rejected", reason="list not found")
            return self._reject(record, RejectReason.NO_LIST_AVAILABLE)

        creation = self.create_card(record, list_id)
        if not creation.ok:
            log.warning("card_rejected", reason="create failed", list_id=list_id, error=creation.error)
            return self._reject(record, RejectReason.CREATE_FAILED, list_id=list_id)

        log.info("card_created", list_id=list_id, card_id=creation.card_id)

        if record.body:
            self.update_card(record, creation.card_id)

        return ProcessingResult(
            record=record,
            disposition=Disposition.ACCEPTED,
            list_id=list_id,
            card_id=creation.card_id,
        )

    def create_card(self, record: EmailRecord, list_id: int) -> CardCreation:
        """Single attempt at creating the card. Never raises."""
        try:
            response = self.client.create_card(list_id, record.title, position=CARD_POSITION)
        except requests.RequestException as e:
            return CardCreation(error=str(e))

        if not response.ok:
            return CardCreation(error=f"status {response.status}")

        card_id = PlankaClient.card_id_from(response)
        if card_id is None:
            return CardCreation(error="response without card id")
        return CardCreation(card_id=card_id)

    def update_card(self, record: EmailRecord, card_id: int) -> bool:
        """Attach description and due date. Failures are logged and swallowed."""
        try:
            response = self.client.update_card(
                card_id,
                description=record.body,
                due_date=record.date,
            )
        except requests.RequestException as e:
            log.error("card_update_failed", card_id=card_id, error=str(e))
            return False

        if not response.ok:
            log.error("card_update_failed", card_id=card_id, status=response.status)
            return False

        log.debug("card_updated", card_id=card_id, due_date=record.date)
        return True

    @staticmethod
    def _reject(
        record: EmailRecord,
        reason: RejectReason,
        list_id: int | None = None,
    ) -> ProcessingResult:
        return ProcessingResult(
            record=record,
            disposition=Disposition.REJECTED,
            reason=reason,
            list_id=list_id,
        )
