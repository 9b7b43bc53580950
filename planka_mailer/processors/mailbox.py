"""
Mailbox synchronizer.

Scans the inbound container, turns tagged emails into Planka cards and files
every message into the accepted or rejected container.
"""

from planka_mailer.config import settings
from planka_mailer.core.logging import get_logger
from planka_mailer.core.models import BatchStats, EmailRecord, ProcessingResult
from planka_mailer.core.parser import parse_message
from planka_mailer.processors.base import BaseProcessor
from planka_mailer.processors.dispatch import CardDispatcher
from planka_mailer.services.imap import IMAPClient
from planka_mailer.services.planka import PlankaClient

log = get_logger(__name__)


class MailboxSynchronizer(BaseProcessor):
    """
    Mailbox to Planka processor.

    One call to process() is one batch: scan, dispatch, then move messages.
    Nothing is carried over between batches.
    """

    def __init__(
        self,
        imap: IMAPClient | None = None,
        dispatcher: CardDispatcher | None = None,
        inbox: str | None = None,
        accepted: str | None = None,
        rejected: str | None = None,
    ):
        self.imap = imap or IMAPClient()
        self.dispatcher = dispatcher or CardDispatcher(PlankaClient())
        self.inbox = inbox or settings.inbox_path
        self.accepted = accepted or settings.accepted_path
        self.rejected = rejected or settings.rejected_path

    def process(self) -> dict:
        """
        Run one synchronization batch.

        Returns:
            Statistics dict with counts
        """
        stats = BatchStats()

        with self.imap:
            records = self.collect_records(stats)
            results = self.dispatcher.dispatch(records)
            for result in results:
                stats.record(result)
            self.file_messages(results, stats)

        log.info("mailbox_sync_complete", **stats.to_dict())
        return stats.to_dict()

    def collect_records(self, stats: BatchStats | None = None) -> list[EmailRecord]:
        """
        Scan the inbound container and parse every message.

        A transport error stops the scan; records collected so far are kept.
        Bodies are only downloaded for records that carry a board id.
        """
        stats = stats if stats is not None else BatchStats()
        records: list[EmailRecord] = []

        try:
            for message in self.imap.list_messages(self.inbox):
                records.append(parse_message(message))
            stats.scanned = len(records)

            for record in records:
                if record.has_board:
                    record.body = self.imap.fetch_body(record.source_ref)
        except Exception as e:
            stats.scanned = len(records)
            stats.scan_interrupted = True
            log.error("mailbox_scan_interrupted", error=str(e), collected=len(records))

        log.info(
            "mailbox_scanned",
            folder=self.inbox,
            records=len(records),
            without_board=sum(1 for r in records if not r.has_board),
        )
        return records

    def file_messages(self, results: list[ProcessingResult], stats: BatchStats | None = None) -> None:
        """Move each source message to the container matching its disposition."""
        stats = stats if stats is not None else BatchStats()
        accepted = [r.record.source_ref for r in results if r.accepted]
        rejected = [r.record.source_ref for r in results if not r.accepted]

        if not accepted and not rejected:
            return

        try:
            self.imap.select(self.inbox)
        except Exception as e:
            log.error("message_move_failed", folder=self.inbox, error=str(e))
            stats.move_errors += len(accepted) + len(rejected)
            return

        for uids, folder in ((accepted, self.accepted), (rejected, self.rejected)):
            if not uids:
                continue
            try:
                self.imap.move_messages(uids, folder)
                log.info("messages_moved", folder=folder, count=len(uids))
            except Exception as e:
                log.error("message_move_failed", folder=folder, uids=uids, error=str(e))
                stats.move_errors += len(uids)


def run():
    """Entry point for a single synchronization run."""
    from planka_mailer.core.logging import configure_logging
    configure_logging()

    log.info("process_starting")
    try:
        stats = MailboxSynchronizer().process()
        log.info("cards_accepted", count=stats["accepted"])
        log.info("cards_rejected", count=stats["rejected"])
    except Exception as e:
        log.error("process_error", error=str(e))
    finally:
        log.info("process_completed")


if __name__ == "__main__":
    run()
