"""
Extraction of card metadata from raw email headers and subjects.

Upstream senders tag messages with:
    X-Planka-Board-Id: <digits>
    X-Planka-List-Id: <digits>
and may put a due date in the subject as DD-MM-YYYY HH:MM.
"""

import re
from datetime import datetime

from planka_mailer.core.logging import get_logger
from planka_mailer.core.models import EmailRecord, MailboxMessage

log = get_logger(__name__)

# Raw IMAP headers are CRLF terminated, so allow a trailing \r before the line end
BOARD_ID_PATTERN = re.compile(r"^X-Planka-Board-Id:\s*(\d+)\r?$", re.MULTILINE | re.ASCII)
LIST_ID_PATTERN = re.compile(r"^X-Planka-List-Id:\s*(\d+)\r?$", re.MULTILINE | re.ASCII)
SUBJECT_DATE_PATTERN = re.compile(r"(\d{2})-(\d{2})-(\d{4}) (\d{2}):(\d{2})", re.ASCII)


def _extract_id(pattern: re.Pattern, headers: str) -> int | None:
    if not headers:
        return None
    match = pattern.search(headers)
    return int(match.group(1)) if match else None


def extract_board_id(headers: str) -> int | None:
    """Return the Planka board id from the X-Planka-Board-Id header line, if any."""
    return _extract_id(BOARD_ID_PATTERN, headers)


def extract_list_id(headers: str) -> int | None:
    """Return the Planka list id from the X-Planka-List-Id header line, if any."""
    return _extract_id(LIST_ID_PATTERN, headers)


def extract_date(subject: str) -> datetime | None:
    """
    Extract a due date from the subject line.

    Matches the first DD-MM-YYYY HH:MM anywhere in the subject and builds a
    naive local datetime from the digits as written. Digits that do not form
    a real date (day 32, month 13, hour 25) give None.

    Args:
        subject: Decoded subject line

    Returns:
        Naive datetime, or None when there is no (valid) date
    """
    if not subject:
        return None
    match = SUBJECT_DATE_PATTERN.search(subject)
    if not match:
        return None

    day, month, year, hour, minute = (int(group) for group in match.groups())
    try:
        return datetime(year, month, day, hour, minute)
    except ValueError:
        log.warning("subject_date_invalid", value=match.group(0))
        return None


def parse_message(message: MailboxMessage) -> EmailRecord:
    """Build an EmailRecord from a listed message. The body is fetched separately."""
    return EmailRecord(
        title=message.subject,
        board_id=extract_board_id(message.headers),
        list_id=extract_list_id(message.headers),
        source_ref=message.uid,
        date=extract_date(message.subject),
    )
