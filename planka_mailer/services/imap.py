"""
IMAP client for scanning and filing card request emails.
"""

import imaplib
from email import message_from_bytes
from email.header import decode_header as email_decode_header
from typing import Iterable, Iterator

from planka_mailer.config import settings
from planka_mailer.core.logging import get_logger
from planka_mailer.core.models import MailboxMessage

log = get_logger(__name__)


class IMAPError(Exception):
    """An IMAP command returned a non-OK status."""


def _quote(folder: str) -> str:
    if folder.startswith('"') or not any(ch in folder for ch in ' "\\'):
        return folder
    escaped = folder.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _fetch_payload(fetch_data) -> bytes | None:
    """First literal payload from a FETCH response."""
    for part in fetch_data or []:
        if isinstance(part, tuple) and len(part) >= 2 and isinstance(part[1], bytes):
            return part[1]
    return None


def _decode_bytes(data: bytes, charset: str | None) -> str:
    """Decode with the declared charset, UTF-8 if it is missing or unknown."""
    try:
        return data.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return data.decode("utf-8", errors="replace")


class IMAPClient:
    """IMAP client for the card request mailbox."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
    ):
        self.host = host or settings.imap_host
        self.port = port or settings.imap_port
        self.username = username or settings.imap_username
        self.password = password if password is not None else settings.imap_password
        self._conn: imaplib.IMAP4_SSL | None = None
        self._selected: str | None = None

    def connect(self) -> None:
        """Connect and authenticate to IMAP server."""
        log.info("imap_connecting", host=self.host, port=self.port, username=self.username)
        conn = None
        try:
            conn = imaplib.IMAP4_SSL(self.host, self.port)
            conn.login(self.username, self.password)
            self._conn = conn  # Only set if login succeeds
            log.info("imap_connected")
        except Exception:
            if conn:
                try:
                    conn.logout()
                except Exception:
                    pass
            raise

    def disconnect(self) -> None:
        """Close IMAP connection."""
        if self._conn:
            try:
                self._conn.logout()
            except Exception:
                pass
            self._conn = None
            self._selected = None
            log.info("imap_disconnected")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def conn(self) -> imaplib.IMAP4_SSL:
        if not self._conn:
            raise RuntimeError("Not connected to IMAP server")
        return self._conn

    def select(self, folder: str) -> None:
        """Open a folder read-write so messages can be moved out of it."""
        status, data = self.conn.select(_quote(folder))
        if status != "OK":
            raise IMAPError(f"Cannot select {folder}: {data}")
        self._selected = folder

    def list_messages(self, folder: str) -> Iterator[MailboxMessage]:
        """
        List messages in a folder with their raw headers and decoded subject.

        A failing IMAP command ends the iteration with an exception, and
        whatever was yielded before stays valid. A message whose headers
        cannot be parsed is still yielded (with an empty subject) so it gets
        filed instead of blocking the messages after it.

        Args:
            folder: Full IMAP folder path

        Yields:
            MailboxMessage objects, in ascending UID order
        """
        self.select(folder)

        status, data = self.conn.uid("SEARCH", None, "ALL")
        if status != "OK":
            raise IMAPError(f"UID SEARCH failed in {folder}: {data}")
        uids = [uid.decode("ascii", errors="ignore") for uid in (data[0] or b"").split()]

        log.info("imap_listing", folder=folder, count=len(uids))

        for uid in uids:
            status, fetch_data = self.conn.uid("FETCH", uid, "(BODY.PEEK[HEADER])")
            if status != "OK":
                raise IMAPError(f"UID FETCH {uid} failed: {fetch_data}")
            raw_headers = _fetch_payload(fetch_data)
            if raw_headers is None:
                log.warning("imap_fetch_empty", uid=uid, folder=folder)
                continue

            headers = raw_headers.decode("utf-8", errors="replace")
            try:
                subject = self._decode_header(message_from_bytes(raw_headers).get("Subject", ""))
            except Exception as e:
                log.error("imap_fetch_error", uid=uid, error=str(e))
                subject = ""

            yield MailboxMessage(uid=uid, headers=headers, subject=subject)

    def fetch_body(self, uid: str) -> str:
        """
        Download a message and return its plain text body.

        Transfer encoding (base64, quoted-printable) and the part charset are
        decoded. Falls back to the first non-attachment part when there is
        no text/plain part.
        """
        status, fetch_data = self.conn.uid("FETCH", uid, "(BODY.PEEK[])")
        if status != "OK":
            raise IMAPError(f"UID FETCH {uid} body failed: {fetch_data}")
        raw = _fetch_payload(fetch_data)
        if raw is None:
            return ""
        return self._get_body(message_from_bytes(raw))

    def _get_body(self, msg) -> str:
        """Plain text of the first text/plain part, else of the first inline part."""
        fallback = None
        for part in msg.walk():
            if part.is_multipart():
                continue
            if "attachment" in part.get("Content-Disposition", ""):
                continue
            if part.get_content_type() == "text/plain":
                return self._decode_payload(part)
            if fallback is None:
                fallback = part
        return self._decode_payload(fallback) if fallback is not None else ""

    @staticmethod
    def _decode_payload(part) -> str:
        payload = part.get_payload(decode=True)
        if not payload:
            return ""
        return _decode_bytes(payload, part.get_content_charset())

    def move_messages(self, uids: Iterable[str], folder: str) -> None:
        """
        Move messages from the selected folder into another folder.

        Uses UID MOVE, falling back to COPY + \\Deleted + EXPUNGE for
        servers without the MOVE extension.
        """
        uid_set = ",".join(uids)
        if not uid_set:
            return
        target = _quote(folder)

        try:
            status, data = self.conn.uid("MOVE", uid_set, target)
        except imaplib.IMAP4.error as e:
            # Servers without MOVE answer BAD, which imaplib raises
            status, data = "BAD", [str(e).encode()]
        if status == "OK":
            log.debug("imap_moved", uids=uid_set, folder=folder)
            return

        status, data = self.conn.uid("COPY", uid_set, target)
        if status != "OK":
            raise IMAPError(f"Cannot copy {uid_set} to {folder}: {data}")
        status, data = self.conn.uid("STORE", uid_set, "+FLAGS.SILENT", r"(\Deleted)")
        if status != "OK":
            raise IMAPError(f"Cannot flag {uid_set} as deleted: {data}")
        status, data = self.conn.expunge()
        if status != "OK":
            raise IMAPError(f"Expunge failed after copying {uid_set}: {data}")
        log.debug("imap_copied_and_expunged", uids=uid_set, folder=folder)

    def _decode_header(self, header: str) -> str:
        """Decode MIME-encoded email header.

        Handles headers like '=?UTF-8?B?...?=' for non-ASCII text.
        Unknown charsets are read as UTF-8.
        """
        if not header:
            return ""
        decoded_parts = []
        for part, charset in email_decode_header(header):
            if isinstance(part, bytes):
                decoded_parts.append(_decode_bytes(part, charset))
            else:
                decoded_parts.append(part)
        return "".join(decoded_parts).replace("\r\n", "").replace("\n", "")
