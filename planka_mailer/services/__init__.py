"""External collaborators: the IMAP mailbox and the Planka API."""

from .imap import IMAPClient, IMAPError
from .planka import PlankaClient

__all__ = ["IMAPClient", "IMAPError", "PlankaClient"]
