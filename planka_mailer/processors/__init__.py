"""Mail processors."""

from .base import BaseProcessor
from .board_cache import BoardResolverCache, choose_preferred_list
from .dispatch import CardDispatcher
from .mailbox import MailboxSynchronizer

__all__ = [
    "BaseProcessor",
    "BoardResolverCache",
    "choose_preferred_list",
    "CardDispatcher",
    "MailboxSynchronizer",
]
