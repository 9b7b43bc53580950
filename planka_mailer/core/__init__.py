"""Core modules for the mail-to-card pipeline."""

from .logging import configure_logging, get_logger, bind_context, clear_context
from .models import (
    ApiResponse,
    BatchStats,
    BoardCacheEntry,
    BoardList,
    CardCreation,
    Disposition,
    EmailRecord,
    MailboxMessage,
    ProcessingResult,
    RejectReason,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "ApiResponse",
    "BatchStats",
    "BoardCacheEntry",
    "BoardList",
    "CardCreation",
    "Disposition",
    "EmailRecord",
    "MailboxMessage",
    "ProcessingResult",
    "RejectReason",
]
