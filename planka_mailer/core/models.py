"""
Data models for the mail-to-card pipeline.

Uses dataclasses for clean, typed data structures.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Disposition(str, Enum):
    """Terminal classification of a processed email."""

    ACCEPTED = "ACCEPTED"  # Card created, message goes to the accepted container
    REJECTED = "REJECTED"  # Nothing created, message goes to the rejected container


class RejectReason(str, Enum):
    """Why a record was rejected."""

    MISSING_BOARD_ID = "missing_board_id"
    BOARD_NOT_FOUND = "board_not_found"
    NO_LIST_AVAILABLE = "no_list_available"
    CREATE_FAILED = "create_failed"


@dataclass
class MailboxMessage:
    """A message as listed from the inbound container."""

    uid: str
    headers: str = ""
    subject: str = ""


@dataclass
class EmailRecord:
    """Structured card request parsed from one email."""

    title: str
    board_id: int | None
    source_ref: str
    list_id: int | None = None
    body: str | None = None
    date: datetime | None = None

    @property
    def has_board(self) -> bool:
        return self.board_id is not None


@dataclass
class BoardList:
    """A list (column) on a Planka board."""

    id: int
    name: str
    position: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoardList":
        """Create BoardList from a Planka list item."""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            position=data.get("position"),
        )


@dataclass
class BoardCacheEntry:
    """A resolved board and the list new cards go to by default."""

    board: dict[str, Any]
    preferred_list: BoardList | None = None


@dataclass
class ApiResponse:
    """Status and decoded JSON payload of a Planka API call."""

    status: int
    data: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class CardCreation:
    """Outcome of the card create step: a card id or an error."""

    card_id: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.card_id is not None and self.error is None


@dataclass
class ProcessingResult:
    """Disposition of one record."""

    record: EmailRecord
    disposition: Disposition
    reason: RejectReason | None = None
    list_id: int | None = None
    card_id: int | None = None

    @property
    def accepted(self) -> bool:
        return self.disposition == Disposition.ACCEPTED


@dataclass
class BatchStats:
    """Counters for one mailbox synchronization run."""

    scanned: int = 0
    accepted: int = 0
    rejected: int = 0
    move_errors: int = 0
    scan_interrupted: bool = False
    rejected_reasons: dict[str, int] = field(default_factory=dict)

    def record(self, result: ProcessingResult) -> None:
        if result.accepted:
            self.accepted += 1
            return
        self.rejected += 1
        if result.reason:
            key = result.reason.value
            self.rejected_reasons[key] = self.rejected_reasons.get(key, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanned": self.scanned,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "move_errors": self.move_errors,
            "scan_interrupted": self.scan_interrupted,
            "rejected_reasons": dict(self.rejected_reasons),
        }
