"""
Shared pytest fixtures for planka_mailer tests.
"""

import pytest
from datetime import datetime
from unittest.mock import MagicMock

from planka_mailer.core.models import ApiResponse, EmailRecord, MailboxMessage


def board_response(board_id: int, lists: list[dict], status: int = 200) -> ApiResponse:
    """A get_board response with the given lists included."""
    return ApiResponse(
        status=status,
        data={
            "item": {"id": str(board_id), "name": f"Board {board_id}"},
            "included": {"lists": lists},
        },
    )


def card_response(card_id: int, status: int = 200) -> ApiResponse:
    """A create_card response."""
    return ApiResponse(status=status, data={"item": {"id": str(card_id), "name": "card"}})


@pytest.fixture
def sample_record() -> EmailRecord:
    """Record for board 7 without an explicit list."""
    return EmailRecord(
        title="Board sync 05-03-2024 14:30",
        board_id=7,
        source_ref="101",
        body="hello",
        date=datetime(2024, 3, 5, 14, 30),
    )


@pytest.fixture
def sample_message() -> MailboxMessage:
    """Listed message carrying board and list headers."""
    return MailboxMessage(
        uid="101",
        headers=(
            "From: Planner <planner@example.com>\r\n"
            "Subject: Board sync 05-03-2024 14:30\r\n"
            "X-Planka-Board-Id: 7\r\n"
            "X-Planka-List-Id: 3\r\n"
            "\r\n"
        ),
        subject="Board sync 05-03-2024 14:30",
    )


@pytest.fixture
def board_lists() -> list[dict]:
    """Lists of board 7: Todo first, Mail second."""
    return [
        {"id": "3", "name": "Todo", "position": 65536},
        {"id": "9", "name": "Mail", "position": 131072},
    ]


@pytest.fixture
def mock_planka(board_lists):
    """Planka client where board 7 resolves and every card call succeeds."""
    client = MagicMock()
    client.get_board.side_effect = lambda board_id: board_response(board_id, board_lists)
    client.create_card.return_value = card_response(500)
    client.update_card.return_value = ApiResponse(status=200, data={"item": {"id": "500"}})
    return client


@pytest.fixture
def mock_imap():
    """IMAP client with an empty inbox."""
    imap = MagicMock()
    imap.list_messages.return_value = iter([])
    imap.fetch_body.return_value = "body text"
    return imap


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock settings for testing."""
    monkeypatch.setenv("IMAP_USERNAME", "test@example.com")
    monkeypatch.setenv("IMAP_PASSWORD", "test-password")
    monkeypatch.setenv("IMAP_ROOT", "Cards")
    monkeypatch.setenv("PLANKA_URL", "http://planka.test")
    monkeypatch.setenv("PLANKA_API_KEY", "test-api-key")


@pytest.fixture
def make_board_response():
    """Factory for get_board responses."""
    return board_response


@pytest.fixture
def make_card_response():
    """Factory for create_card responses."""
    return card_response
