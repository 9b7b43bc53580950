"""Unit tests for the mailbox synchronizer."""

from unittest.mock import MagicMock, call

from planka_mailer.core.models import ApiResponse, MailboxMessage
from planka_mailer.processors.dispatch import CardDispatcher
from planka_mailer.processors.mailbox import MailboxSynchronizer


def _message(uid: str, board_id: int | None = 7, subject: str = "Task") -> MailboxMessage:
    headers = "From: a@example.com\r\n"
    if board_id is not None:
        headers += f"X-Planka-Board-Id: {board_id}\r\n"
    return MailboxMessage(uid=uid, headers=headers, subject=subject)


def _synchronizer(imap, planka) -> MailboxSynchronizer:
    return MailboxSynchronizer(
        imap=imap,
        dispatcher=CardDispatcher(planka),
        inbox="API/IN",
        accepted="API/OUT",
        rejected="API/REJECTED",
    )


class TestMailboxSynchronizer:
    """Tests for MailboxSynchronizer."""

    def test_accepted_and_rejected_are_filed(self, mock_imap, mock_planka):
        mock_imap.list_messages.return_value = iter([
            _message("1"),
            _message("2", board_id=None),
            _message("3"),
        ])
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["scanned"] == 3
        assert stats["accepted"] == 2
        assert stats["rejected"] == 1
        assert stats["rejected_reasons"] == {"missing_board_id": 1}
        mock_imap.list_messages.assert_called_once_with("API/IN")
        mock_imap.move_messages.assert_has_calls([
            call(["1", "3"], "API/OUT"),
            call(["2"], "API/REJECTED"),
        ])

    def test_connection_is_opened_and_closed(self, mock_imap, mock_planka):
        _synchronizer(mock_imap, mock_planka).process()

        mock_imap.__enter__.assert_called_once()
        mock_imap.__exit__.assert_called_once()

    def test_body_fetched_only_for_records_with_board(self, mock_imap, mock_planka):
        mock_imap.list_messages.return_value = iter([_message("1"), _message("2", board_id=None)])
        mock_imap.fetch_body.return_value = "hello"
        _synchronizer(mock_imap, mock_planka).process()

        mock_imap.fetch_body.assert_called_once_with("1")
        mock_planka.update_card.assert_called_once_with(500, description="hello", due_date=None)

    def test_scan_error_keeps_collected_records(self, mock_imap, mock_planka):
        def broken_listing(folder):
            yield _message("1")
            raise OSError("connection reset")

        mock_imap.list_messages.side_effect = broken_listing
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["scan_interrupted"] is True
        assert stats["scanned"] == 1
        assert stats["accepted"] == 1
        mock_planka.create_card.assert_called_once()
        mock_imap.move_messages.assert_called_once_with(["1"], "API/OUT")

    def test_body_download_error_stops_further_downloads(self, mock_imap, mock_planka):
        mock_imap.list_messages.return_value = iter([_message("1"), _message("2")])
        mock_imap.fetch_body.side_effect = OSError("timeout")
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["scan_interrupted"] is True
        assert stats["accepted"] == 2
        assert mock_imap.fetch_body.call_count == 1
        mock_planka.update_card.assert_not_called()

    def test_move_failure_is_counted(self, mock_imap, mock_planka):
        mock_imap.list_messages.return_value = iter([_message("1"), _message("2", board_id=None)])
        mock_imap.move_messages.side_effect = [OSError("gone"), None]
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["move_errors"] == 1
        assert mock_imap.move_messages.call_count == 2

    def test_empty_inbox_moves_nothing(self, mock_imap, mock_planka):
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["scanned"] == 0
        mock_imap.select.assert_not_called()
        mock_imap.move_messages.assert_not_called()
        mock_planka.get_board.assert_not_called()

    def test_unknown_board_goes_to_rejected(self, mock_imap):
        planka = MagicMock()
        planka.get_board.return_value = ApiResponse(status=404)
        mock_imap.list_messages.return_value = iter([_message("1", board_id=404)])
        stats = _synchronizer(mock_imap, planka).process()

        assert stats["rejected_reasons"] == {"board_not_found": 1}
        mock_imap.move_messages.assert_called_once_with(["1"], "API/REJECTED")
        planka.create_card.assert_not_called()

    def test_message_with_unreadable_subject_is_still_filed(self, mock_imap, mock_planka):
        mock_imap.list_messages.return_value = iter([
            _message("1", subject=""),
            _message("2"),
        ])
        stats = _synchronizer(mock_imap, mock_planka).process()

        assert stats["scan_interrupted"] is False
        assert stats["accepted"] == 2
        mock_imap.move_messages.assert_called_once_with(["1", "2"], "API/OUT")
