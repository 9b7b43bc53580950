"""
Planka mail bridge.

A small email-to-card pipeline that:
- Scans an IMAP container for messages tagged with Planka board/list headers
- Resolves the target board and list through the Planka REST API
- Creates a card per message
- Files each message into an accepted or rejected container
"""
