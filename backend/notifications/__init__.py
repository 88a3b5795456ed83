"""
Outbound notifications.

Responsibilities:
- Hold Twilio credentials and sender number.
- Deliver one SMS per call, raising ``NotificationError`` on failure.
"""
