"""
Order fulfillment.

Responsibilities:
- Persist an order for a caterer the user picked.
- Send exactly one SMS confirmation once the order is stored.
- Report the terminal state so callers can tell a lost order from a
  missed confirmation.
"""
