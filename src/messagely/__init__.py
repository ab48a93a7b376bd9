"""Messagely — a small direct-messaging API.

Users register, log in with a password to get a bearer token, send text
messages to each other, and mark the messages they receive as read.
"""

__version__ = "0.1.0"
