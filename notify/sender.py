"""
notify/sender.py -- Welcome notifications for newly registered accounts.

Delivery is fire-and-forget: send_welcome_safely() logs a failure and returns
False instead of raising, so an account or attendee is still created when the
notification cannot be sent.

LogNotifier is the default backend. It records that a welcome message was
due without writing the temporary password anywhere. A real mail or SMS
backend implements the same Notifier interface and is assigned to
app.state.notifier in the lifespan.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger("confreg.notify")

WELCOME_SUBJECT = "Welcome to the International Civil Service Conference"


class Notifier(ABC):
    """Interface for welcome-message backends."""

    @abstractmethod
    def send_welcome(self, recipient: str, display_name: str, temporary_password: str) -> None:
        """Deliver a welcome message carrying the temporary password."""


class LogNotifier(Notifier):
    def send_welcome(self, recipient: str, display_name: str, temporary_password: str) -> None:
        logger.info("Welcome notification for %s <%s>: %s", display_name, recipient, WELCOME_SUBJECT)


def send_welcome_safely(notifier: Notifier, recipient: str, display_name: str, temporary_password: str) -> bool:
    """Send a welcome message; log and swallow any backend failure.

    Returns True if the backend accepted the message.
    """
    try:
        notifier.send_welcome(recipient, display_name, temporary_password)
    except Exception:
        logger.exception("Welcome notification to %s failed", recipient)
        return False
    return True
