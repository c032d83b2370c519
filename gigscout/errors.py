"""Exception types raised inside the scrape and notification core."""
from __future__ import annotations


class GigScoutError(Exception):
    """Base class for all gigscout errors."""


class StoreError(GigScoutError):
    """A store query or write failed."""


class SourceError(GigScoutError):
    """A listing source could not be fetched or parsed."""


class EmailSendError(GigScoutError):
    """The email transport rejected a message."""
