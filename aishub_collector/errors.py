"""Exception types raised by the collector.

Transient conditions (rate limiting, transport and response failures) are
recovered by the polling loop. Configuration and persistence failures are
fatal for the process.
"""
from __future__ import annotations


class CollectorError(Exception):
    """Base class for all collector errors."""


class RateLimitedError(CollectorError):
    """AISHub answered with its rate-limit sentinel instead of data."""


class TransportError(CollectorError):
    """The request could not be completed or the body could not be read."""


class ResponseDecodeError(CollectorError):
    """The response body is not a table the decoder understands."""


class SettingsError(CollectorError):
    """The settings file is missing, unreadable or invalid."""


class ShipListError(CollectorError):
    """The ship list file is missing or unreadable."""


class StoreError(CollectorError):
    """A series file could not be read or written."""
