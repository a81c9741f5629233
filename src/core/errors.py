"""Error taxonomy shared by the core and its adapters.

Adapters translate library exceptions into these types so the core only
ever has to reason about a handful of recoverable failure kinds.
"""

from __future__ import annotations


class BirdwatchError(Exception):
    """Base class for every recoverable birdwatch failure."""


class FetchError(BirdwatchError):
    """Post metadata could not be fetched or parsed."""


class DownloadError(BirdwatchError):
    """A single media payload could not be downloaded."""


class CaptureError(BirdwatchError):
    """The browser could not render or inspect a page."""


class TranslationError(BirdwatchError):
    """The translation service failed or returned an unusable payload."""


class DeliveryError(BirdwatchError):
    """A composed message could not be delivered to one destination."""


class ConfigurationError(BirdwatchError):
    """A configuration block is malformed."""
