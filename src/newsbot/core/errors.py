"""Exception hierarchy for the pipeline."""


class NewsbotError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(NewsbotError):
    """Invalid or unsupported configuration."""


class UnsupportedWindowError(ConfigError):
    """Unknown time window name."""


class FeedFetchError(NewsbotError):
    """Feed could not be retrieved or parsed."""


class FeedNotFoundError(FeedFetchError):
    """No candidate location of a source yielded a feed."""


class ModelBackendError(NewsbotError):
    """Model backend call failed (transport, HTTP status or backend error)."""


class ModelResponseError(NewsbotError):
    """Model returned output that could not be parsed structurally."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class RetryExhaustedError(NewsbotError):
    """Operation failed on every attempt allowed by a retry policy."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class StoreError(NewsbotError):
    """Write conflict or constraint violation in the item store."""


class DeliveryError(NewsbotError):
    """Digest could not be delivered."""


class DiscoveryError(NewsbotError):
    """Source discovery failed."""
