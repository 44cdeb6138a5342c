"""LPTrack exception hierarchy.

This module defines the base exception class and specialized exceptions
for the failure categories of a PnL reconstruction run.
"""


class LPTrackError(Exception):
    """Base exception for all LPTrack errors.

    All custom exceptions in LPTrack should inherit from this class
    to enable consistent error handling and logging.
    """

    pass


class ConfigurationError(LPTrackError):
    """Raised when configuration is invalid or missing.

    Use this for unknown chain keys, missing API keys, or any
    configuration-related problems.

    Example:
        raise ConfigurationError("Unknown chain: solana")
    """

    pass


class UpstreamFetchError(LPTrackError):
    """Raised when an upstream collaborator call fails.

    Covers network errors, non-2xx responses and malformed payloads from
    the subgraph, the block explorer, the JSON-RPC node or the price API.
    Never retried by the PnL core; a run that hits this error produces no
    timeline.

    Attributes:
        service: Name of the upstream service that failed.
        status_code: HTTP status code if available, None otherwise.

    Example:
        raise UpstreamFetchError(service="subgraph", message="Bad gateway", status_code=502)
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class DecodeError(LPTrackError):
    """Raised when a single raw record does not match the expected shape.

    The record is skipped and reported; the rest of the run continues.

    Attributes:
        record_id: Identifier of the offending record (tx hash, position id).

    Example:
        raise DecodeError("Unparseable fromAmount 'abc'", record_id="0x12ab...")
    """

    def __init__(self, message: str, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class PriceUnavailableError(LPTrackError):
    """Raised when no price can be produced for a timestamp.

    Soft error: price lookups clamp or fall back by default and only raise
    this when strict mode is requested.
    """

    pass


class CircuitBreakerOpenError(LPTrackError):
    """Raised when circuit breaker is open.

    Use this when an API client's circuit breaker has tripped due to
    consecutive failures and requests are being blocked.

    Example:
        raise CircuitBreakerOpenError("Circuit is open for subgraph API")
    """

    pass
