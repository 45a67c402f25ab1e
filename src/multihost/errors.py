"""Exception types shared by adapters, the orchestrator and the web layer.

Service code stays HTTP-agnostic; each class carries an ``http_status``
hint that the web layer uses when mapping errors to responses.
"""

from __future__ import annotations


class MultiHostError(Exception):
    """Base class for all uploader errors."""

    http_status = 500


class UploadValidationError(MultiHostError):
    """Raised when a request is rejected before any provider is contacted."""

    http_status = 400


class UnknownProviderError(UploadValidationError):
    """Raised for a provider identifier outside the supported set."""

    def __init__(self, provider: object) -> None:
        self.provider = provider
        super().__init__(f"Invalid provider: {provider}")


class ProviderError(MultiHostError):
    """A failure attributable to one provider."""

    http_status = 502

    def __init__(self, provider: str, message: str) -> None:
        self.provider = getattr(provider, "value", provider)
        self.message = message
        super().__init__(message)


class CredentialMissingError(ProviderError):
    http_status = 401


class MalformedCredentialError(ProviderError):
    http_status = 400


class UpstreamTransportError(ProviderError):
    """Non-2xx status, network failure or a body that is not JSON."""

    http_status = 502

    def __init__(self, provider: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(provider, message)
        self.status_code = status_code


class TransientUpstreamError(UpstreamTransportError):
    """Transport failure that is worth retrying."""


class UpstreamLogicalError(ProviderError):
    """The provider answered, but its own success marker was false."""

    http_status = 400


class UnsupportedOperationError(ProviderError):
    """The provider has no equivalent for the requested operation."""

    http_status = 400


class RetryExhaustedError(MultiHostError):
    """Raised by :class:`multihost.retry.RetryPolicy` once attempts run out."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempt(s): {last_error}")


__all__ = [
    "CredentialMissingError",
    "MalformedCredentialError",
    "MultiHostError",
    "ProviderError",
    "RetryExhaustedError",
    "TransientUpstreamError",
    "UnknownProviderError",
    "UnsupportedOperationError",
    "UploadValidationError",
    "UpstreamLogicalError",
    "UpstreamTransportError",
]
