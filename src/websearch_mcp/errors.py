from __future__ import annotations

_BLOCKING_STATUSES = frozenset({403, 429, 503})


class SearchError(Exception):
    """Base class for every error raised by the search stack."""


class InvalidArgument(SearchError, ValueError):
    """Caller input violates a documented constraint. Never retried."""


class ProviderError(SearchError):
    """A single provider attempt failed. Recovered by fallback where possible."""


class ProviderHttpError(ProviderError):
    def __init__(self, provider: str, status: int, status_text: str) -> None:
        self.provider = provider
        self.status = status
        self.status_text = status_text
        super().__init__(f"{provider} HTTP {status}: {status_text}")

    @property
    def is_blocking_signal(self) -> bool:
        return self.status in _BLOCKING_STATUSES


class ProviderTransportError(ProviderError):
    """Timeout or connection failure. Handled like a generic non-2xx status."""

    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} request failed: {detail}")


class SoftBlockDetected(ProviderError):
    """HTTP 200 whose body looks like a block page rather than results."""

    def __init__(self, provider: str, body_length: int, reason: str) -> None:
        self.provider = provider
        self.body_length = body_length
        self.reason = reason
        super().__init__(
            f"{provider} returned no results in a {body_length:,} char response ({reason})"
        )


class AllProvidersFailed(SearchError):
    def __init__(
        self,
        primary_error: ProviderError | None,
        secondary_error: ProviderError,
    ) -> None:
        self.primary_error = primary_error
        self.secondary_error = secondary_error
        if primary_error is None:
            message = f"fallback provider failed while primary is suspended: {secondary_error}"
        else:
            message = f"all providers failed: {primary_error}; {secondary_error}"
        super().__init__(message)
