"""Error hierarchy for the Plano registry.

- PlanoError: base class for everything the registry raises
- DomainError: rule violations and caller mistakes (4xx responses)
- InfrastructureError: the store could not serve the request (503)

The gateway maps these to HTTP responses in app.create_app.
"""

from __future__ import annotations


class PlanoError(Exception):
    """Base class for all Plano errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# ── Domain errors ─────────────────────────────────────────────


class DomainError(PlanoError):
    """Base class for registry rule violations."""


class NotFoundError(DomainError):
    """No record stored under the requested id."""

    def __init__(self, blueprint_id: str) -> None:
        super().__init__(f"Blueprint not found: {blueprint_id}")
        self.blueprint_id = blueprint_id


class NotAuthorizedError(DomainError):
    """Caller is not the record's owner."""


class InvalidTransitionError(DomainError):
    """Requested status change is not allowed from the current status."""


class ImmutableFieldError(DomainError):
    """An update tried to rewrite a field fixed at creation."""


class StaleWriteError(DomainError):
    """The stored value changed between read and write."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Stale write rejected for key {key!r}")
        self.key = key


class NotConnectedError(DomainError):
    """No wallet address accompanies the request."""

    def __init__(self, message: str = "Wallet not connected") -> None:
        super().__init__(message)


class AuthDeclinedError(DomainError):
    """The wallet refused, or failed, to sign the reveal challenge."""


class DecodeFailure(DomainError):
    """A stored price could not be decoded to a finite number."""


class ParseFailure(DecodeFailure):
    """Stored bytes are not a valid record or index document."""


# ── Infrastructure errors ─────────────────────────────────────


class InfrastructureError(PlanoError):
    """Base class for store-level failures."""


class StoreUnavailableError(InfrastructureError):
    """The key/value store reports it cannot serve requests."""

    def __init__(self, message: str = "Key/value store unavailable") -> None:
        super().__init__(message)
