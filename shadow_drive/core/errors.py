"""
Error taxonomy for the Shadow Drive SDK.

Every failure is raised as a subclass of ShadowDriveError so callers can
branch on the category:

- Validation: bad input rejected before any network call
- Precondition: on-chain state does not allow the operation
- Layout: account bytes do not match a known storage-account version
- Transport: the ledger RPC or HTTP request itself failed
- Server: the coordinator or portal answered with a non-2xx status
- Encoding: local signing/serialization or response decoding failed
"""

from typing import Any, Optional


class ShadowDriveError(Exception):
    """Base class for all SDK errors."""


# =============================================================================
# Validation
# =============================================================================


class ValidationError(ShadowDriveError, ValueError):
    """Input rejected before any network call."""


class InvalidStorage(ValidationError):
    """Storage size is malformed or uses an unsupported unit."""

    def __init__(self, size: Any, reason: str = "only KB, MB and GB units are supported"):
        self.size = size
        super().__init__(f"Invalid storage size {size!r}: {reason}")


class InvalidProviderUrl(ValidationError):
    """RPC provider URL cannot yield an account id."""


# =============================================================================
# Preconditions
# =============================================================================


class PreconditionError(ShadowDriveError):
    """On-chain state does not permit the requested operation."""


class AccountNotFound(PreconditionError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Account {address} does not exist")


class UserInfoNotCreated(PreconditionError):
    """The owner's user-info account has not been initialized yet."""

    def __init__(self, owner):
        self.owner = owner
        super().__init__(f"User info account for {owner} has not been created")


class StorageAccountIsNotImmutable(PreconditionError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Storage account {address} is not immutable")


class StorageAccountIsImmutable(PreconditionError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Storage account {address} is immutable")


# =============================================================================
# Layout
# =============================================================================


class UnknownAccountVersion(ShadowDriveError):
    """Account bytes do not match any known storage-account layout."""


# =============================================================================
# Transport / Server
# =============================================================================


class TransportError(ShadowDriveError):
    """Ledger RPC or HTTP transport failure. The cause is chained."""


class ShadowDriveServerError(ShadowDriveError):
    """
    Non-2xx answer from the coordinator or the auth portal.

    Attributes:
        status: HTTP status code
        message: Parsed JSON body as returned by the server (raw text when
            the body is not JSON)
    """

    def __init__(self, status: int, message: Any):
        self.status = status
        self.message = message
        super().__init__(f"Shadow Drive server error {status}: {message}")


# =============================================================================
# Encoding
# =============================================================================


class EncodingError(ShadowDriveError):
    """Local encode/decode failure, not a remote rejection."""


class TransactionSerializationFailed(EncodingError):
    def __init__(self, reason: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(f"Transaction serialization failed: {reason}")


class ResponseDecodeError(EncodingError):
    """Response body does not have the expected shape."""
