"""Exception hierarchy for ASNINFO."""

from __future__ import annotations


class AsnInfoError(Exception):
    """Base class for all ASNINFO errors."""


class ConfigError(AsnInfoError):
    """The configuration file or an environment override is invalid."""


class FetchError(AsnInfoError):
    """An upstream dataset could not be downloaded or parsed.

    Fatal when building the first snapshot at startup; logged and ignored by
    the background refresher afterwards.

    Attributes:
        source: Name of the upstream source that failed.
    """

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class ValidationError(AsnInfoError):
    """A lookup request was rejected before touching the dataset.

    Attributes:
        message: Human-readable reason returned to the client.
        status_code: HTTP status the API layer should answer with.
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UploadError(AsnInfoError):
    """Uploading an export or sending the completion heartbeat failed.

    Attributes:
        exit_code: Process exit status the CLI uses for this failure.
    """

    exit_code = 5


class CredentialsError(UploadError):
    """Object storage credentials are missing from the environment."""

    exit_code = 3


class HeartbeatError(UploadError):
    """The heartbeat URL could not be reached after a successful upload."""

    exit_code = 4
