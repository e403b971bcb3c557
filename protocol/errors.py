"""
Error taxonomy shared by the coach packages.

Every error here is recoverable: graph nodes catch CoachError at their boundary
and turn it into a status line in the conversation transcript.
"""

from __future__ import annotations


class CoachError(Exception):
    """Base class for all recoverable coach errors."""

    kind = "error"


# ---------------------------------------------------------------------------
# Structured data
# ---------------------------------------------------------------------------

class CodecError(CoachError, ValueError):
    """Malformed structured-data text."""

    kind = "parse_error"

    def __init__(self, message: str, position: int = -1):
        super().__init__(message if position < 0 else f"{message} (at {position})")
        self.position = position


# ---------------------------------------------------------------------------
# Model endpoint
# ---------------------------------------------------------------------------

class CredentialMissingError(CoachError):
    kind = "credential_missing"


class TransportError(CoachError):
    """No response came back from the network layer."""

    kind = "transport_failure"


class EnvelopeMalformedError(CoachError):
    """Response body not decodable or missing expected fields."""

    kind = "envelope_malformed"


class UpstreamError(CoachError):
    """Vendor-reported failure (quota, billing, validation); message passed through."""

    kind = "upstream_error"


# ---------------------------------------------------------------------------
# Host editing
# ---------------------------------------------------------------------------

class HostError(CoachError):
    """A host transaction or host read failed."""

    kind = "host_error"


class NoSelectionError(CoachError):
    kind = "no_selection"


class UnsupportedMediaError(CoachError):
    kind = "unsupported_media"


class NothingToUndoError(CoachError):
    kind = "nothing_to_undo"


class ThumbnailTimeoutError(CoachError):
    kind = "thumbnail_timeout"


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SessionBusyError(CoachError):
    """A request is already in flight (or a review is pending) for this session."""

    kind = "session_busy"
