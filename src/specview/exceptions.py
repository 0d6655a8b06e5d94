"""Exception hierarchy for specview.

All exceptions inherit from :class:`SpecviewError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specview.exit_codes`.
The top-level handler in :func:`specview.app.main` catches ``SpecviewError``
and exits with the matching code; anything else produces a crash log.

Library code raises these at the seams where a caller can act on them.  The
parse pipeline converts :class:`SpecParseError` and :class:`ResolutionError`
into :class:`~specview.models.Diagnostic` records instead of propagating them.

Subclass hierarchy::

    SpecviewError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- NotFoundError           (exit 4)
    +-- SpecParseError          (exit 7)
    +-- OperationMappingError   (exit 7)
    +-- ResolutionError         (exit 8)
    |   +-- ResolutionTimeoutError
    +-- ConfigError             (exit 1)
"""

from __future__ import annotations

from specview.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_RESOLUTION_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecviewError(Exception):
    """Base exception for all specview errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecviewError):
    """Raised for invalid CLI arguments or a missing document source."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpecviewError):
    """Raised when a library document ID does not exist."""

    exit_code = EXIT_NOT_FOUND


class SpecParseError(SpecviewError):
    """Raised when document text cannot be parsed as JSON or YAML."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class OperationMappingError(SpecviewError):
    """Raised while mapping a single operation into an Endpoint.

    The ``section`` names the part of the operation object that was
    malformed (``parameters``, ``responses``, ``requestBody``) so the
    extractor can word its warning precisely.
    """

    exit_code = EXIT_SPEC_PARSE_ERROR

    def __init__(self, section: str, message: str):
        super().__init__(message)
        self.section = section


class ResolutionError(SpecviewError):
    """Raised when the reference resolver rejects a document.

    The message is untrusted free text from the resolver and may embed
    document fragments; pass it through
    :func:`~specview.parser.classifier.classify_error` before showing it.
    """

    exit_code = EXIT_RESOLUTION_ERROR


class ResolutionTimeoutError(ResolutionError):
    """Raised when the resolver does not answer within the configured bound."""


class ConfigError(SpecviewError):
    """Raised for configuration problems (invalid JSON, unreadable library file)."""

    exit_code = EXIT_GENERIC_FAILURE
