"""Exception hierarchy for oaslink.

All exceptions inherit from :class:`OaslinkError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oaslink.exit_codes`.
The top-level error handler in :func:`oaslink.app.main` catches
``OaslinkError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

The linking engine itself raises only :class:`RefResolutionError`: every
other irregularity in the input (missing titles, unnamed parameters,
incomplete links) is reported as a logging warning and skipped.

Subclass hierarchy::

    OaslinkError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- SpecParseError          (exit 7)
    |   +-- RefResolutionError  (exit 7)
    +-- ConfigError             (exit 1)
"""

from oaslink.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class OaslinkError(Exception):
    """Base exception for all oaslink errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OaslinkError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(OaslinkError):
    """Raised when a description document cannot be loaded or parsed."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class RefResolutionError(SpecParseError):
    """Raised when a ``$ref`` pointer cannot be resolved against its document.

    An unresolvable reference means the document itself is structurally
    broken, so the enclosing resolution call fails instead of skipping the
    entry.

    Args:
        message: Human-readable error description.
        ref: The offending ``$ref`` string.
        document: Label of the document the reference was resolved against,
            if known.
    """

    def __init__(self, message: str, ref: str = "", document: str | None = None):
        super().__init__(message)
        self.ref = ref
        self.document = document


class ConfigError(OaslinkError):
    """Raised for configuration problems (invalid JSON, out-of-range values)."""

    exit_code = EXIT_GENERIC_FAILURE
