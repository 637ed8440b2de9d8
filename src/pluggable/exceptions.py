"""Exception hierarchy for pluggable.

All exceptions inherit from :class:`PluggableError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pluggable.exit_codes`.
None of these are transient: each one reports a programming or
configuration defect, so nothing in the dispatch core retries them.

Subclass hierarchy::

    PluggableError (exit 1)
    +-- NotInitializedError      (exit 3)
    +-- UnknownMethodError       (exit 4, also AttributeError)
    +-- RemovedCapabilityError   (exit 5)
    +-- PluginError              (exit 10)
    +-- ConfigError              (exit 1)
"""

from pluggable.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_INITIALIZED,
    EXIT_PLUGIN_ERROR,
    EXIT_REMOVED_CAPABILITY,
    EXIT_UNKNOWN_METHOD,
)


class PluggableError(Exception):
    """Base exception for all pluggable errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`pluggable.exit_codes`. The CLI entry point
    catches this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class NotInitializedError(PluggableError):
    """Raised when an event fires from an object whose ``Pluggable.__init__`` never ran."""

    exit_code = EXIT_NOT_INITIALIZED


class UnknownMethodError(PluggableError, AttributeError):
    """Raised when neither a real method nor a New handler resolves a method name.

    Also an :class:`AttributeError` so that ``hasattr`` and ``getattr`` with
    a default keep their usual meaning on pluggable objects.

    Attributes:
        identity: The identity of the object the call was made on.
        method: The actual method name that was looked for.
    """

    exit_code = EXIT_UNKNOWN_METHOD

    def __init__(self, identity: str, method: str):
        super().__init__(f'The "{identity}" object does not have a "{method}" method.')
        self.identity = identity
        self.method = method


class RemovedCapabilityError(PluggableError):
    """Raised when a call targets a method name of the removed slicing capability."""

    exit_code = EXIT_REMOVED_CAPABILITY


class PluginError(PluggableError):
    """Raised when a plugin fails to load or declares a conflicting handler."""

    exit_code = EXIT_PLUGIN_ERROR


class ConfigError(PluggableError):
    """Raised for configuration problems (invalid JSON, unknown keys, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
