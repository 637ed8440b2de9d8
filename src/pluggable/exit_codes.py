"""Numeric process exit codes for the ``pluggable`` developer CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~pluggable.exceptions.PluggableError` subclass.
Shell wrappers can inspect the exit code to tell a dispatch defect from a
bad configuration file without parsing stderr.

Example::

    $ pluggable inspect methods myapp.models:Discussion
    $ echo $?
    4   # EXIT_UNKNOWN_METHOD -- the class or method could not be resolved
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_INITIALIZED = 3
"""An event was fired from a pluggable object whose constructor never ran."""

EXIT_UNKNOWN_METHOD = 4
"""Neither a real method nor a New handler resolves the requested name."""

EXIT_REMOVED_CAPABILITY = 5
"""A permanently retired method name was invoked."""

EXIT_PLUGIN_ERROR = 10
"""A plugin failed to load or declared conflicting handlers."""
