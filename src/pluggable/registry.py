"""The contract the dispatch core requires from a handler registry.

:class:`~pluggable.core.Pluggable` never reaches for a process-wide registry;
it receives an object satisfying :class:`HandlerRegistry` at construction
time. :class:`~pluggable.plugins.manager.PluginManager` is the bundled
in-memory implementation, but any object with these five methods works.

All lookups are keyed on ``(identity, reference_name)`` where *identity* is
the logical class name of the pluggable object and *reference_name* is the
prefix-independent method name (see :mod:`pluggable.resolver`).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pluggable.models import HandlerPhase, HandlerReturn


@runtime_checkable
class HandlerRegistry(Protocol):
    """Answers the questions the dispatch core asks while intercepting a call."""

    def has_override(self, identity: str, reference_name: str) -> bool:
        """Return whether an Override handler replaces *reference_name*."""
        ...

    def call_override(self, sender: Any, identity: str, reference_name: str) -> Any:
        """Invoke the Override handler and return its value as the call result."""
        ...

    def has_new_method(self, identity: str, reference_name: str) -> bool:
        """Return whether a New handler provides *reference_name*."""
        ...

    def call_new_method(self, sender: Any, identity: str, reference_name: str) -> Any:
        """Invoke the New handler and return its value as the call result."""
        ...

    def call_handlers(
        self, sender: Any, identity: str, reference_name: str, phase: HandlerPhase
    ) -> list[HandlerReturn]:
        """Invoke every handler registered for the key, in registration order.

        Returns:
            One :class:`~pluggable.models.HandlerReturn` per handler that
            ran, in the order they ran. The core records each one into the
            sender's :class:`~pluggable.ledger.ReturnLedger`.
        """
        ...
