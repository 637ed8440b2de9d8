"""Per-object record of the values plugin handlers returned.

When handlers run during :meth:`~pluggable.core.Pluggable.fire_event` or the
Before/After phases of :meth:`~pluggable.core.Pluggable.intercept`, each
handler's return value is stored here under ``(handler_name, plugin_name)``.
Override and New handler returns are not recorded; they are the call result.

Both key parts are case-insensitive. The ledger only grows: a new value for
an existing pair replaces the old one, but pairs are never removed. Writes
are serialised, so handlers running on several threads can record into the
same ledger.

Example::

    ledger = ReturnLedger()
    ledger.record("Save_Before", "Spam", True)
    ledger.get("spam", "save_before")   # True
    ledger.get("Other", "Save_Before")  # None
"""

from __future__ import annotations

import threading
from typing import Any, Iterator


class ReturnLedger:
    """Case-insensitive ``handler -> plugin -> value`` store."""

    def __init__(self) -> None:
        self._returns: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def record(self, handler_name: str, plugin_name: str, value: Any) -> None:
        """Store the value *plugin_name* returned from *handler_name*.

        Args:
            handler_name: Ledger key of the handler, e.g. ``"Save_Before"``.
            plugin_name: Name of the plugin whose handler produced *value*.
            value: The returned value. ``None`` is recorded like any other.
        """
        with self._lock:
            self._returns.setdefault(handler_name.lower(), {})[plugin_name.lower()] = value

    def get(self, plugin_name: str, handler_name: str, default: Any = None) -> Any:
        """Return what *plugin_name* returned from *handler_name*.

        Args:
            plugin_name: Plugin to look up.
            handler_name: Ledger key of the handler.
            default: Value returned when the pair was never recorded.

        Returns:
            The recorded value, or *default*. Absence is not an error.
        """
        return self._returns.get(handler_name.lower(), {}).get(plugin_name.lower(), default)

    def handlers(self) -> list[str]:
        """Return the (lower-cased) handler names that have at least one return."""
        with self._lock:
            return list(self._returns)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        """Return a copy of the ledger as ``{handler: {plugin: value}}``."""
        with self._lock:
            return {handler: dict(plugins) for handler, plugins in self._returns.items()}

    def __contains__(self, key: object) -> bool:
        if isinstance(key, tuple) and len(key) == 2:
            handler_name, plugin_name = key
            return plugin_name.lower() in self._returns.get(handler_name.lower(), {})
        if isinstance(key, str):
            return key.lower() in self._returns
        return False

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for handler, plugins in self.as_dict().items():
            for plugin in plugins:
                yield handler, plugin

    def __len__(self) -> int:
        with self._lock:
            return sum(len(plugins) for plugins in self._returns.values())

    def __repr__(self) -> str:
        return f"ReturnLedger({self._returns!r})"
