"""Plugin manager -- the bundled in-memory handler registry.

:class:`PluginManager` loads plugin instances handed to it by the host
application, indexes the handlers they declare, and implements the
:class:`~pluggable.registry.HandlerRegistry` protocol that
:class:`~pluggable.core.Pluggable` dispatches through.

Lookups are case-insensitive on both the owner identity and the method
name. Handlers registered for the owner ``"*"`` apply to every identity and
run after the owner-specific ones. At most one Override and one New handler
may exist per ``(owner, method)``.

Example:
    Typical usage::

        manager = PluginManager()
        manager.load_plugin(SpamFilter())
        discussion = Discussion(manager)
        discussion.save({"body": "..."})
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from pluggable.exceptions import PluginError
from pluggable.models import GlobalConfig, HandlerPhase, HandlerRegistration, HandlerReturn
from pluggable.plugins.base import Plugin
from pluggable.plugins.hooks import ANY_OWNER

logger = logging.getLogger(__name__)

_EXCLUSIVE_PHASES = (HandlerPhase.OVERRIDE, HandlerPhase.NEW)

_Key = tuple[str, str, HandlerPhase]


class PluginManager:
    """Loads plugins and answers dispatch questions about their handlers."""

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._handlers: dict[_Key, list[HandlerRegistration]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_plugin(
        self,
        plugin: Plugin,
        config: Optional[GlobalConfig] = None,
    ) -> list[HandlerRegistration]:
        """Initialise *plugin* and index every handler it declares.

        Calls :meth:`~pluggable.plugins.base.Plugin.on_init` first. If any
        declared handler conflicts with an existing one, none of the
        plugin's handlers are kept and its
        :meth:`~pluggable.plugins.base.Plugin.cleanup` is called.

        Args:
            plugin: The plugin instance to load.
            config: Configuration passed to ``on_init``. Defaults to a
                fresh :class:`~pluggable.models.GlobalConfig`.

        Returns:
            The registrations that were indexed.

        Raises:
            PluginError: A plugin with the same name is already loaded, or
                one of its Override/New handlers conflicts with another
                plugin's.
        """
        name = plugin.name
        with self._lock:
            if name in self._plugins:
                raise PluginError(f"Plugin '{name}' is already loaded")

            plugin.on_init(config or GlobalConfig())
            registrations = plugin.handlers()
            added: list[HandlerRegistration] = []
            try:
                for registration in registrations:
                    self.register(registration)
                    added.append(registration)
            except PluginError:
                for registration in added:
                    self._remove(registration)
                try:
                    plugin.cleanup()
                except Exception as exc:
                    logger.warning("Error cleaning up plugin '%s': %s", name, exc)
                raise

            self._plugins[name] = plugin
        logger.info(
            "Loaded plugin '%s' v%s (%d handlers)", name, plugin.version, len(added)
        )
        return added

    def register(self, registration: HandlerRegistration) -> None:
        """Index a single handler registration.

        Raises:
            PluginError: *registration* is an Override or New handler and
                another plugin already holds that ``(owner, method, phase)``.
        """
        with self._lock:
            bucket = self._handlers.setdefault(registration.key, [])
            if registration.phase in _EXCLUSIVE_PHASES and bucket:
                holder = bucket[0].plugin_name
                raise PluginError(
                    f"{registration.owner}.{registration.method} already has a "
                    f"{registration.phase.value} handler from plugin '{holder}'"
                )
            bucket.append(registration)
        logger.debug(
            "Registered %s handler %s_%s for plugin '%s'",
            registration.phase.value,
            registration.owner,
            registration.method,
            registration.plugin_name,
        )

    def unload_plugin(self, name: str) -> None:
        """Remove a plugin's handlers and call its ``cleanup``.

        Raises:
            PluginError: No plugin with the given *name* is loaded.
        """
        with self._lock:
            plugin = self.get_plugin(name)
            for bucket in self._handlers.values():
                bucket[:] = [r for r in bucket if r.plugin_name != name]
            del self._plugins[name]
        plugin.cleanup()
        logger.info("Unloaded plugin '%s'", name)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_plugin(self, name: str) -> Plugin:
        """Retrieve a loaded plugin by its name.

        Raises:
            PluginError: If no plugin with the given *name* is loaded.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginError(f"Plugin '{name}' is not loaded") from None

    def list_plugins(self) -> list[dict[str, str]]:
        """List all loaded plugins with their metadata."""
        return [
            {
                "name": plugin.name,
                "version": plugin.version,
                "description": plugin.description,
            }
            for plugin in self._plugins.values()
        ]

    def registrations(self, owner: Optional[str] = None) -> list[HandlerRegistration]:
        """Return indexed registrations, optionally only those for *owner*."""
        with self._lock:
            found = [r for bucket in self._handlers.values() for r in bucket]
        if owner is not None:
            found = [r for r in found if r.owner.lower() == owner.lower()]
        return found

    # ------------------------------------------------------------------
    # HandlerRegistry protocol
    # ------------------------------------------------------------------

    def has_override(self, identity: str, reference_name: str) -> bool:
        return self._first(identity, reference_name, HandlerPhase.OVERRIDE) is not None

    def call_override(self, sender: Any, identity: str, reference_name: str) -> Any:
        return self._call_exclusive(sender, identity, reference_name, HandlerPhase.OVERRIDE)

    def has_new_method(self, identity: str, reference_name: str) -> bool:
        return self._first(identity, reference_name, HandlerPhase.NEW) is not None

    def call_new_method(self, sender: Any, identity: str, reference_name: str) -> Any:
        return self._call_exclusive(sender, identity, reference_name, HandlerPhase.NEW)

    def call_handlers(
        self, sender: Any, identity: str, reference_name: str, phase: HandlerPhase
    ) -> list[HandlerReturn]:
        """Run every handler for the key in registration order.

        Handler exceptions propagate unchanged and stop the chain.
        """
        results: list[HandlerReturn] = []
        for registration in self._lookup(identity, reference_name, phase):
            value = registration.callback(sender, _arguments_of(sender))
            results.append(HandlerReturn(plugin_name=registration.plugin_name, value=value))
        if results:
            logger.debug(
                "Ran %d %s handlers for %s_%s",
                len(results),
                phase.value,
                identity,
                reference_name,
            )
        return results

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Clean up all loaded plugins and reset internal state.

        Exceptions from individual plugins are logged and swallowed so that
        one plugin's failure does not prevent others from cleaning up.
        """
        with self._lock:
            plugins = list(self._plugins.items())
            self._plugins.clear()
            self._handlers.clear()
        for name, plugin in plugins:
            try:
                plugin.cleanup()
            except Exception as exc:
                logger.warning("Error cleaning up plugin '%s': %s", name, exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(
        self, identity: str, reference_name: str, phase: HandlerPhase
    ) -> list[HandlerRegistration]:
        method = reference_name.lower()
        with self._lock:
            specific = list(self._handlers.get((identity.lower(), method, phase), ()))
            wildcard = list(self._handlers.get((ANY_OWNER, method, phase), ()))
        return specific + wildcard

    def _first(
        self, identity: str, reference_name: str, phase: HandlerPhase
    ) -> Optional[HandlerRegistration]:
        found = self._lookup(identity, reference_name, phase)
        return found[0] if found else None

    def _call_exclusive(
        self, sender: Any, identity: str, reference_name: str, phase: HandlerPhase
    ) -> Any:
        registration = self._first(identity, reference_name, phase)
        if registration is None:
            raise PluginError(
                f"No {phase.value} handler registered for {identity}.{reference_name}"
            )
        logger.debug(
            "Calling %s handler %s_%s from plugin '%s'",
            phase.value,
            identity,
            reference_name,
            registration.plugin_name,
        )
        return registration.callback(sender, _arguments_of(sender))

    def _remove(self, registration: HandlerRegistration) -> None:
        bucket = self._handlers.get(registration.key, [])
        bucket[:] = [r for r in bucket if r is not registration]


def _arguments_of(sender: Any) -> dict:
    return getattr(sender, "event_arguments", {})
