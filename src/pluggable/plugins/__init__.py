"""Plugin declaration and the bundled in-memory handler registry.

Key names:

* :class:`Plugin` -- Abstract base class that all plugins extend.
* :func:`handler` -- Decorator marking a plugin method as a handler for
  ``(owner, method, phase)``.
* :class:`PluginManager` -- Loads plugins and implements
  :class:`~pluggable.registry.HandlerRegistry`.

Example:
    Wiring a plugin to a pluggable class::

        from pluggable.plugins import PluginManager

        manager = PluginManager()
        manager.load_plugin(SpamFilter())
        discussion = Discussion(manager)
"""

from pluggable.plugins.base import Plugin
from pluggable.plugins.hooks import ANY_OWNER, collect_handlers, handler
from pluggable.plugins.manager import PluginManager

__all__ = ["ANY_OWNER", "Plugin", "PluginManager", "collect_handlers", "handler"]
