"""Abstract base class for pluggable plugins.

Every plugin must subclass :class:`Plugin` and implement the :attr:`name`
property. Handlers are ordinary methods marked with
:func:`~pluggable.plugins.hooks.handler`; the lifecycle hooks
(``on_init``, ``cleanup``) are optional no-ops.

Example:
    Minimal plugin implementation::

        class SpamFilter(Plugin):
            @property
            def name(self) -> str:
                return "spam-filter"

            @handler("Discussion", "save", HandlerPhase.BEFORE)
            def reject_links(self, sender, args):
                values = args[0]
                values["body"] = values["body"].replace("http://", "")
                return True
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pluggable.models import GlobalConfig, HandlerRegistration
from pluggable.plugins.hooks import collect_handlers


class Plugin(ABC):
    """Base class for all plugins.

    The plugin lifecycle is:

    1. Instantiation by the host application.
    2. :meth:`on_init` -- called once by
       :meth:`~pluggable.plugins.manager.PluginManager.load_plugin`.
    3. Handlers -- called zero or more times while pluggable objects
       dispatch.
    4. :meth:`cleanup` -- called once when the plugin is unloaded.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique plugin name, also the key of its ledger entries.

        Returns:
            A short, human-readable identifier (e.g. ``"spam-filter"``).
        """
        ...

    @property
    def version(self) -> str:
        """Return the plugin version string. Defaults to ``"0.1.0"``."""
        return "0.1.0"

    @property
    def description(self) -> str:
        """Return a one-line description. Defaults to ``""``."""
        return ""

    def handlers(self) -> list[HandlerRegistration]:
        """Return the handler registrations this plugin declares."""
        return collect_handlers(self)

    def on_init(self, config: GlobalConfig) -> None:
        """Called once when the plugin is loaded.

        Args:
            config: The effective global configuration.
        """

    def cleanup(self) -> None:
        """Called once when the plugin is unloaded to release its resources."""
