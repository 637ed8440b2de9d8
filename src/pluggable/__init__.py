"""pluggable -- method interception and event dispatch for plugin-driven objects.

Classes that extend :class:`Pluggable` can fire events and expose methods
that plugins observe (Before/After handlers), replace (Override handlers)
or supply outright (New handlers), without the class knowing about any
particular plugin.

Typical usage::

    from pluggable import HandlerPhase, Plugin, PluginManager, Pluggable, handler

    class Discussion(Pluggable):
        def xsave(self, values):
            return values["id"]

    class Audit(Plugin):
        @property
        def name(self):
            return "audit"

        @handler("Discussion", "save", HandlerPhase.AFTER)
        def log_save(self, sender, args):
            return "seen"

    manager = PluginManager()
    manager.load_plugin(Audit())
    Discussion(manager).save({"id": 7})   # 7

Modules:
    core: The :class:`Pluggable` base class and interception protocol.
    resolver: Method-name resolution and per-type dispatch tables.
    registry: The handler registry protocol the core depends on.
    ledger: Per-object record of handler return values.
    plugins: Plugin base class, ``@handler`` and the in-memory registry.
    config: Configuration loading and precedence.
    app: The ``pluggable`` developer CLI.
"""

__version__ = "0.1.0"

from pluggable.core import Pluggable  # noqa: E402
from pluggable.exceptions import (  # noqa: E402
    NotInitializedError,
    PluggableError,
    PluginError,
    RemovedCapabilityError,
    UnknownMethodError,
)
from pluggable.ledger import ReturnLedger  # noqa: E402
from pluggable.models import HandlerPhase, HandlerReturn, HandlerType  # noqa: E402
from pluggable.plugins import Plugin, PluginManager, handler  # noqa: E402
from pluggable.registry import HandlerRegistry  # noqa: E402
from pluggable.resolver import DispatchResolver  # noqa: E402

__all__ = [
    "DispatchResolver",
    "HandlerPhase",
    "HandlerRegistry",
    "HandlerReturn",
    "HandlerType",
    "NotInitializedError",
    "Pluggable",
    "PluggableError",
    "Plugin",
    "PluginError",
    "PluginManager",
    "RemovedCapabilityError",
    "ReturnLedger",
    "UnknownMethodError",
    "handler",
]
