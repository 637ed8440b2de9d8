"""The pluggable base class: event firing and call interception.

Any class that extends :class:`Pluggable` can fire custom events at any
time, and any of its interceptable methods can be observed, overridden or
supplied by plugin handlers without touching the class itself.

An intercepted call runs four phases:

1. Resolve the requested name (see :mod:`pluggable.resolver`).
2. Replace :attr:`Pluggable.event_arguments` with the call's arguments and
   run the *Before* handlers.
3. Run exactly one body, first match wins: the *Override* handler, the
   *New* handler, or the object's own method.
4. Run the *After* handlers and return the value produced in step 3.

Before/After (and event) handler returns are recorded into
:attr:`Pluggable.returns`; they never change the call result.

Dispatch state (the event arguments and the in-flight handler type) is kept
per thread, and no lock is held while handlers or the method body run, so
handlers may call into other pluggable objects from any thread.

Example::

    class Discussion(Pluggable):
        def xsave(self, values):
            return 42

    manager = PluginManager()
    discussion = Discussion(manager)
    discussion.save({"name": "Hi"})   # Before handlers, xsave, After handlers
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Optional, Union

from pluggable.exceptions import NotInitializedError
from pluggable.ledger import ReturnLedger
from pluggable.models import (
    DispatchAttempt,
    FireAsOptions,
    HandlerPhase,
    HandlerReturn,
    HandlerType,
)
from pluggable.registry import HandlerRegistry
from pluggable.resolver import DispatchResolver, is_removed

logger = logging.getLogger(__name__)

FireAsTarget = Union[str, type, Mapping[str, Any], FireAsOptions]

_default_resolver = DispatchResolver()


class _CallState(threading.local):
    """Dispatch state of one pluggable object, private to each thread."""

    def __init__(self) -> None:
        self.arguments: dict[Any, Any] = {}
        self.attempts: list[DispatchAttempt] = []


class Pluggable:
    """Base class for objects whose methods and events plugins can hook into.

    Subclasses that define their own constructor must call
    ``super().__init__(registry)``; firing an event from an instance whose
    base constructor never ran raises :class:`NotInitializedError`.

    Args:
        registry: The handler registry consulted on every dispatch.
        identity: Logical class name used for handler lookup. Defaults to
            the name of the instance's class.
        resolver: Method-name resolver. Defaults to a resolver using the
            ``"x"`` prefix.

    Attributes:
        returns: Values returned by event, Before and After handlers.
    """

    _dispatch_root = True

    def __init__(
        self,
        registry: HandlerRegistry,
        identity: Optional[str] = None,
        resolver: Optional[DispatchResolver] = None,
    ) -> None:
        self._registry = registry
        self._resolver = resolver or _default_resolver
        self._lock = threading.Lock()
        self._state = _CallState()
        self._handler_type = HandlerType.NORMAL
        self._fire_as: Optional[str] = None
        self.returns = ReturnLedger()
        self._identity = identity or type(self).__name__

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def identity(self) -> str:
        """The logical class name handlers are looked up under."""
        return self._identity

    @property
    def event_arguments(self) -> dict[Any, Any]:
        """Arguments visible to (and rewritable by) handlers on this thread.

        During an intercepted call this is the call's own argument dict;
        each thread sees its own.
        """
        return self._state.arguments

    @event_arguments.setter
    def event_arguments(self, value: dict[Any, Any]) -> None:
        self._state.arguments = value

    @property
    def handler_type(self) -> HandlerType:
        """How the current call on this thread, or else the last completed call, was satisfied."""
        attempts = self._state.attempts
        if attempts and attempts[-1].handler_type is not None:
            return attempts[-1].handler_type
        return self._handler_type

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    @property
    def pending_fire_as(self) -> Optional[str]:
        """Identity the next :meth:`fire_event` will use, if redirected."""
        return self._fire_as

    def get_return(self, plugin_name: str, handler_name: str) -> Any:
        """Return the value *plugin_name* returned from *handler_name*, or ``None``.

        Example::

            discussion.get_return("Spam", "save_Before")
            discussion.get_return("Spam", "Discussion_Render_Handler")
        """
        return self.returns.get(plugin_name, handler_name)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def fire_as(self, options: FireAsTarget) -> "Pluggable":
        """Fire the next event as if it came from another class.

        Args:
            options: The identity to use (a string or a class), or a
                mapping / :class:`~pluggable.models.FireAsOptions` carrying
                ``fire_class``. A mapping without that key changes nothing.

        Returns:
            ``self``, so the call can be chained with :meth:`fire_event`.
        """
        if isinstance(options, FireAsOptions):
            parsed = options
        elif isinstance(options, Mapping):
            parsed = FireAsOptions.model_validate(dict(options))
        elif isinstance(options, type):
            parsed = FireAsOptions(fire_class=options.__name__)
        else:
            parsed = FireAsOptions(fire_class=options)

        if "fire_class" in parsed.model_fields_set:
            with self._lock:
                self._fire_as = parsed.fire_class
        return self

    def fire_event(
        self, event_name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> list[HandlerReturn]:
        """Fire an event for plugins to handle.

        Handlers registered for ``(identity, event_name)`` run in
        registration order and receive this object and its
        :attr:`event_arguments`. A pending :meth:`fire_as` redirection is
        consumed here, before any handler runs. Returns are recorded under
        ``<identity>_<event_name>_Handler`` with the identity fired as.

        Args:
            event_name: Name of the event being fired.
            arguments: Values merged into :attr:`event_arguments` first.

        Returns:
            One :class:`~pluggable.models.HandlerReturn` per handler that ran.

        Raises:
            NotInitializedError: ``Pluggable.__init__`` was never called.
        """
        self._require_init()
        with self._lock:
            fire_class = self._fire_as if self._fire_as is not None else self._identity
            self._fire_as = None

        if arguments is not None:
            self.event_arguments.update(arguments)

        logger.debug("Firing %s_%s", fire_class, event_name)
        results = self._registry.call_handlers(
            self, fire_class, event_name, HandlerPhase.EVENT
        )
        self._record(f"{fire_class}_{event_name}_{HandlerPhase.EVENT.value}", results)
        return results

    # ------------------------------------------------------------------
    # Interception
    # ------------------------------------------------------------------

    def intercept(self, method_name: str, /, *args: Any, **kwargs: Any) -> Any:
        """Call *method_name* through the Before / body / After protocol.

        This is what ``obj.save(...)`` runs when the class declares
        ``xsave`` (or ``obj.xsave(...)`` when it declares ``save``), and
        it can be called directly.

        Raises:
            RemovedCapabilityError: *method_name* belongs to the removed
                slicing capability.
            UnknownMethodError: Nothing resolves *method_name*.
            NotInitializedError: ``Pluggable.__init__`` was never called.
        """
        self._require_init()
        resolution = self._resolver.resolve(
            type(self), self._identity, method_name, self._registry
        )
        attempt = DispatchAttempt(
            requested=method_name,
            actual=resolution.actual,
            reference=resolution.reference,
            args=args,
            kwargs=dict(kwargs),
        )
        identity, reference = self._identity, resolution.reference

        state = self._state
        saved_arguments = state.arguments
        state.arguments = dict(enumerate(args))
        state.arguments.update(kwargs)
        state.attempts.append(attempt)
        try:
            self._run_handlers(identity, reference, HandlerPhase.BEFORE)

            if self._registry.has_override(identity, reference):
                attempt.handler_type = HandlerType.OVERRIDE
                result = self._registry.call_override(self, identity, reference)
            elif self._registry.has_new_method(identity, reference):
                attempt.handler_type = HandlerType.NEW
                result = self._registry.call_new_method(self, identity, reference)
            else:
                attempt.handler_type = HandlerType.NORMAL
                result = getattr(self, resolution.actual)(*args, **kwargs)
            attempt.result = result

            self._run_handlers(identity, reference, HandlerPhase.AFTER)
        finally:
            state.attempts.pop()
            state.arguments = saved_arguments
            if attempt.handler_type is not None:
                self._handler_type = attempt.handler_type

        logger.debug("Dispatched %s", attempt)
        return result

    def __getattr__(self, name: str) -> Any:
        # Only reached for names the instance and its class do not define.
        if name.startswith("_") or "_identity" not in self.__dict__:
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {name!r}"
            )
        if not is_removed(name):
            self._resolver.resolve(type(self), self._identity, name, self._registry)

        def interceptor(*args: Any, **kwargs: Any) -> Any:
            return self.intercept(name, *args, **kwargs)

        interceptor.__name__ = name
        return interceptor

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_init(self) -> None:
        if not self.__dict__.get("_identity"):
            raise NotInitializedError(
                f"Event fired from pluggable class '{type(self).__name__}', "
                "but Pluggable.__init__() was never called."
            )

    def _run_handlers(self, identity: str, reference: str, phase: HandlerPhase) -> None:
        results = self._registry.call_handlers(self, identity, reference, phase)
        self._record(f"{reference}_{phase.value}", results)

    def _record(self, ledger_key: str, results: list[HandlerReturn]) -> None:
        for entry in results:
            self.returns.record(ledger_key, entry.plugin_name, entry.value)
