"""Handler declaration: the ``@handler`` decorator and its collector.

A plugin marks each method that should take part in dispatch with
:func:`handler`, naming the pluggable identity it attaches to, the method
or event reference name, and the phase::

    class AuditPlugin(Plugin):
        name = "audit"

        @handler("Discussion", "save", HandlerPhase.BEFORE)
        def stamp(self, sender, args):
            args[0]["audited"] = True

        @handler("Discussion", "save", "After")
        @handler("Comment", "save", "After")
        def count(self, sender, args):
            return len(args)

:func:`collect_handlers` turns the marks on a plugin instance into bound
:class:`~pluggable.models.HandlerRegistration` records, in declaration
order, for :class:`~pluggable.plugins.manager.PluginManager` to index.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, TypeVar, Union

from pluggable.exceptions import PluginError
from pluggable.models import HandlerPhase, HandlerRegistration

if TYPE_CHECKING:
    from pluggable.plugins.base import Plugin

F = TypeVar("F", bound=Callable[..., Any])

HANDLER_MARK = "__pluggable_handlers__"
"""Function attribute holding the ``(owner, method, phase)`` marks."""

ANY_OWNER = "*"
"""Owner that attaches a handler to every pluggable identity."""


def coerce_phase(phase: Union[HandlerPhase, str]) -> HandlerPhase:
    """Turn a phase name (case-insensitive) into a :class:`HandlerPhase`.

    Raises:
        PluginError: *phase* names no known phase.
    """
    if isinstance(phase, HandlerPhase):
        return phase
    wanted = phase.lower()
    for member in HandlerPhase:
        if wanted in (member.value.lower(), member.name.lower()):
            return member
    raise PluginError(f"Unknown handler phase: {phase!r}")


def handler(
    owner: str, method: str, phase: Union[HandlerPhase, str] = HandlerPhase.EVENT
) -> Callable[[F], F]:
    """Mark a plugin method as a handler for ``(owner, method, phase)``.

    The decorator can be stacked to attach one method to several keys.

    Args:
        owner: Identity of the pluggable class, or ``"*"`` for every class.
        method: Reference name of the method, or the event name.
        phase: One of :class:`~pluggable.models.HandlerPhase`, or its name.
    """
    resolved = coerce_phase(phase)

    def decorate(func: F) -> F:
        marks = list(getattr(func, HANDLER_MARK, ()))
        marks.append((owner, method, resolved))
        setattr(func, HANDLER_MARK, marks)
        return func

    return decorate


def collect_handlers(plugin: "Plugin") -> list[HandlerRegistration]:
    """Return the registrations declared on *plugin*'s class hierarchy.

    Methods are visited base classes first, each in definition order. A
    method redefined in a subclass keeps its base-class position but uses
    the subclass's marks.
    """
    marked: dict[str, list[tuple[str, str, HandlerPhase]]] = {}
    for klass in reversed(type(plugin).__mro__):
        for attr, value in vars(klass).items():
            func = getattr(value, "__func__", value)
            marks = getattr(func, HANDLER_MARK, None)
            if marks:
                marked[attr] = list(reversed(marks))
            elif attr in marked:
                del marked[attr]

    registrations: list[HandlerRegistration] = []
    for attr, marks in marked.items():
        callback = getattr(plugin, attr)
        for owner, method, phase in marks:
            registrations.append(
                HandlerRegistration(
                    owner=owner,
                    method=method,
                    phase=phase,
                    plugin_name=plugin.name,
                    callback=callback,
                )
            )
    return registrations
