"""Inspect commands -- examine pluggable classes and plugin declarations.

Provides the ``pluggable inspect`` sub-command group with read-only views:

* ``methods`` -- the dispatch table of a :class:`~pluggable.core.Pluggable`
  subclass: every name a caller can use to reach an interceptable method.
* ``handlers`` -- the handler registrations a
  :class:`~pluggable.plugins.base.Plugin` subclass declares.

Targets are given as ``package.module:ClassName``.
"""

from __future__ import annotations

import importlib
from typing import Any

import typer

from pluggable.exit_codes import EXIT_INVALID_USAGE
from pluggable.output import debug, error, info, print_table


inspect_app = typer.Typer(no_args_is_help=True)


def _load_class(target: str, base: type) -> Any:  # noqa: ANN401
    """Import ``module:ClassName`` and check it subclasses *base*.

    Raises:
        typer.Exit: With ``EXIT_INVALID_USAGE`` when the target is
            malformed or unimportable, or is not a subclass of *base*.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        error(f"Expected MODULE:CLASS, got: {target}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        error(f"Cannot load {target}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if not isinstance(obj, type) or not issubclass(obj, base):
        error(f"{target} is not a {base.__name__} subclass")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    debug(f"Loaded {obj.__module__}.{obj.__qualname__}")
    return obj


@inspect_app.command("methods")
def inspect_methods(
    ctx: typer.Context,
    target: str = typer.Argument(help="Pluggable class as MODULE:CLASS."),
) -> None:
    """List the interceptable methods of a pluggable class.

    Shows, for every alias, the name a caller uses, the method that runs,
    the reference name plugins attach to, and the naming convention.

    Example::

        pluggable inspect methods myapp.models:Discussion
    """
    from pluggable.core import Pluggable
    from pluggable.resolver import DispatchResolver

    cls = _load_class(target, Pluggable)
    prefix = (ctx.obj or {}).get("prefix") or "x"
    table = DispatchResolver(prefix).table(cls)

    entries = table.entries()
    if not entries:
        info(f"{table.owner} declares no interceptable methods.")
        return
    print_table(
        ["Call as", "Runs", "Reference", "Convention"],
        [
            [e["requested"], e["actual"], e["reference"], e["convention"]]
            for e in entries
        ],
        title=f"{table.owner} (prefix '{table.prefix}')",
    )


@inspect_app.command("handlers")
def inspect_handlers(
    target: str = typer.Argument(help="Plugin class as MODULE:CLASS."),
) -> None:
    """List the handlers a plugin class declares.

    The class is instantiated without arguments.

    Example::

        pluggable inspect handlers myapp.plugins:SpamFilter
    """
    from pluggable.exceptions import PluggableError
    from pluggable.plugins.base import Plugin

    cls = _load_class(target, Plugin)
    try:
        plugin = cls()
        registrations = plugin.handlers()
    except (TypeError, PluggableError) as exc:
        error(f"Cannot instantiate {target}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if not registrations:
        info(f"Plugin '{plugin.name}' declares no handlers.")
        return
    print_table(
        ["Owner", "Method", "Phase", "Callback"],
        [
            [r.owner, r.method, r.phase.value, getattr(r.callback, "__name__", repr(r.callback))]
            for r in registrations
        ],
        title=f"{plugin.name} v{plugin.version}",
    )
