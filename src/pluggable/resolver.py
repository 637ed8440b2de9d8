"""Method-name resolution for intercepted calls.

A pluggable class can expose an interceptable method in two ways:

1. **Declared** -- the method is declared with the reserved prefix and
   called without it::

       class Discussion(Pluggable):
           def xsave(self, values): ...

       discussion.save(values)      # intercepted, runs xsave

2. **Called** -- the method is declared without the prefix and called with
   it::

       class Discussion(Pluggable):
           def save(self, values): ...

       discussion.xsave(values)     # intercepted, runs save

Plugins always refer to the method by its *reference name*, the name
without the prefix (``"save"`` in both cases), so they never need to know
which convention the class author chose.

The set of methods a class declares is computed once per type and cached
in a :class:`DispatchTable`. Whether a call ends up satisfied by an
Override handler, a New handler or the real method depends on the registry
at call time and is decided by :class:`~pluggable.core.Pluggable`.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from pluggable.exceptions import RemovedCapabilityError, UnknownMethodError

if TYPE_CHECKING:
    from pluggable.registry import HandlerRegistry

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "x"
"""Reserved prefix used when no configuration says otherwise."""

REMOVED_METHODS = frozenset(
    {"enable_slicing", "slice", "add_slice_asset", "render_slice_config"}
)
"""Method names of the removed slicing capability.

Matched ignoring case and underscores, so the legacy spellings
(``enableSlicing``, ``AddSliceAsset``) are retired too.
"""

_REMOVED_KEYS = frozenset(name.replace("_", "") for name in REMOVED_METHODS)

REMOVED_MESSAGE = (
    "Slicing has been removed from Pluggable. "
    'Try using the functionality provided by "js-form" instead.'
)

ROOT_MARKER = "_dispatch_root"
"""Class attribute marking a base whose own methods are not interceptable."""


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one requested method name.

    Attributes:
        requested: The name the caller used.
        actual: The method name that implements the call on the object.
        reference: The prefix-independent name used for handler lookup.
        exists: Whether *actual* is a method the object's class declares.
    """

    requested: str
    actual: str
    reference: str
    exists: bool


@dataclass(frozen=True)
class DispatchTable:
    """The interceptable methods of one pluggable type.

    Attributes:
        owner: Name of the class the table was built for.
        prefix: Reserved prefix the aliases were computed with.
        methods: Public method names declared below the dispatch root.
        aliases: Requested name to actual method name, for every name a
            caller can use to reach a declared method through interception.
    """

    owner: str
    prefix: str
    methods: frozenset[str]
    aliases: dict[str, str] = field(default_factory=dict)

    def entries(self) -> list[dict[str, str]]:
        """Describe every alias as ``requested``, ``actual``, ``reference``, ``convention``."""
        rows = []
        for requested, actual in sorted(self.aliases.items()):
            declared = actual.startswith(self.prefix) and len(actual) > len(self.prefix)
            rows.append(
                {
                    "requested": requested,
                    "actual": actual,
                    "reference": actual[len(self.prefix):] if declared else actual,
                    "convention": "declared" if declared else "called",
                }
            )
        return rows


def is_removed(name: str) -> bool:
    """Return True if *name* is a method of the removed slicing capability."""
    return name.replace("_", "").lower() in _REMOVED_KEYS


def _declared_methods(cls: type) -> frozenset[str]:
    names: set[str] = set()
    for klass in cls.__mro__:
        if klass is object or ROOT_MARKER in vars(klass):
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or isinstance(value, (type, property)):
                continue
            if callable(value) or isinstance(value, (staticmethod, classmethod)):
                names.add(name)
    return frozenset(names)


@functools.lru_cache(maxsize=None)
def build_table(cls: type, prefix: str = DEFAULT_PREFIX) -> DispatchTable:
    """Build (once per type and prefix) the :class:`DispatchTable` for *cls*."""
    methods = _declared_methods(cls)
    aliases: dict[str, str] = {}
    for name in methods:
        if name.startswith(prefix) and len(name) > len(prefix):
            aliases[name[len(prefix):]] = name
        else:
            aliases[prefix + name] = name
    logger.debug("Built dispatch table for %s: %d methods", cls.__name__, len(methods))
    return DispatchTable(
        owner=cls.__name__, prefix=prefix, methods=methods, aliases=aliases
    )


class DispatchResolver:
    """Decides what an intercepted call should execute.

    Args:
        prefix: Reserved prefix marking interceptable declarations.
            Defaults to :data:`DEFAULT_PREFIX`.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix

    def split(self, requested: str) -> tuple[str, str]:
        """Apply the dual naming rule to *requested*.

        Returns:
            ``(actual, reference)``. A prefixed name resolves to the plain
            method and reference name; a plain name resolves to the
            prefixed method and keeps itself as the reference name.
        """
        if requested.startswith(self.prefix) and len(requested) > len(self.prefix):
            plain = requested[len(self.prefix):]
            return plain, plain
        return self.prefix + requested, requested

    def table(self, cls: type) -> DispatchTable:
        """Return the cached :class:`DispatchTable` for *cls*."""
        return build_table(cls, self.prefix)

    @staticmethod
    def check_removed(requested: str) -> None:
        """Raise :class:`RemovedCapabilityError` if *requested* is a retired name."""
        if is_removed(requested):
            raise RemovedCapabilityError(REMOVED_MESSAGE)

    def resolve(
        self,
        cls: type,
        identity: str,
        requested: str,
        registry: Optional["HandlerRegistry"] = None,
    ) -> Resolution:
        """Resolve *requested* on a pluggable of type *cls*.

        Args:
            cls: Type of the pluggable object.
            identity: Logical identity used for registry lookups.
            requested: The name the caller used.
            registry: Registry asked whether a New handler provides the
                method when the class does not declare it.

        Raises:
            RemovedCapabilityError: *requested* belongs to the removed
                slicing capability. Checked before anything else.
            UnknownMethodError: Neither the actual method nor a New handler
                exists for the reference name.
        """
        self.check_removed(requested)
        actual, reference = self.split(requested)
        exists = actual in self.table(cls).methods
        if not exists and (
            registry is None or not registry.has_new_method(identity, reference)
        ):
            raise UnknownMethodError(identity, actual)
        return Resolution(
            requested=requested, actual=actual, reference=reference, exists=exists
        )
