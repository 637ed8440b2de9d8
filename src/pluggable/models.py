"""Shared data shapes for the dispatch core, the plugin registry and configuration.

The module holds three groups of types:

**Dispatch enums** -- :class:`HandlerPhase` (when a handler participates in a
dispatch) and :class:`HandlerType` (how the most recent call was satisfied).

**Dispatch records** -- plain dataclasses that live only as long as a single
dispatch or registration: :class:`HandlerRegistration`,
:class:`HandlerReturn` and :class:`DispatchAttempt`.

**Pydantic models** -- :class:`FireAsOptions` (the structured form accepted
by :meth:`~pluggable.core.Pluggable.fire_as`) and the configuration models
:class:`DispatchConfig` and :class:`GlobalConfig`, serialised as JSON by
:mod:`pluggable.config`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Dispatch enums ---


class HandlerPhase(str, enum.Enum):
    """The phase a handler is registered for.

    ``EVENT`` is the general phase used by
    :meth:`~pluggable.core.Pluggable.fire_event`; its value doubles as the
    suffix of the ledger key for event returns
    (``"<identity>_<event>_Handler"``).
    """

    EVENT = "Handler"
    BEFORE = "Before"
    AFTER = "After"
    OVERRIDE = "Override"
    NEW = "New"


class HandlerType(str, enum.Enum):
    """How an intercepted call was satisfied."""

    NORMAL = "normal"
    OVERRIDE = "override"
    NEW = "new"


HandlerCallback = Callable[[Any, dict], Any]
"""Signature of every handler body: ``callback(sender, args)``."""


# --- Dispatch records ---


@dataclass(frozen=True)
class HandlerRegistration:
    """A single handler declared by a plugin.

    Attributes:
        owner: Identity of the pluggable class the handler attaches to, or
            ``"*"`` to attach to every identity.
        method: Reference name of the method or event.
        phase: When the handler participates in a dispatch.
        plugin_name: Name of the plugin that declared the handler.
        callback: The handler body, called as ``callback(sender, args)``.
    """

    owner: str
    method: str
    phase: HandlerPhase
    plugin_name: str
    callback: HandlerCallback = field(compare=False, repr=False)

    @property
    def key(self) -> tuple[str, str, HandlerPhase]:
        """Case-insensitive lookup key ``(owner, method, phase)``."""
        return (self.owner.lower(), self.method.lower(), self.phase)


@dataclass(frozen=True)
class HandlerReturn:
    """The value one plugin's handler returned during a phase."""

    plugin_name: str
    value: Any = None


@dataclass
class DispatchAttempt:
    """Frame-local record of one call going through the interception protocol.

    Never stored on the pluggable object, so concurrent and re-entrant
    calls each see their own attempt.
    """

    requested: str
    actual: str
    reference: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    handler_type: Optional[HandlerType] = None
    result: Any = None


# --- Fire-as options ---


class FireAsOptions(BaseModel):
    """Structured argument for :meth:`~pluggable.core.Pluggable.fire_as`.

    The legacy ``FireClass`` key is accepted as an alias of ``fire_class``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    fire_class: Optional[str] = Field(
        default=None,
        alias="FireClass",
        description="Identity the next fired event is attributed to",
    )


# --- Configuration ---


class DispatchConfig(BaseModel):
    """Settings consumed by :class:`~pluggable.resolver.DispatchResolver`."""

    method_prefix: str = Field(
        default="x",
        description="Reserved prefix marking interceptable method declarations",
    )

    @field_validator("method_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value or not value.isidentifier() or value.startswith("_"):
            raise ValueError(
                "method_prefix must be a non-empty identifier not starting with '_'"
            )
        return value


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/pluggable/config.json``.

    Loaded and saved by :func:`~pluggable.config.load_global_config` and
    :func:`~pluggable.config.save_global_config`. See
    :func:`~pluggable.config.resolve_config` for the precedence chain.
    """

    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    log_level: str = Field(default="WARNING", description="Root log level for the CLI")

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level
