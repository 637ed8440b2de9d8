"""Example plugin that logs every save on any pluggable class."""

from __future__ import annotations

import logging
from typing import Any

from pluggable.models import GlobalConfig, HandlerPhase
from pluggable.plugins import Plugin, handler

logger = logging.getLogger(__name__)


class ExamplePlugin(Plugin):
    """Logs before and after every ``save`` call and counts them."""

    def __init__(self) -> None:
        self._initialized = False
        self.saves = 0

    @property
    def name(self) -> str:
        return "example"

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return "Example plugin that logs save calls"

    def on_init(self, config: GlobalConfig) -> None:
        self._initialized = True

    @handler("*", "save", HandlerPhase.BEFORE)
    def before_save(self, sender: Any, args: dict) -> str:
        logger.info("[example] %s.save(%r)", sender.identity, args)
        return "before"

    @handler("*", "save", HandlerPhase.AFTER)
    def after_save(self, sender: Any, args: dict) -> int:
        self.saves += 1
        return self.saves

    def cleanup(self) -> None:
        self._initialized = False
