"""Tests for Pluggable.fire_event and Pluggable.fire_as."""

from __future__ import annotations

import pytest

from pluggable.core import Pluggable
from pluggable.exceptions import NotInitializedError
from pluggable.models import FireAsOptions, HandlerPhase, HandlerReturn
from pluggable.plugins import Plugin, PluginManager, handler


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


class Controller(Pluggable):
    def xpublish(self):
        self.event_arguments["status"] = "draft"
        self.fire_event("Publishing")
        return self.event_arguments["status"]


class Foo(Pluggable):
    pass


class EventLog(Plugin):
    """Records which (identity, event) pairs it was called for."""

    def __init__(self, name: str = "event-log") -> None:
        self._name = name
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @handler("Controller", "Render")
    def controller_render(self, sender, args):
        self.calls.append("Controller_Render")
        return "controller"

    @handler("Foo", "Render")
    def foo_render(self, sender, args):
        self.calls.append("Foo_Render")
        return "foo"

    @handler("Controller", "Publishing")
    def review(self, sender, args):
        args["status"] = "reviewed"


# ---------------------------------------------------------------------------
# fire_event
# ---------------------------------------------------------------------------


class TestFireEvent:
    def test_runs_handlers_for_identity(self, manager: PluginManager) -> None:
        log = EventLog()
        manager.load_plugin(log)
        result = Controller(manager).fire_event("Render")
        assert log.calls == ["Controller_Render"]
        assert result == [HandlerReturn(plugin_name="event-log", value="controller")]

    def test_no_handlers_returns_empty_list(self, manager: PluginManager) -> None:
        assert Controller(manager).fire_event("Nothing") == []

    def test_event_name_is_case_insensitive(self, manager: PluginManager) -> None:
        log = EventLog()
        manager.load_plugin(log)
        Controller(manager).fire_event("render")
        assert log.calls == ["Controller_Render"]

    def test_returns_recorded_under_handler_key(self, manager: PluginManager) -> None:
        manager.load_plugin(EventLog())
        controller = Controller(manager)
        controller.fire_event("Render")
        assert controller.get_return("event-log", "Controller_Render_Handler") == "controller"
        assert controller.get_return("event-log", "Render_Handler") is None

    def test_handlers_run_in_registration_order(self, manager: PluginManager) -> None:
        manager.load_plugin(EventLog("first"))
        manager.load_plugin(EventLog("second"))
        result = Controller(manager).fire_event("Render")
        assert [r.plugin_name for r in result] == ["first", "second"]

    def test_arguments_merged_into_event_arguments(self, manager: PluginManager) -> None:
        controller = Controller(manager)
        controller.event_arguments["a"] = 1
        controller.fire_event("Render", {"b": 2})
        assert controller.event_arguments == {"a": 1, "b": 2}

    def test_handlers_can_rewrite_arguments(self, manager: PluginManager) -> None:
        manager.load_plugin(EventLog())
        assert Controller(manager).publish() == "reviewed"

    def test_wildcard_handlers_run_after_specific(self, manager: PluginManager) -> None:
        order = []

        class Everywhere(Plugin):
            @property
            def name(self) -> str:
                return "everywhere"

            @handler("*", "Render")
            def any_render(self, sender, args):
                order.append("wildcard")

        class Specific(Plugin):
            @property
            def name(self) -> str:
                return "specific"

            @handler("Controller", "Render")
            def render(self, sender, args):
                order.append("specific")

        manager.load_plugin(Everywhere())
        manager.load_plugin(Specific())
        Controller(manager).fire_event("Render")
        Foo(manager).fire_event("Render")
        assert order == ["specific", "wildcard", "wildcard"]

    def test_not_initialized(self, manager: PluginManager) -> None:
        class Forgetful(Pluggable):
            def __init__(self) -> None:
                self.ready = True

        with pytest.raises(NotInitializedError, match="Forgetful"):
            Forgetful().fire_event("Render")

    def test_handler_failure_propagates(self, manager: PluginManager) -> None:
        class Failing(Plugin):
            @property
            def name(self) -> str:
                return "failing"

            @handler("Controller", "Render", HandlerPhase.EVENT)
            def fail(self, sender, args):
                raise RuntimeError("boom")

        manager.load_plugin(Failing())
        with pytest.raises(RuntimeError, match="boom"):
            Controller(manager).fire_event("Render")


# ---------------------------------------------------------------------------
# fire_as
# ---------------------------------------------------------------------------


class TestFireAs:
    def test_redirects_next_event_only(self, manager: PluginManager) -> None:
        log = EventLog()
        manager.load_plugin(log)
        controller = Controller(manager)
        controller.fire_as("Foo").fire_event("Render")
        controller.fire_event("Render")
        assert log.calls == ["Foo_Render", "Controller_Render"]

    def test_returns_keyed_by_fired_identity(self, manager: PluginManager) -> None:
        manager.load_plugin(EventLog())
        controller = Controller(manager)
        controller.fire_as("Foo").fire_event("Render")
        controller.fire_event("Render")
        assert controller.get_return("event-log", "Foo_Render_Handler") == "foo"
        assert controller.get_return("event-log", "Controller_Render_Handler") == "controller"

    def test_returns_self(self, manager: PluginManager) -> None:
        controller = Controller(manager)
        assert controller.fire_as("Foo") is controller
        assert controller.pending_fire_as == "Foo"

    def test_cleared_after_fire(self, manager: PluginManager) -> None:
        controller = Controller(manager)
        controller.fire_as("Foo").fire_event("Render")
        assert controller.pending_fire_as is None

    def test_identity_unchanged(self, manager: PluginManager) -> None:
        controller = Controller(manager)
        controller.fire_as("Foo").fire_event("Render")
        assert controller.identity == "Controller"

    @pytest.mark.parametrize(
        "options",
        [
            "Foo",
            Foo,
            {"FireClass": "Foo"},
            {"fire_class": "Foo"},
            FireAsOptions(fire_class="Foo"),
        ],
    )
    def test_accepted_forms(self, manager: PluginManager, options) -> None:
        controller = Controller(manager)
        controller.fire_as(options)
        assert controller.pending_fire_as == "Foo"

    def test_mapping_without_key_keeps_pending(self, manager: PluginManager) -> None:
        controller = Controller(manager)
        controller.fire_as("Foo").fire_as({"other": "value"})
        assert controller.pending_fire_as == "Foo"

    def test_cleared_even_when_handler_fails(self, manager: PluginManager) -> None:
        class FailingFoo(Plugin):
            @property
            def name(self) -> str:
                return "failing-foo"

            @handler("Foo", "Render")
            def fail(self, sender, args):
                raise RuntimeError("boom")

        log = EventLog()
        manager.load_plugin(FailingFoo())
        manager.load_plugin(log)
        controller = Controller(manager)
        with pytest.raises(RuntimeError):
            controller.fire_as("Foo").fire_event("Render")
        assert controller.pending_fire_as is None

        controller.fire_event("Render")
        assert log.calls == ["Controller_Render"]

    def test_does_not_affect_intercepted_calls(self, manager: PluginManager) -> None:
        manager.load_plugin(EventLog())
        controller = Controller(manager)
        controller.fire_as("Foo")
        # xpublish fires "Publishing", which consumes the redirection.
        assert controller.publish() == "draft"
        assert controller.pending_fire_as is None
