"""Tests for Pluggable under concurrent use from several threads."""

from __future__ import annotations

import threading
import time

from pluggable.core import Pluggable
from pluggable.models import HandlerPhase, HandlerType
from pluggable.plugins import Plugin, PluginManager, handler


class Echo(Pluggable):
    def xecho(self, value):
        return value


class Alpha(Pluggable):
    def xping(self, hops):
        return f"alpha:{hops}"


class Beta(Pluggable):
    def xping(self, hops):
        return f"beta:{hops}"


class SlowObserver(Plugin):
    """Records the argument each phase saw, yielding between phases."""

    def __init__(self) -> None:
        self.seen: list[tuple[str, object]] = []

    @property
    def name(self) -> str:
        return "slow-observer"

    @handler("Echo", "echo", HandlerPhase.BEFORE)
    def before(self, sender, args):
        self.seen.append(("before", args[0]))
        time.sleep(0.001)

    @handler("Echo", "echo", HandlerPhase.AFTER)
    def after(self, sender, args):
        self.seen.append(("after", args[0]))


class CrossCaller(Plugin):
    """Before a ping with hops left, pings the peer object once both threads arrive."""

    def __init__(self, barrier: threading.Barrier) -> None:
        self.barrier = barrier
        self.peers: dict[str, Pluggable] = {}
        self.relayed: list[str] = []

    @property
    def name(self) -> str:
        return "cross-caller"

    @handler("Alpha", "ping", HandlerPhase.BEFORE)
    @handler("Beta", "ping", HandlerPhase.BEFORE)
    def relay(self, sender, args):
        if args[0] == 0:
            return None
        self.barrier.wait(timeout=5)
        self.relayed.append(self.peers[sender.identity].ping(args[0] - 1))
        return "relayed"


def _run(*targets) -> list[threading.Thread]:
    threads = [threading.Thread(target=t, daemon=True) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return threads


def test_concurrent_calls_do_not_share_arguments(manager: PluginManager) -> None:
    observer = SlowObserver()
    manager.load_plugin(observer)
    echo = Echo(manager)
    results: dict[int, list] = {}

    def worker(worker_id: int) -> None:
        results[worker_id] = [echo.echo((worker_id, i)) for i in range(20)]

    _run(*(lambda n=n: worker(n) for n in range(4)))

    for worker_id, values in results.items():
        assert values == [(worker_id, i) for i in range(20)]

    assert len(observer.seen) == 4 * 20 * 2
    for worker_id in range(4):
        phases = [(phase, value) for phase, value in observer.seen if value[0] == worker_id]
        expected = []
        for i in range(20):
            expected += [("before", (worker_id, i)), ("after", (worker_id, i))]
        assert phases == expected
    assert echo.event_arguments == {}


def test_event_arguments_are_per_thread(manager: PluginManager) -> None:
    echo = Echo(manager)
    echo.event_arguments["owner"] = "main"
    seen = {}

    def worker() -> None:
        seen["before"] = dict(echo.event_arguments)
        echo.fire_event("Ping", {"owner": "worker"})
        seen["after"] = dict(echo.event_arguments)

    _run(worker)
    assert seen == {"before": {}, "after": {"owner": "worker"}}
    assert echo.event_arguments == {"owner": "main"}


def test_cross_object_calls_from_two_threads_do_not_deadlock(
    manager: PluginManager,
) -> None:
    caller = CrossCaller(threading.Barrier(2))
    manager.load_plugin(caller)
    alpha, beta = Alpha(manager), Beta(manager)
    caller.peers.update({"Alpha": beta, "Beta": alpha})
    results: dict[str, str] = {}

    threads = _run(
        lambda: results.setdefault("alpha", alpha.ping(1)),
        lambda: results.setdefault("beta", beta.ping(1)),
    )

    assert not any(thread.is_alive() for thread in threads)
    assert results == {"alpha": "alpha:1", "beta": "beta:1"}
    assert sorted(caller.relayed) == ["alpha:0", "beta:0"]
    assert ("ping_Before", "cross-caller") in alpha.returns
    assert alpha.handler_type == HandlerType.NORMAL


def test_concurrent_fire_as_is_consumed_once(manager: PluginManager) -> None:
    fired: list[str] = []

    class Tracker(Plugin):
        @property
        def name(self) -> str:
            return "tracker"

        @handler("Other", "Ping")
        def as_other(self, sender, args):
            fired.append("Other")

        @handler("Echo", "Ping")
        def as_echo(self, sender, args):
            fired.append("Echo")

    manager.load_plugin(Tracker())
    echo = Echo(manager)
    echo.fire_as("Other")

    _run(*(lambda: echo.fire_event("Ping") for _ in range(8)))

    assert fired.count("Other") == 1
    assert fired.count("Echo") == 7
    assert echo.pending_fire_as is None
