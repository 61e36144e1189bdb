from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Callable, List, Optional
import time

import pytest


@dataclass
class ScenarioEvent:
    event_type: str
    timestamp: str = field(
        default_factory=lambda: datetime.now().isoformat())
    nodeid: str = None
    name: str = None
    outcome: str = None
    duration_seconds: float = None
    duration_ms: int = None
    message: str = None
    step_name: str = None
    username: str = None
    artifact: str = None
    markers: List[str] = None

    def to_dict(self):
        return {k: v for k, v in asdict(self).items() if v is not None}


class ResultCollectorPlugin:
    """Pytest plugin that collects scenario results and emits them via callback."""

    def __init__(self, on_event: Callable[[ScenarioEvent], None] = None):
        self.on_event = on_event
        self.results: List[ScenarioEvent] = []
        self._started: float = None
        self._nodeid: str = None
        self._name: str = None

    def _emit(self, event: ScenarioEvent):
        self.results.append(event)
        if self.on_event:
            self.on_event(event)

    def _context(self, event: ScenarioEvent) -> ScenarioEvent:
        event.nodeid = event.nodeid or self._nodeid
        event.name = event.name or self._name
        return event

    def pytest_sessionstart(self, session):
        self._emit(ScenarioEvent("session_start"))

    def pytest_runtest_setup(self, item):
        self._started = time.time()
        self._nodeid = item.nodeid
        self._name = item.name
        markers = [
            mark.name for mark in item.iter_markers()
            if mark.name not in ("parametrize", "usefixtures", "asyncio")
        ]
        self._emit(ScenarioEvent(
            "test_start",
            nodeid=item.nodeid,
            name=item.name,
            markers=markers or None,
        ))

    def pytest_runtest_makereport(self, item, call):
        if not (call.excinfo or call.when == "call"):
            return
        duration = round(time.time() - self._started, 3) if self._started else None
        if call.excinfo:
            outcome = "skipped" if call.excinfo.errisinstance(pytest.skip.Exception) else "failed"
            message = str(call.excinfo.value).replace("\n", "\n" + " " * 5)
        else:
            outcome, message = "passed", None
        self._emit(ScenarioEvent(
            "test_end",
            nodeid=item.nodeid,
            name=item.name,
            outcome=outcome,
            duration_seconds=duration,
            message=message,
        ))

    # context is kept until logfinish so artifacts written by fixture
    # teardown are attributed to their test
    def pytest_runtest_logfinish(self, nodeid, location):
        self._nodeid = None
        self._name = None
        self._started = None

    def pytest_sessionfinish(self, session, exitstatus):
        self._emit(ScenarioEvent(
            "session_end", outcome="passed" if exitstatus == 0 else "failed"
        ))


_current_plugin: Optional[ResultCollectorPlugin] = None


def set_current_plugin(plugin: Optional[ResultCollectorPlugin]):
    global _current_plugin
    _current_plugin = plugin


def log_step(name: str, outcome: str = "passed", message: str = None,
             duration_ms: int = None, username: str = None):
    """Report a scenario step to the active collector, if any."""
    if _current_plugin:
        _current_plugin._emit(_current_plugin._context(ScenarioEvent(
            "step",
            step_name=name,
            outcome=outcome,
            message=message,
            duration_ms=duration_ms,
            username=username,
        )))


def log_artifact(path: str, username: str = None):
    """Report a file written for the running scenario (e.g. dumped session logs)."""
    if _current_plugin:
        _current_plugin._emit(_current_plugin._context(ScenarioEvent(
            "artifact",
            artifact=str(path),
            username=username,
        )))
