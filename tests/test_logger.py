"""Unit tests for Logger and the step helpers."""

import pytest

from riot_tests.logger import Logger
from riot_tests.plugin import ResultCollectorPlugin, set_current_plugin
from riot_tests.step import info, step


class TestLogger:

    def test_log_writes_tagged_line(self, capfd) -> None:
        Logger("alice").log("joined", "!room:localhost")
        assert capfd.readouterr().out == " * alice joined !room:localhost\n"

    def test_step_and_done_share_a_line(self, capfd) -> None:
        Logger("bob").step("sends a message").done()
        assert capfd.readouterr().out == " * bob sends a message ... done\n"

    def test_loggers_are_labelled_independently(self, capfd) -> None:
        Logger("alice").log("one")
        Logger("bob").log("two")
        assert capfd.readouterr().out.splitlines() == [" * alice one", " * bob two"]


class TestStep:

    def test_passed_step_is_reported(self, capfd) -> None:
        plugin = ResultCollectorPlugin()
        set_current_plugin(plugin)
        with step("Open room", log=Logger("alice")):
            pass
        event = plugin.results[-1]
        assert event.event_type == "step"
        assert event.outcome == "passed"
        assert event.step_name == "Open room"
        assert event.username == "alice"
        assert capfd.readouterr().out == " * alice Open room ... done\n"

    def test_failed_step_reraises_and_reports(self, capfd) -> None:
        plugin = ResultCollectorPlugin()
        set_current_plugin(plugin)
        with pytest.raises(AssertionError):
            with step("Verify tile", log=Logger("alice")):
                assert False, "tile missing"
        event = plugin.results[-1]
        assert event.outcome == "failed"
        assert event.message.startswith("AssertionError: tile missing")
        assert capfd.readouterr().out.endswith("... failed\n")

    def test_continue_on_failure_swallows(self) -> None:
        plugin = ResultCollectorPlugin()
        set_current_plugin(plugin)
        with step("Optional check", continue_on_failure=True):
            raise ValueError("nope")
        assert plugin.results[-1].outcome == "failed"

    def test_step_without_plugin_is_silent(self, capfd) -> None:
        with step("Nothing listens"):
            pass
        info("still nothing")
        assert capfd.readouterr().out == ""

    def test_info_is_reported_without_duration(self) -> None:
        plugin = ResultCollectorPlugin()
        set_current_plugin(plugin)
        info("Server reachable", username="alice")
        event = plugin.results[-1]
        assert event.step_name == "Server reachable"
        assert event.duration_ms is None
        assert event.to_dict()["username"] == "alice"
