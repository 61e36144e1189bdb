"""Runs the end-to-end scenarios under pytest and reports progress."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

import pytest

from riot_tests.config import get_settings, set_settings
from riot_tests.plugin import ResultCollectorPlugin, set_current_plugin, ScenarioEvent
from riot_tests.output import JSONLWriter, generate_output_filename
from riot_tests import console

SCENARIOS_DIR = Path(__file__).parent / "scenarios"


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunSummary:
    """Summary of a scenario run."""
    run_id: str
    status: RunStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_seconds: float = 0
    current_test: Optional[str] = None
    output_file: Optional[str] = None
    artifacts: Optional[List[str]] = None


def print_event(event: ScenarioEvent, run: RunSummary):
    """Print a scenario event and update the running tallies."""
    if event.event_type == "test_start":
        run.current_test = event.name
        console.writeln(f"\n{console.label('SCENARIO:')} {console.info(event.name)}")

    elif event.event_type == "step":
        icon = console.success("+") if event.outcome == "passed" else console.error("x")
        who = f"{console.user(event.username)} " if event.username else ""
        duration = console.dim(f" ({event.duration_ms}ms)") if event.duration_ms else ""
        console.writeln(f"  [{icon}] {who}{event.step_name}{duration}")
        if event.message and event.outcome == "failed":
            console.writeln(f"{' ' * 6}{console.error(event.message)}")

    elif event.event_type == "artifact":
        run.artifacts = (run.artifacts or []) + [event.artifact]
        console.writeln(f"  {console.dim('log:')} {event.artifact}")

    elif event.event_type == "test_end":
        run.total += 1
        if event.outcome == "skipped":
            run.skipped += 1
            run.current_test = None
            return
        if event.outcome == "passed":
            run.passed += 1
            status = console.success("PASSED")
        else:
            run.failed += 1
            status = console.error("FAILED")
        duration = console.dim(f" ({event.duration_seconds:.2f}s)") if event.duration_seconds else ""
        console.writeln(f"  => {status}{duration}")
        if event.message:
            console.writeln(f"{' ' * 5}{console.error('Error:')} {event.message}")
        run.current_test = None


class ScenarioRunner:
    """Orchestrates scenario execution."""

    def __init__(self, settings=None, scenarios_dir: Path = SCENARIOS_DIR):
        self.settings = settings or get_settings()
        self.scenarios_dir = scenarios_dir
        self._runs: dict[str, RunSummary] = {}

    def create_run(self) -> str:
        run_id = str(uuid.uuid4())
        self._runs[run_id] = RunSummary(
            run_id=run_id,
            status=RunStatus.PENDING,
            started_at=datetime.now(),
        )
        return run_id

    def get_run(self, run_id: str) -> Optional[RunSummary]:
        return self._runs.get(run_id)

    def run(
        self,
        run_id: str,
        markers: Optional[List[str]] = None,
        output_path: Optional[Path] = None,
        extra_args: Optional[List[str]] = None,
    ) -> RunSummary:
        """Run the scenarios and return the summary."""
        run = self._runs.get(run_id)
        if not run:
            raise ValueError(f"Scenario run {run_id} not found")

        run.status = RunStatus.RUNNING
        run.started_at = datetime.now()

        if output_path is None:
            output_path = self.settings.reports_path / generate_output_filename()
        run.output_file = str(output_path)

        pytest_args = [str(self.scenarios_dir), "-p", "no:cacheprovider"]
        if markers:
            pytest_args.extend(["-m", " or ".join(markers)])
        if extra_args:
            pytest_args.extend(extra_args)

        # scenario fixtures read the settings through get_settings()
        set_settings(self.settings)
        with JSONLWriter(output_path) as writer:
            def on_event(event: ScenarioEvent):
                writer.write_event(event)
                print_event(event, run)

            plugin = ResultCollectorPlugin(on_event=on_event)
            set_current_plugin(plugin)
            try:
                exit_code = pytest.main(pytest_args, plugins=[plugin])
            finally:
                set_current_plugin(None)

        run.completed_at = datetime.now()
        run.duration_seconds = (run.completed_at - run.started_at).total_seconds()
        run.status = RunStatus.COMPLETED if exit_code == 0 else RunStatus.FAILED
        return run


def run_scenarios_sync(
    markers: Optional[List[str]] = None,
    settings=None,
    output_path: Optional[Path] = None,
) -> RunSummary:
    """Create a run and execute it in one call."""
    runner = ScenarioRunner(settings)
    run_id = runner.create_run()
    return runner.run(run_id, markers=markers, output_path=output_path)
