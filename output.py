"""Writers for run reports and captured session logs."""

import asyncio
import json
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from riot_tests.plugin import ScenarioEvent


class JSONLWriter:
    """Writes scenario events to JSONL format as they happen."""

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self._file: Optional[TextIO] = None

    def __enter__(self):
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.output_path, 'w', encoding='utf-8')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._file:
            self._file.close()
            self._file = None

    def write_event(self, event: ScenarioEvent):
        if self._file:
            self._file.write(json.dumps(event.to_dict(), ensure_ascii=False) + '\n')
            self._file.flush()


def generate_output_filename(prefix: str = "scenario_run") -> str:
    """Timestamped output filename, e.g. 'scenario_run_1706367000.jsonl'."""
    timestamp = int(datetime.now().timestamp())
    return f"{prefix}_{timestamp}.jsonl"


def safe_filename(name: str) -> str:
    """Make a pytest node name (e.g. 'test_x[a/b]') usable as a file name."""
    return re.sub(r'[^A-Za-z0-9_.-]+', '_', name).strip('_') or "scenario"


async def write_session_logs(session, directory: Path, name: str, drain_timeout: int = 2000) -> List[Path]:
    """Dump a session's console and network logs into directory.

    Pending network records get up to drain_timeout ms to be formatted
    before the dump. Returns the written paths.
    """
    try:
        await session.network_log.drain(drain_timeout)
    except asyncio.TimeoutError:
        session.log.log(f"network log still formatting after {drain_timeout}ms, dumping what is captured")
    directory.mkdir(parents=True, exist_ok=True)
    prefix = f"{safe_filename(name)}_{safe_filename(session.username)}"
    written = []
    for kind, entries in (
        ("console", session.console_logs()),
        ("network", session.network_logs()),
    ):
        path = directory / f"{prefix}_{kind}.log"
        path.write_text("".join(entries), encoding="utf-8")
        written.append(path)
    return written
