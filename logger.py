"""Per-user diagnostic output for multi-user scenarios."""

from riot_tests import console


class Logger:
    """Writes lines tagged with the username of the simulated user.

    Every call writes immediately; nothing is buffered or filtered.
    """

    def __init__(self, username: str):
        self.username = username

    def _prefix(self) -> str:
        return f" * {console.user(self.username)}"

    def log(self, *parts):
        text = " ".join(str(part) for part in parts)
        console.writeln(f"{self._prefix()} {text}")
        return self

    def step(self, description: str):
        """Start a progress line; finish it with done()."""
        console.write(f"{self._prefix()} {description} ... ")
        return self

    def done(self, status: str = "done"):
        console.writeln(status)
        return self
