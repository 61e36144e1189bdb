from contextlib import contextmanager
import time

from riot_tests.plugin import log_step


@contextmanager
def step(description: str, log=None, continue_on_failure: bool = False):
    """Context manager for a timed scenario step.

    Args:
        description: Human-readable step description
        log: Optional session Logger echoing "description ... done"
        continue_on_failure: If True, don't re-raise exceptions
    """
    username = getattr(log, "username", None)
    if log is not None:
        log.step(description)
    start_time = time.time()

    try:
        yield
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        message = str(e).replace("\n", f"\n{' ' * 6}")
        err = f"{type(e).__name__}: {message}" if message else type(e).__name__
        if log is not None:
            log.done("failed")
        log_step(description, "failed", err, duration_ms=duration_ms, username=username)
        if not continue_on_failure:
            raise
    else:
        duration_ms = int((time.time() - start_time) * 1000)
        if log is not None:
            log.done()
        log_step(description, "passed", duration_ms=duration_ms, username=username)


def info(message: str, username: str = None):
    """Log an informational step with no timing."""
    log_step(message, "passed", username=username)
