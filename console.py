"""Terminal output helpers shared by the session loggers and the runner."""

import os

# ANSI color codes
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
BRIGHT_GREEN = "\033[92m"
BRIGHT_RED = "\033[91m"
BRIGHT_CYAN = "\033[96m"

STDOUT = 1

_force_color = None


def use_color() -> bool:
    """Colors are on for a tty unless NO_COLOR is set or colors are forced."""
    if _force_color is not None:
        return _force_color
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return os.isatty(STDOUT)
    except OSError:
        return False


def force_color(enabled):
    """Force colors on or off; None restores tty detection."""
    global _force_color
    _force_color = enabled


def style(text: str, *codes: str) -> str:
    if not use_color():
        return text
    return f"{''.join(codes)}{text}{RESET}"


def success(text: str) -> str:
    return style(text, BOLD, BRIGHT_GREEN)


def error(text: str) -> str:
    return style(text, BOLD, BRIGHT_RED)


def info(text: str) -> str:
    return style(text, BRIGHT_CYAN)


def label(text: str) -> str:
    return style(text, BOLD, CYAN)


def user(name: str) -> str:
    """Style a simulated user's name."""
    return style(name, BOLD, MAGENTA)


def dim(text: str) -> str:
    return style(text, DIM)


def write(text: str):
    """Write text to the stdout file descriptor, bypassing any sys.stdout replacement."""
    os.write(STDOUT, text.encode())


def writeln(text: str = ""):
    write(f"{text}\n")


def log(text: str, flush: bool = True):
    print(text, flush=flush)
