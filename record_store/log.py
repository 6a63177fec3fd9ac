"""
Record store - Logging Module
Timestamped activity lines for collections and persistence strategies.

Each line names its source (a collection name, or a strategy such as
``jsonl``) so the log of several collections sharing one strategy can be
read apart::

    [2026-10-19 13:10:02] [users] save_one[1] scope='admins' started
"""
import sys
from datetime import datetime

from . import conf

# =============================================================================
# CONFIGURATION
# =============================================================================

LOG = conf.LOG_ENABLED
LOG_TO_STDERR = conf.LOG_TO_STDERR
LOG_FILE = conf.LOG_FILE
SESSION_HEADER = "--- record store session started ---"
first_line = True

# =============================================================================
# LOGGING
# =============================================================================

def format_line(message: str, source: str | None = None) -> str:
    """Build one log line: timestamp, optional ``[source]``, message."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    prefix = f"[{timestamp}]"
    if source:
        prefix += f" [{source}]"
    return f"{prefix} {message}\n"


def _write(lines: list[str]) -> None:
    if LOG_TO_STDERR:
        sys.stderr.writelines(lines)
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.writelines(lines)


def store_log(message: str, source: str | None = None) -> None:
    """Append a line to LOG_FILE if LOG is enabled.

    The first line of a process is preceded by a session header.
    """
    global first_line
    if not LOG:
        return
    lines = [format_line(message, source)]
    if first_line:
        first_line = False
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        lines.insert(0, format_line(SESSION_HEADER))
    _write(lines)


def store_log_lines(source: str | None = None) -> list[str]:
    """Lines of LOG_FILE, optionally only those written for ``source``."""
    if not LOG_FILE.exists():
        return []
    lines = LOG_FILE.read_text(encoding="utf-8").splitlines()
    if source is None:
        return lines
    tag = f"] [{source}] "
    return [line for line in lines if tag in line]


def store_log_print(source: str | None = None) -> None:
    """Print the log (or one source's lines) to stdout."""
    if not LOG_FILE.exists():
        print("[record store log file does not exist]")
        return
    lines = store_log_lines(source)
    if lines:
        print("\n".join(lines))
    else:
        print("[record store log is empty]")


def store_log_clear() -> None:
    """Delete the log file."""
    if LOG_FILE.exists():
        LOG_FILE.unlink()
