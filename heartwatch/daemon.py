"""Detach the process from the terminal by re-executing it in a new session."""

import os
import subprocess
import sys

BACKGROUND_ENV = "WATCHDOG_BACKGROUND"


def is_background() -> bool:
    return os.environ.get(BACKGROUND_ENV) == "1"


def relaunch_argv() -> list[str]:
    """Command line that starts this program again the same way it was started."""
    spec = getattr(sys.modules.get("__main__"), "__spec__", None)
    if spec is not None and spec.name:
        return [sys.executable, "-m", spec.name] + sys.argv[1:]
    return [sys.executable] + sys.argv


def run_in_background(argv: list[str] | None = None) -> int | None:
    """Spawn a detached copy of this program and return its pid.

    Returns None when already running as the detached copy. The caller is
    expected to exit after a successful spawn.
    """
    if is_background():
        return None
    if argv is None:
        argv = relaunch_argv()
    env = dict(os.environ, **{BACKGROUND_ENV: "1"})
    proc = subprocess.Popen(
        argv,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    return proc.pid
