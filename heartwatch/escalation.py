"""Recovery scripts run when the deadline checker escalates."""

import logging
import os
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SCRIPT_PREFIX = "00"


@dataclass(frozen=True)
class EscalationResult:
    ran_count: int
    last_error: str | None = None


class ScriptEscalation:
    """Runs every ``00*`` file in a directory, in name order.

    Best effort: a failing script is logged and the remaining scripts still
    run. ``run`` never raises.
    """

    def __init__(self, script_dir: str, timeout: float = 0):
        self._script_dir = script_dir
        self._timeout = timeout if timeout > 0 else None

    @property
    def script_dir(self) -> str:
        return self._script_dir

    def candidates(self) -> list[str]:
        """Return full paths of the scripts that an escalation would run."""
        names = sorted(
            name for name in os.listdir(self._script_dir)
            if name.startswith(SCRIPT_PREFIX)
        )
        return [
            os.path.join(self._script_dir, name) for name in names
            if os.path.isfile(os.path.join(self._script_dir, name))
        ]

    def run(self) -> EscalationResult:
        try:
            scripts = self.candidates()
        except OSError as e:
            logger.error("Error reading script directory %s: %s", self._script_dir, e)
            return EscalationResult(ran_count=0, last_error=str(e))

        if not scripts:
            logger.warning("No recovery scripts found in %s", self._script_dir)

        ran = 0
        last_error = None
        for path in scripts:
            name = os.path.basename(path)
            try:
                subprocess.run([path], check=True, timeout=self._timeout,
                               stdin=subprocess.DEVNULL)
            except subprocess.CalledProcessError as e:
                last_error = f"{name}: exit status {e.returncode}"
                logger.error("Error running script %s: exit status %d", name, e.returncode)
            except subprocess.TimeoutExpired:
                last_error = f"{name}: timed out after {self._timeout}s"
                logger.error("Script %s timed out after %ss", name, self._timeout)
            except OSError as e:
                last_error = f"{name}: {e}"
                logger.error("Error running script %s: %s", name, e)
            else:
                logger.info("Successfully ran script %s", name)
            ran += 1
        return EscalationResult(ran_count=ran, last_error=last_error)
