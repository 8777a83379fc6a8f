"""Run external commands (the AWS CLI, the user's shell)."""

import logging
import os
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)

# Exit status reported when the executable could not be started at all
SPAWN_FAILED = 127


def _merged_env(env: Optional[dict]) -> Optional[dict]:
    if not env:
        return None
    merged = os.environ.copy()
    merged.update(env)
    return merged


class CommandRunner:
    """Thin wrapper over subprocess so callers only deal with exit codes."""

    def run_interactive(self, cmd: str, args: list[str], env: Optional[dict] = None) -> int:
        """Run a command attached to the current terminal and wait for it."""
        logger.debug("Running %s %s", cmd, " ".join(args))
        try:
            result = subprocess.run([cmd, *args], env=_merged_env(env))
        except OSError as e:
            logger.debug("Could not start %s: %s", cmd, e)
            return SPAWN_FAILED
        return result.returncode

    def run_captured(
        self, cmd: str, args: list[str], env: Optional[dict] = None
    ) -> tuple[int, str]:
        """Run a command with its output captured instead of shown."""
        logger.debug("Running %s %s (captured)", cmd, " ".join(args))
        try:
            result = subprocess.run(
                [cmd, *args],
                capture_output=True,
                text=True,
                env=_merged_env(env),
            )
        except OSError as e:
            logger.debug("Could not start %s: %s", cmd, e)
            return SPAWN_FAILED, ""
        return result.returncode, result.stdout
