"""Runs git as a subprocess and captures the result.

Git is always run non-interactively: a push that needs credentials fails
with a message instead of waiting on a prompt nobody will answer.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

NONINTERACTIVE_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_ASKPASS": "echo",
    "GIT_EDITOR": "true",
}


@dataclass
class GitResult:
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """stdout then stderr, stripped, for showing to the operator."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def run_git(args: list[str], cwd: Path, timeout: int = DEFAULT_TIMEOUT) -> GitResult:
    """Run `git -C cwd <args>`.

    Never raises for git's own failures: a non-zero exit, a timeout
    (returncode -1, timed_out set) and a missing git binary (returncode 127)
    all come back as a GitResult.
    """
    cmd = ["git", "-C", str(cwd), *args]
    logger.debug(f"[GIT] {' '.join(args)}")
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env={**os.environ, **NONINTERACTIVE_ENV},
        )
    except subprocess.TimeoutExpired:
        return GitResult(-1, "", f"git {args[0]} timed out after {timeout}s", timed_out=True)
    except FileNotFoundError:
        return GitResult(127, "", "git executable not found")

    if proc.returncode != 0:
        logger.debug(f"[GIT] {args[0]} exited {proc.returncode}: {proc.stderr.strip()}")
    return GitResult(proc.returncode, proc.stdout, proc.stderr)
