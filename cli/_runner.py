"""
Shared CLI runner helper.

Every console script shells out to a tool in the current interpreter's
environment and exits with that tool's status.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence

# Source trees checked by lint and format
SOURCE_PATHS = ("goodtraining", "tests", "cli")


def run(cmd: Sequence[str], env: Mapping[str, str] | None = None) -> None:
    """
    Run a command and propagate its exit code.

    Args:
        cmd: Command and arguments to execute
        env: Variables set on top of the current environment. Values already
            exported by the caller win, so a shell can still override them.

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"], env={"APP_ENV": "test"})
    """
    merged = dict(env or {})
    merged.update(os.environ)
    result = subprocess.run(cmd, env=merged)
    raise SystemExit(result.returncode)
