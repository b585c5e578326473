"""CLI wrapper: Start the development server against a local backend."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "goodtraining.main:app",
            "--reload",
            "--host",
            "127.0.0.1",
            "--port",
            "3000",
            *sys.argv[1:],
        ],
        env={"APP_ENV": "local", "OTEL_ENABLED": "false"},
    )
