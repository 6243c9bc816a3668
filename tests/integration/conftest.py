"""
Integration test fixtures for Helm.

Provides fixtures specific to integration testing:
- A CLI runner bound to a temporary default database
"""

import json
import sys
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import patch

import pytest
import structlog

from helm.cli import main


# ─────────────────────────────────────────────────────────────────────────────
# Logging Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def stderr_logging(capsys) -> Generator[None, None, None]:
    """Send structlog output to the captured stderr, leaving stdout for results.

    Configured after capsys starts so the logger writes to the captured
    stream; defaults are restored afterwards.
    """
    structlog.configure(
        processors=[structlog.processors.add_log_level, structlog.dev.ConsoleRenderer(colors=False)],
        # Resolve sys.stderr per logger: capsys only swaps it in during the test call
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# ─────────────────────────────────────────────────────────────────────────────
# CLI Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def run_cli(default_db, capsys, stderr_logging) -> Callable[..., tuple[int, dict[str, Any]]]:
    """Run the helm CLI and decode its JSON output.

    setup_logging() is replaced by the stderr_logging configuration so no
    root handler outlives the captured stream.

    Returns:
        Callable taking CLI arguments, returning (exit code, parsed result)
    """

    def _run(*argv: str) -> tuple[int, dict[str, Any]]:
        code = 0
        with patch("helm.cli.setup_logging"):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code or 0
        out = capsys.readouterr().out
        return code, json.loads(out)

    return _run
