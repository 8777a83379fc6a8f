"""Tests for the subprocess wrapper."""

import sys

from kee.runner import SPAWN_FAILED, CommandRunner


def test_run_captured_returns_status_and_output():
    status, output = CommandRunner().run_captured(
        sys.executable, ["-c", "import os; print(os.environ['KEE_TEST'])"], env={"KEE_TEST": "hello"}
    )

    assert status == 0
    assert output.strip() == "hello"


def test_run_interactive_returns_exit_code():
    status = CommandRunner().run_interactive(sys.executable, ["-c", "raise SystemExit(3)"])

    assert status == 3


def test_missing_executable_is_a_failed_status():
    runner = CommandRunner()

    assert runner.run_interactive("kee-no-such-binary", []) == SPAWN_FAILED
    assert runner.run_captured("kee-no-such-binary", ["--version"]) == (SPAWN_FAILED, "")
