"""
Tests for validating, materialising and interpreting a single run.
"""

from __future__ import annotations

import logging

import pytest

from compilespace.executor import ExecutionResult
from compilespace.handler import (
    NO_OUTPUT,
    ExecutionFailedError,
    ExecutionHandler,
    UnsupportedLanguageError,
)
from compilespace.profiles import PROFILES, get_profile

from conftest import RecordingExecutor


def test_unknown_language_rejected_before_side_effects(workspace, recording_executor):
    handler = ExecutionHandler(recording_executor, workspace)
    with pytest.raises(UnsupportedLanguageError) as excinfo:
        handler.execute("ruby", "puts 1")
    assert excinfo.value.language == "ruby"
    assert recording_executor.calls == []
    assert list(workspace.base_dir.iterdir()) == []


@pytest.mark.parametrize("language", sorted(PROFILES))
def test_resolve_uses_profile_table(workspace, recording_executor, language):
    handler = ExecutionHandler(recording_executor, workspace)
    assert handler.resolve(language) is get_profile(language)


def test_get_profile_unknown_language():
    assert get_profile("ruby") is None


def test_run_logs_source_size_in_bytes(workspace, recording_executor, caplog):
    caplog.set_level(logging.INFO, logger="compilespace.handler")
    handler = ExecutionHandler(recording_executor, workspace)
    handler.execute("python", "print('é')")
    assert "executing python (11 bytes)" in caplog.text


def test_disabled_language_rejected(workspace, recording_executor):
    handler = ExecutionHandler(recording_executor, workspace, allowed_langs=["python"])
    with pytest.raises(UnsupportedLanguageError):
        handler.execute("cpp", "int main() {}")
    assert recording_executor.calls == []


@pytest.mark.parametrize("language", sorted(PROFILES))
def test_source_written_verbatim_before_invocation(workspace, recording_executor, language):
    source = "line one\r\n\tindented ünïcode\n\n// trailing spaces   "
    handler = ExecutionHandler(recording_executor, workspace)
    handler.execute(language, source)

    profile, run_dir, _ = recording_executor.calls[0]
    assert profile is PROFILES[language]
    assert run_dir.parent == workspace.base_dir
    assert recording_executor.sources == [source.encode("utf-8")]


def test_run_directory_removed_after_run(workspace, recording_executor):
    handler = ExecutionHandler(recording_executor, workspace)
    handler.execute("python", "print(1)")
    _, run_dir, _ = recording_executor.calls[0]
    assert not run_dir.exists()


def test_run_directory_removed_when_executor_raises(workspace):
    class Exploding(RecordingExecutor):
        def execute(self, profile, run_dir, run_id):
            super().execute(profile, run_dir, run_id)
            raise RuntimeError("boom")

    executor = Exploding()
    handler = ExecutionHandler(executor, workspace)
    with pytest.raises(RuntimeError):
        handler.execute("python", "print(1)")
    assert list(workspace.base_dir.iterdir()) == []


def test_repeated_submissions_run_independently(workspace):
    executor = RecordingExecutor(ExecutionResult("2", "", 0, 3))
    handler = ExecutionHandler(executor, workspace)

    first = handler.execute("python", "print(1+1)")
    second = handler.execute("python", "print(1+1)")

    assert len(executor.calls) == 2
    first_id, second_id = executor.calls[0][2], executor.calls[1][2]
    assert first_id != second_id
    assert executor.calls[0][1] != executor.calls[1][1]
    assert first == second


def test_success_returns_output_and_null_error(workspace):
    handler = ExecutionHandler(RecordingExecutor(ExecutionResult("2", "", 0, 3)), workspace)
    outcome = handler.execute("python", "print(1+1)")
    assert outcome.output == "2"
    assert outcome.error is None


def test_success_keeps_stderr_as_error(workspace):
    handler = ExecutionHandler(RecordingExecutor(ExecutionResult("out", "warning: x", 0, 3)), workspace)
    outcome = handler.execute("cpp", "int main() {}")
    assert outcome.output == "out"
    assert outcome.error == "warning: x"


def test_empty_output_is_sentinel_not_error(workspace):
    handler = ExecutionHandler(RecordingExecutor(ExecutionResult("", "", 0, 3)), workspace)
    outcome = handler.execute("js", "")
    assert outcome.output == NO_OUTPUT
    assert outcome.error is None


def test_failure_prefers_stderr(workspace):
    result = ExecutionResult("partial", "Traceback: ZeroDivisionError", 1, 3)
    handler = ExecutionHandler(RecordingExecutor(result), workspace)
    with pytest.raises(ExecutionFailedError) as excinfo:
        handler.execute("python", "1/0")
    assert excinfo.value.details == "Traceback: ZeroDivisionError"
    assert excinfo.value.exit_code == 1


def test_failure_falls_back_to_stdout(workspace):
    result = ExecutionResult("Main.java:1: error: ';' expected", "", 1, 3)
    handler = ExecutionHandler(RecordingExecutor(result), workspace)
    with pytest.raises(ExecutionFailedError) as excinfo:
        handler.execute("java", "class Main {")
    assert excinfo.value.details == "Main.java:1: error: ';' expected"


def test_timeout_is_a_failure(workspace):
    result = ExecutionResult("", "Execution timed out after 5 seconds.", -9, 5000, timed_out=True)
    handler = ExecutionHandler(RecordingExecutor(result), workspace)
    with pytest.raises(ExecutionFailedError) as excinfo:
        handler.execute("python", "while True: pass")
    assert excinfo.value.exit_code == -9
    assert "timed out" in excinfo.value.details


def test_write_failure_propagates(workspace, recording_executor, monkeypatch):
    def fail(*args, **kwargs):
        raise PermissionError("read-only file system")

    monkeypatch.setattr(workspace, "write_source", fail)
    handler = ExecutionHandler(recording_executor, workspace)
    with pytest.raises(PermissionError):
        handler.execute("python", "print(1)")
    assert recording_executor.calls == []
