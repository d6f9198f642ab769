"""Test for the logging functions."""

# clean

import os

import pytest

from cspsim import log


@pytest.fixture
def fresh_log(monkeypatch):
    """Restores the module state of the log after the test."""
    monkeypatch.setattr(log, "LOGGING_PATH", None)
    monkeypatch.setattr(log, "PRE", True)
    monkeypatch.setattr(log, "PRE_LOGS", "")
    monkeypatch.setattr(log, "PRE_PROFILE", "")
    monkeypatch.setattr(log, "LOGGING_LEVEL", log.LogPrio.INFORMATION)


@pytest.mark.base
def test_messages_are_printed_by_priority(fresh_log, capsys):  # noqa: unused-argument
    """Only messages up to the logging level reach the console."""
    log.warning("careful")
    log.debug("details")
    printed = capsys.readouterr().out
    assert "WRN:careful" in printed
    assert "details" not in printed
    # kept for the log file nevertheless
    assert "details" in log.PRE_LOGS


@pytest.mark.base
def test_pre_logs_are_moved_to_the_log_file(fresh_log, tmp_path):  # noqa: unused-argument
    """Messages from before the initialization end up in the log file."""
    log.information("before")
    log.profile("Executing something took 0.01 seconds")
    log.initialize_properly(str(tmp_path))
    log.information("after")

    assert not log.PRE
    with open(os.path.join(tmp_path, "cspsim_simulation.log"), encoding="utf-8") as logfile:
        content = logfile.read()
    assert "before" in content
    assert "after" in content
    with open(os.path.join(tmp_path, "profiling_timeuse.log"), encoding="utf-8") as profile_file:
        assert "took 0.01 seconds" in profile_file.read()


@pytest.mark.base
def test_pre_logs_keep_only_the_latest_messages(fresh_log, monkeypatch):  # noqa: unused-argument
    """Without a log directory the buffer is limited and drops the oldest lines."""
    monkeypatch.setattr(log, "PRE_LOGS_MAX_LENGTH", 100)
    for number in range(50):
        log.debug(f"message {number}")
    assert len(log.PRE_LOGS) <= 100
    assert log.PRE_LOGS.endswith("message 49\n")
    assert "message 0\n" not in log.PRE_LOGS
    for line in log.PRE_LOGS.splitlines():
        assert line.startswith("message ")
