"""Tests for the recovery-script escalation."""

import os
import stat

from heartwatch.escalation import ScriptEscalation


def _write_script(directory, name, body, executable=True):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    if executable:
        path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


class TestCandidates:
    def test_only_prefixed_files_in_order(self, tmp_path):
        _write_script(tmp_path, "00b-restart", "true")
        _write_script(tmp_path, "00a-notify", "true")
        _write_script(tmp_path, "10-ignored", "true")
        (tmp_path / "00-subdir").mkdir()
        esc = ScriptEscalation(str(tmp_path))
        names = [os.path.basename(p) for p in esc.candidates()]
        assert names == ["00a-notify", "00b-restart"]

    def test_empty_directory(self, tmp_path):
        assert ScriptEscalation(str(tmp_path)).candidates() == []


class TestRun:
    def test_runs_all_scripts(self, tmp_path):
        marker = tmp_path / "ran.txt"
        _write_script(tmp_path, "00a", f"echo a >> {marker}")
        _write_script(tmp_path, "00b", f"echo b >> {marker}")
        result = ScriptEscalation(str(tmp_path)).run()
        assert result.ran_count == 2
        assert result.last_error is None
        assert marker.read_text().split() == ["a", "b"]

    def test_failure_does_not_stop_others(self, tmp_path):
        marker = tmp_path / "ran.txt"
        _write_script(tmp_path, "00a", "exit 3")
        _write_script(tmp_path, "00b", f"echo b >> {marker}")
        result = ScriptEscalation(str(tmp_path)).run()
        assert result.ran_count == 2
        assert "00a" in result.last_error
        assert marker.read_text().strip() == "b"

    def test_not_executable_is_reported(self, tmp_path):
        _write_script(tmp_path, "00a", "true", executable=False)
        result = ScriptEscalation(str(tmp_path)).run()
        assert result.ran_count == 1
        assert result.last_error.startswith("00a")

    def test_timeout_is_reported(self, tmp_path):
        _write_script(tmp_path, "00slow", "exec sleep 5")
        result = ScriptEscalation(str(tmp_path), timeout=0.2).run()
        assert result.ran_count == 1
        assert "timed out" in result.last_error

    def test_missing_directory(self, tmp_path):
        result = ScriptEscalation(str(tmp_path / "nope")).run()
        assert result.ran_count == 0
        assert result.last_error is not None
