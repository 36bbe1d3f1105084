"""Tests for subprocess/HTTP collaborators and file helpers."""

import subprocess
import sys
from unittest.mock import patch

import httpx
import pytest

from bootstrapcore.errors import CommandError, StepError
from bootstrapcore.files import atomic_write, read_os_release
from bootstrapcore.shell import command_exists, fetch, run_command


class TestRunCommand:

    def test_success_returns_output(self):
        result = run_command([sys.executable, "-c", "print('hello')"])
        assert result.stdout.strip() == "hello"

    def test_stdin_and_env(self):
        result = run_command(
            [sys.executable, "-c", "import os, sys; print(sys.stdin.read() + os.environ['X'])"],
            input_text="a",
            env={"X": "b"},
        )
        assert result.stdout.strip() == "ab"

    def test_stdin_closed_without_input(self):
        result = run_command([sys.executable, "-c", "import sys; print(repr(sys.stdin.read()))"])
        assert result.stdout.strip() == "''"

    def test_stdin_passed_to_subprocess(self):
        with patch("bootstrapcore.shell.subprocess.run") as run:
            run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")
            run_command(["apt-get", "upgrade", "-y"])
            assert run.call_args.kwargs["stdin"] is subprocess.DEVNULL
            assert run.call_args.kwargs["input"] is None

            run_command(["sshd", "-t"], input_text="x")
            assert run.call_args.kwargs["stdin"] is None
            assert run.call_args.kwargs["input"] == "x"

    def test_non_zero_exit(self):
        with pytest.raises(CommandError) as excinfo:
            run_command(
                [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
                context="Doing a thing",
            )
        error = excinfo.value
        assert error.returncode == 3
        assert error.stderr == "bad"
        assert "Doing a thing" in str(error)
        assert "Exit code: 3" in str(error)

    def test_missing_executable(self):
        with pytest.raises(CommandError, match="not found"):
            run_command(["definitely-not-a-real-command-xyz"])

    def test_timeout(self):
        with patch(
            "bootstrapcore.shell.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="apt-get", timeout=5),
        ):
            with pytest.raises(CommandError, match="timed out after 5 seconds"):
                run_command(["apt-get", "update"], timeout=5)


class TestCommandExists:

    def test_python_exists(self):
        assert command_exists(sys.executable)

    def test_missing(self):
        assert not command_exists("definitely-not-a-real-command-xyz")


class TestFetch:

    def test_returns_content(self):
        response = httpx.Response(200, content=b"KEY", request=httpx.Request("GET", "https://x"))
        with patch("bootstrapcore.shell.httpx.get", return_value=response) as get:
            assert fetch("https://x", timeout=3) == b"KEY"
        get.assert_called_once_with("https://x", timeout=3, follow_redirects=True)

    def test_http_error(self):
        response = httpx.Response(404, request=httpx.Request("GET", "https://x"))
        with patch("bootstrapcore.shell.httpx.get", return_value=response):
            with pytest.raises(StepError, match="Failed to download https://x"):
                fetch("https://x")

    def test_connection_error(self):
        with patch("bootstrapcore.shell.httpx.get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(StepError):
                fetch("https://x")


class TestFiles:

    def test_atomic_write_backup_and_mode(self, tmp_path):
        path = tmp_path / "conf"
        path.write_text("old\n")
        path.chmod(0o640)

        backup = atomic_write(path, "new\n")

        assert path.read_text() == "new\n"
        assert backup.read_text() == "old\n"
        assert path.stat().st_mode & 0o777 == 0o640

    def test_atomic_write_new_file_with_mode(self, tmp_path):
        path = tmp_path / "sub" / "key.gpg"
        assert atomic_write(path, b"\x00\x01", mode=0o644) is None
        assert path.read_bytes() == b"\x00\x01"
        assert path.stat().st_mode & 0o777 == 0o644

    def test_read_os_release(self, tmp_path):
        path = tmp_path / "os-release"
        path.write_text('# comment\nID=ubuntu\nVERSION_CODENAME="jammy"\n\nPRETTY_NAME=\'Ubuntu 22.04\'\n')
        values = read_os_release(path)
        assert values["ID"] == "ubuntu"
        assert values["VERSION_CODENAME"] == "jammy"
        assert values["PRETTY_NAME"] == "Ubuntu 22.04"
