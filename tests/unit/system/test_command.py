"""Tests for CommandRunner."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mepris.exceptions import WorkingDirectoryError
from mepris.system.command import CommandRunner
from mepris.system.models import CommandResult


@pytest.fixture
def mock_process() -> MagicMock:
    """Create a mock subprocess."""
    process = MagicMock()
    process.returncode = 0
    process.communicate = AsyncMock(return_value=(b"stdout output", b""))
    process.wait = AsyncMock(return_value=0)
    return process


class TestRun:
    """Tests for CommandRunner.run."""

    async def test_captures_output(self, mock_process: MagicMock) -> None:
        """stdout and stderr are captured and decoded."""
        mock_process.communicate = AsyncMock(return_value=(b"out", b"err"))

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=mock_process)):
            result = await CommandRunner().run(["some", "command"])

        assert isinstance(result, CommandResult)
        assert result.success is True
        assert result.stdout == "out"
        assert result.stderr == "err"
        assert result.duration_ms >= 0

    async def test_passes_cwd_and_merged_env(self, mock_process: MagicMock, tmp_path: Path) -> None:
        """Per-call env is merged over the runner env and os.environ."""
        create = AsyncMock(return_value=mock_process)

        with patch.dict("os.environ", {"BASE": "1"}), patch("asyncio.create_subprocess_exec", create):
            await CommandRunner(env={"RUNNER": "2"}).run(["true"], cwd=tmp_path, env={"CALL": "3"})

        kwargs = create.call_args.kwargs
        assert kwargs["cwd"] == tmp_path
        assert kwargs["env"]["BASE"] == "1"
        assert kwargs["env"]["RUNNER"] == "2"
        assert kwargs["env"]["CALL"] == "3"

    async def test_missing_executable(self) -> None:
        """A missing executable yields exit code 127 instead of raising."""
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError())):
            result = await CommandRunner().run(["no-such-program"])

        assert result.returncode == 127
        assert "no-such-program" in result.stderr

    async def test_missing_working_directory(self) -> None:
        """WorkingDirectoryError names the missing directory."""
        with pytest.raises(WorkingDirectoryError) as exc_info:
            await CommandRunner().run(["echo"], cwd=Path("/nonexistent/path/xyz"))

        assert exc_info.value.path == "/nonexistent/path/xyz"


class TestExecute:
    """Tests for CommandRunner.execute."""

    async def test_forwards_chunks(self, mock_process: MagicMock) -> None:
        """Output is forwarded in arrival order, without waiting for newlines."""
        mock_process.stdout = MagicMock()
        mock_process.stdout.read = AsyncMock(side_effect=[b"Password: ", b"ok\n", b""])
        chunks: list[str] = []

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=mock_process)):
            result = await CommandRunner().execute(["sudo", "true"], on_output=chunks.append)

        assert chunks == ["Password: ", "ok\n"]
        assert result.returncode == 0

    async def test_split_utf8_sequence(self, mock_process: MagicMock) -> None:
        """A multi-byte character split across reads is decoded whole."""
        encoded = "é".encode()
        mock_process.stdout = MagicMock()
        mock_process.stdout.read = AsyncMock(side_effect=[encoded[:1], encoded[1:], b""])
        chunks: list[str] = []

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=mock_process)):
            await CommandRunner().execute(["echo"], on_output=chunks.append)

        assert "".join(chunks) == "é"

    async def test_nonzero_exit(self, mock_process: MagicMock) -> None:
        """The exit code of the process is returned."""
        mock_process.stdout = MagicMock()
        mock_process.stdout.read = AsyncMock(return_value=b"")
        mock_process.wait = AsyncMock(return_value=3)

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=mock_process)):
            result = await CommandRunner().execute(["false"])

        assert result.success is False
        assert result.describe_exit() == "exited with code 3"

    async def test_missing_executable(self) -> None:
        """A missing executable yields exit code 127."""
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError())):
            result = await CommandRunner().execute(["pwsh", "-c", "x"])

        assert result.returncode == 127


class TestCommandResult:
    """Tests for CommandResult."""

    def test_output_combines_streams(self) -> None:
        """output joins stdout and stderr."""
        assert CommandResult(0, stdout="a", stderr="b").output == "a\nb"
        assert CommandResult(0, stderr="b").output == "b"

    def test_describe_signal(self) -> None:
        """Negative return codes describe the terminating signal."""
        assert CommandResult(-9).describe_exit() == "terminated by signal 9"
