"""Tests for RunContext and .env loading."""

from __future__ import annotations

import pytest

from mepris.runner.context import RunContext, load_dotenv_file
from mepris.system.os_info import OsInfo

LINUX = OsInfo(platform="linux", id="fedora")


class TestLoadDotenvFile:
    """Tests for load_dotenv_file."""

    def test_missing_file(self, tmp_path) -> None:
        assert load_dotenv_file(tmp_path) == {}

    def test_values(self, tmp_path) -> None:
        """Quoted values and comments follow dotenv rules."""
        (tmp_path / ".env").write_text('# tokens\nGITHUB_TOKEN="abc 123"\nEDITOR=nvim\n')

        assert load_dotenv_file(tmp_path) == {"GITHUB_TOKEN": "abc 123", "EDITOR": "nvim"}

    def test_key_without_value_ignored(self, tmp_path) -> None:
        """A bare key does not define the variable."""
        (tmp_path / ".env").write_text("DEFINED=1\nBARE\n")

        assert load_dotenv_file(tmp_path) == {"DEFINED": "1"}


class TestRunContext:
    """Tests for RunContext.build."""

    def test_dotenv_overrides_environment(self, tmp_path) -> None:
        """.env values win over the process environment."""
        (tmp_path / ".env").write_text("EDITOR=nvim\n")

        context = RunContext.build(
            tmp_path, os_info=LINUX, environ={"EDITOR": "vi", "HOME": "/home/me"}
        )

        assert context.environment["EDITOR"] == "nvim"
        assert context.environment["HOME"] == "/home/me"

    def test_is_set(self, tmp_path) -> None:
        """Empty values count as set."""
        context = RunContext.build(tmp_path, os_info=LINUX, environ={"EMPTY": ""})

        assert context.is_set("EMPTY")
        assert not context.is_set("MISSING")

    def test_platform(self, tmp_path) -> None:
        context = RunContext.build(tmp_path, os_info=LINUX, environ={})

        assert context.platform == "linux"
        assert context.os_info is LINUX

    def test_environment_is_read_only(self, tmp_path) -> None:
        context = RunContext.build(tmp_path, os_info=LINUX, environ={"A": "1"})

        with pytest.raises(TypeError):
            context.environment["A"] = "2"  # type: ignore[index]
        assert context.environment["A"] == "1"
