"""Tests for RunState."""

from __future__ import annotations

from pathlib import Path

import pytest

from mepris.config.models import Defaults, Script, Step
from mepris.exceptions import ResumeError
from mepris.expressions import Condition
from mepris.resume.data import STATE_VERSION, RunState
from mepris.system.shell import Shell


def make_state(tmp_path: Path, ids: tuple[str, ...] = ("b", "c"), failed: str = "b") -> RunState:
    source = tmp_path / "machine.yaml"
    return RunState(
        config_path=source,
        steps=tuple(Step(id=step_id, source_file=source, script=Script("true")) for step_id in ids),
        failed_step_id=failed,
        defaults=Defaults(linux_shell=Shell.BASH),
        tags="dev && !gui",
        step_ids=("b", "c"),
        interactive=True,
    )


class TestRunStateSerialization:
    """Tests for to_dict/from_dict."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Every field survives serialization."""
        state = make_state(tmp_path)

        restored = RunState.from_dict(state.to_dict())

        assert restored == state
        assert restored.config_dir == tmp_path

    def test_os_condition_restored(self, tmp_path: Path) -> None:
        """Conditions are stored as text and parsed again."""
        source = tmp_path / "machine.yaml"
        step = Step(id="a", source_file=source, os=Condition.parse("%arch"))
        state = RunState(config_path=source, steps=(step,), failed_step_id="a")

        assert RunState.from_dict(state.to_dict()).steps[0].os == Condition.parse("%arch")

    def test_unsupported_version(self, tmp_path: Path) -> None:
        """States from another layout version are rejected."""
        data = make_state(tmp_path).to_dict()
        data["version"] = STATE_VERSION + 1

        with pytest.raises(ResumeError, match="Unsupported resume state version"):
            RunState.from_dict(data)


class TestRunStateValidate:
    """Tests for RunState.validate."""

    def test_valid(self, tmp_path: Path) -> None:
        """A state whose first step failed is valid."""
        make_state(tmp_path).validate()

    def test_no_steps(self, tmp_path: Path) -> None:
        """A state without remaining steps is inconsistent."""
        with pytest.raises(ResumeError, match="no remaining steps"):
            make_state(tmp_path, ids=()).validate()

    def test_failed_step_not_first(self, tmp_path: Path) -> None:
        """The failed step must be retried first."""
        with pytest.raises(ResumeError, match="not the first remaining step"):
            make_state(tmp_path, failed="c").validate()

    def test_failed_step_missing(self, tmp_path: Path) -> None:
        """The failed step must be among the remaining steps."""
        with pytest.raises(ResumeError, match="not among the remaining steps"):
            make_state(tmp_path, failed="x").validate()

    def test_duplicate_ids(self, tmp_path: Path) -> None:
        """Remaining step ids are unique."""
        with pytest.raises(ResumeError, match="repeats step ids: b"):
            make_state(tmp_path, ids=("b", "b")).validate()

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Steps whose directory was removed cannot be resumed."""
        source = tmp_path / "gone" / "machine.yaml"
        state = RunState(
            config_path=source,
            steps=(Step(id="a", source_file=source),),
            failed_step_id="a",
        )

        with pytest.raises(ResumeError, match="no longer exists"):
            state.validate()
