"""Narrowing a resolved step sequence to the steps a command works on.

Each filter partitions its input into matching and non-matching steps while
preserving order, so callers can report what was left out and why.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mepris.config.models import Step
from mepris.exceptions import ConfigError
from mepris.expressions.evaluator import matches_os, matches_tags, validate_tag_expression
from mepris.expressions.parser import Condition
from mepris.system.os_info import OsInfo

__all__ = [
    "FilterResult",
    "Selection",
    "filter_by_ids",
    "filter_by_os",
    "filter_by_tags",
    "filter_from_step",
    "select_steps",
]


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Steps split by a filter, each side in input order."""

    matching: tuple[Step, ...]
    not_matching: tuple[Step, ...]


@dataclass(frozen=True, slots=True)
class Selection:
    """Outcome of :func:`select_steps`.

    Attributes:
        steps: Steps that remain selected.
        excluded_by_tags: Steps rejected by the tag filter.
        excluded_by_os: Steps whose ``os`` condition does not hold.
        skipped: Steps before the start step.
    """

    steps: tuple[Step, ...]
    excluded_by_tags: tuple[Step, ...] = ()
    excluded_by_os: tuple[Step, ...] = ()
    skipped: tuple[Step, ...] = ()


def filter_by_ids(steps: Sequence[Step], ids: Sequence[str]) -> FilterResult:
    """Keep the steps named in ``ids``, in the order ``ids`` gives them.

    Raises:
        ConfigError: If an id names no step.
    """
    by_id = {step.id: step for step in steps}
    unknown = [step_id for step_id in ids if step_id not in by_id]
    if unknown:
        raise ConfigError(f"Unknown steps: {', '.join(unknown)}", field="step", value=unknown)
    wanted = list(dict.fromkeys(ids))
    return FilterResult(
        matching=tuple(by_id[step_id] for step_id in wanted),
        not_matching=tuple(step for step in steps if step.id not in wanted),
    )


def filter_by_tags(steps: Sequence[Step], condition: Condition) -> FilterResult:
    """Keep the steps whose tags satisfy ``condition``.

    Raises:
        ExpressionValidationError: If the filter uses ``%word`` idents or
            names tags no step in ``steps`` declares.
    """
    validate_tag_expression(condition, known_tags={tag for step in steps for tag in step.tags})
    matching: list[Step] = []
    not_matching: list[Step] = []
    for step in steps:
        (matching if matches_tags(condition, step.tags) else not_matching).append(step)
    return FilterResult(tuple(matching), tuple(not_matching))


def filter_by_os(steps: Sequence[Step], os_info: OsInfo) -> FilterResult:
    """Keep the steps whose ``os`` condition holds; steps without one always match."""
    matching: list[Step] = []
    not_matching: list[Step] = []
    for step in steps:
        (matching if matches_os(step.os, os_info) else not_matching).append(step)
    return FilterResult(tuple(matching), tuple(not_matching))


def filter_from_step(steps: Sequence[Step], start_step_id: str) -> FilterResult:
    """Keep ``start_step_id`` and every step after it.

    Raises:
        ConfigError: If no step has ``start_step_id``.
    """
    for index, step in enumerate(steps):
        if step.id == start_step_id:
            return FilterResult(tuple(steps[index:]), tuple(steps[:index]))
    raise ConfigError(f"Start step '{start_step_id}' not found", field="step", value=start_step_id)


def select_steps(
    steps: Sequence[Step],
    os_info: OsInfo,
    *,
    step_ids: Sequence[str] = (),
    tags: Condition | None = None,
    start_step_id: str | None = None,
) -> Selection:
    """Apply the id, tag, OS and start-step filters in that order.

    Args:
        steps: Resolved steps.
        os_info: Identity of the running system.
        step_ids: Explicit step selection; empty selects every step.
        tags: Tag filter, if any.
        start_step_id: Drop steps before this one.

    Returns:
        The selection with the excluded steps of each filter.
    """
    selected: Sequence[Step] = steps
    if step_ids:
        selected = filter_by_ids(selected, step_ids).matching

    excluded_by_tags: tuple[Step, ...] = ()
    if tags is not None:
        by_tags = filter_by_tags(selected, tags)
        selected, excluded_by_tags = by_tags.matching, by_tags.not_matching

    by_os = filter_by_os(selected, os_info)
    selected = by_os.matching

    skipped: tuple[Step, ...] = ()
    if start_step_id is not None:
        by_start = filter_from_step(selected, start_step_id)
        selected, skipped = by_start.matching, by_start.not_matching

    return Selection(
        steps=tuple(selected),
        excluded_by_tags=excluded_by_tags,
        excluded_by_os=by_os.not_matching,
        skipped=skipped,
    )
