"""Step selection and execution.

Example:
    ```python
    from mepris.runner import RunContext, RunOptions, StepExecutor

    context = RunContext.build(config.root_dir)
    executor = StepExecutor(context, store, aliases=aliases)
    result = await executor.execute(config.root_file, config.steps, config.defaults, RunOptions())
    ```
"""

from __future__ import annotations

from mepris.runner.context import DOTENV_FILE_NAME, RunContext, load_dotenv_file
from mepris.runner.executor import StepExecutor, missing_environment
from mepris.runner.interactive import MAX_SCRIPT_LINES, Decision, StepPrompter
from mepris.runner.models import (
    PackagePlan,
    RunOptions,
    RunResult,
    SkipReason,
    StepOutcome,
    StepPlan,
    StepStatus,
)
from mepris.runner.reporter import ProgressReporter, print_dry_run_summary
from mepris.runner.scripts import ScriptChecker, script_digest
from mepris.runner.selection import (
    FilterResult,
    Selection,
    filter_by_ids,
    filter_by_os,
    filter_by_tags,
    filter_from_step,
    select_steps,
)

__all__ = [
    "DOTENV_FILE_NAME",
    "Decision",
    "FilterResult",
    "MAX_SCRIPT_LINES",
    "PackagePlan",
    "ProgressReporter",
    "RunContext",
    "RunOptions",
    "RunResult",
    "ScriptChecker",
    "Selection",
    "SkipReason",
    "StepExecutor",
    "StepOutcome",
    "StepPlan",
    "StepPrompter",
    "StepStatus",
    "filter_by_ids",
    "filter_by_os",
    "filter_by_tags",
    "filter_from_step",
    "load_dotenv_file",
    "missing_environment",
    "print_dry_run_summary",
    "script_digest",
    "select_steps",
]
