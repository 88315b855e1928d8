"""Step execution.

The executor takes resolved steps through the filters and then, one step at
a time, through ``when`` -> ``pre_script`` -> packages -> ``script``. Every
child process is awaited before the next one starts; there is no
concurrency between or within steps.

A failure stops the run after the remaining steps (starting with the failed
one) have been written to the resume store, so ``mepris resume`` retries the
failed step. A successful real run clears the store. Dry runs classify the
steps the same way but never start install or script processes and never
touch the store.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from mepris.config.aliases import AliasTable
from mepris.config.models import Defaults, Script, Step
from mepris.exceptions import (
    ConfigError,
    MeprisValidationError,
    PackageManagerNotFoundError,
    ResumeError,
    RunnerError,
    ScriptSyntaxError,
    StepFailure,
)
from mepris.logging import bind_context, clear_context, get_logger
from mepris.resume.data import RunState
from mepris.resume.store import ResumeStore
from mepris.runner.context import RunContext
from mepris.runner.interactive import Decision, StepPrompter
from mepris.runner.models import (
    PackagePlan,
    RunOptions,
    RunResult,
    SkipReason,
    StepOutcome,
    StepPlan,
    StepStatus,
)
from mepris.runner.reporter import ProgressReporter
from mepris.runner.scripts import ScriptChecker
from mepris.runner.selection import Selection, select_steps
from mepris.system.command import CommandRunner
from mepris.system.packages import PackageManager, PackageManagerResolver, PackageSource
from mepris.system.shell import ShellRegistry

__all__ = ["StepExecutor", "missing_environment"]

logger = get_logger(__name__)


def missing_environment(steps: Sequence[Step], context: RunContext) -> dict[str, list[str]]:
    """Map each unset required variable to the ids of the steps requiring it.

    Variables and step ids keep the order in which steps declare them.
    """
    missing: dict[str, list[str]] = {}
    for step in steps:
        for name in step.env:
            if not context.is_set(name):
                missing.setdefault(name, []).append(step.id)
    return missing


class StepExecutor:
    """Runs steps and maintains the resume state.

    Collaborators default to the real implementations; tests inject fakes
    for ``runner``, ``shells``, ``packages`` and ``prompter``.

    Example:
        ```python
        executor = StepExecutor(context, FileResumeStore(settings.state_path))
        result = await executor.execute(config.root_file, config.steps, config.defaults, options)
        ```
    """

    def __init__(
        self,
        context: RunContext,
        store: ResumeStore,
        *,
        aliases: AliasTable | None = None,
        runner: CommandRunner | None = None,
        shells: ShellRegistry | None = None,
        packages: PackageManagerResolver | None = None,
        console: Console | None = None,
        prompter: StepPrompter | None = None,
    ) -> None:
        self._context = context
        self._store = store
        self._aliases = aliases or AliasTable()
        self._runner = runner or CommandRunner()
        self._shells = shells or ShellRegistry()
        self._packages = packages or PackageManagerResolver(context.os_info)
        self._console = console or Console()
        self._prompter = prompter or StepPrompter(self._console)
        self._checker = ScriptChecker(self._runner, self._shells)
        self._reporter = ProgressReporter(self._console)

    @property
    def _env(self) -> dict[str, str]:
        return dict(self._context.environment)

    async def execute(
        self,
        config_path: Path,
        steps: Sequence[Step],
        defaults: Defaults,
        options: RunOptions,
    ) -> RunResult:
        """Run ``steps`` according to ``options``.

        Args:
            config_path: Root provisioning file, recorded in the resume state.
            steps: Steps in execution order.
            defaults: Defaults of the root file, recorded in the resume state.
            options: Filters and flags.

        Returns:
            The outcome of every step. ``aborted`` is set if the user aborted
            an interactive run.

        Raises:
            ConfigError: If a ``--step`` id or the start step is unknown, or
                a script has a syntax error.
            ExpressionValidationError: If the tag filter is invalid.
            MeprisValidationError: If required environment variables are unset.
            StepFailure: If a step failed. The resume state has been saved
                when ``resumable`` is set.
        """
        selection = select_steps(
            steps,
            self._context.os_info,
            step_ids=options.step_ids,
            tags=options.tags,
            start_step_id=options.start_step_id,
        )
        result = RunResult(dry_run=options.dry_run)
        self._record_excluded(selection, result)

        if options.fresh and not options.dry_run and await self._store.exists():
            logger.warning("stale_run_state_discarded")
            await self._store.clear()

        missing = missing_environment(selection.steps, self._context)
        if missing:
            raise MeprisValidationError(missing)

        await self._checker.check_steps(selection.steps, self._context.platform)

        logger.info(
            "run_started",
            config=str(config_path),
            steps=len(selection.steps),
            dry_run=options.dry_run,
            interactive=options.interactive,
        )
        self._reporter.total = len(selection.steps)
        interactive = options.interactive

        for index, step in enumerate(selection.steps):
            self._reporter.start_step(index + 1)
            bind_context(step_id=step.id)
            try:
                if not await self._when_holds(step, quiet=options.dry_run):
                    logger.info("step_skipped", reason=SkipReason.WHEN.value)
                    if not options.dry_run:
                        self._reporter.progress(
                            f"⏭️ Step '{step.id}' skipped due to failed when script"
                        )
                    result.add(StepOutcome(step.id, StepStatus.SKIPPED, SkipReason.WHEN))
                    continue

                if options.dry_run:
                    plan = await self._plan(step)
                    result.add(StepOutcome(step.id, StepStatus.DONE, plan=plan))
                    continue

                if interactive:
                    decision = self._prompter.ask(step, self._package_names(step))
                    logger.debug("step_decision", decision=decision.name)
                    if decision is Decision.SKIP:
                        result.add(StepOutcome(step.id, StepStatus.SKIPPED, SkipReason.DECLINED))
                        continue
                    if decision is Decision.ABORT:
                        await self._save_state(
                            config_path, selection.steps[index:], defaults, options, interactive
                        )
                        result.aborted = True
                        logger.info("run_aborted")
                        return result
                    if decision is Decision.LEAVE:
                        interactive = False

                self._reporter.progress(f"🚀 Running step '{step.id}'...")
                try:
                    await self._run_step(step)
                except StepFailure as failure:
                    result.add(StepOutcome(step.id, StepStatus.FAILED))
                    logger.error("step_failed", stage=failure.stage, detail=failure.detail)
                    saved = await self._save_state(
                        config_path, selection.steps[index:], defaults, options, interactive
                    )
                    raise (failure.mark_resumable() if saved else failure) from None
                self._reporter.progress(f"✅ Step '{step.id}' completed")
                result.add(StepOutcome(step.id, StepStatus.DONE))
            finally:
                clear_context()

        if not options.dry_run:
            await self._store.clear()
            self._reporter.message("✅ Run completed")
        logger.info("run_finished", completed=len(result.completed))
        return result

    def _record_excluded(self, selection: Selection, result: RunResult) -> None:
        excluded = [
            (selection.excluded_by_tags, SkipReason.TAGS),
            (selection.excluded_by_os, SkipReason.OS),
            (selection.skipped, SkipReason.START),
        ]
        for group, reason in excluded:
            for step in group:
                result.add(StepOutcome(step.id, StepStatus.SKIPPED, reason))

    async def _save_state(
        self,
        config_path: Path,
        remaining: Sequence[Step],
        defaults: Defaults,
        options: RunOptions,
        interactive: bool,
    ) -> bool:
        state = RunState(
            config_path=config_path,
            steps=tuple(remaining),
            failed_step_id=remaining[0].id,
            defaults=defaults,
            tags=options.tags.raw if options.tags else None,
            step_ids=options.step_ids,
            interactive=interactive,
            dry_run=options.dry_run,
        )
        try:
            await self._store.save(state)
        except ResumeError as e:
            logger.warning("run_state_save_failed", error=e.message)
            self._reporter.warning("Failed to save run state")
            return False
        return True

    async def _when_holds(self, step: Step, *, quiet: bool) -> bool:
        if step.when is None:
            return True
        try:
            code = await self._run_script(step, "when", step.when, quiet=quiet)
        except (ScriptSyntaxError, RunnerError) as e:
            logger.info("when_script_error", error=e.message)
            return False
        return code == 0

    async def _run_script(self, step: Step, stage: str, script: Script, *, quiet: bool = False) -> int:
        """Run a script in the step's directory and return its exit code.

        Scripts skipped by the upfront check are checked here first.
        """
        shell = script.resolve_shell(self._context.platform, step.defaults)
        if not self._checker.is_checked(shell, script.code):
            await self._checker.check_script(step, stage, script, self._context.platform)
        command = shell.command(script.code)
        if quiet:
            result = await self._runner.run(command, cwd=step.source_dir, env=self._env)
        else:
            result = await self._runner.execute(
                command, cwd=step.source_dir, env=self._env, on_output=self._reporter.output
            )
        logger.debug("script_finished", stage=stage, returncode=result.returncode)
        return result.returncode

    async def _run_step(self, step: Step) -> None:
        """Run pre_script, packages and script in order.

        Raises:
            StepFailure: On the first stage that fails.
        """
        stage = "pre_script"
        try:
            if step.pre_script is not None:
                self._reporter.progress("⚙️ Running pre-script...")
                await self._run_stage_script(step, stage, step.pre_script)
            if step.packages:
                stage = "packages"
                await self._install_packages(step)
            if step.script is not None:
                stage = "script"
                self._reporter.progress("⚙️ Running script...")
                await self._run_stage_script(step, stage, step.script)
        except StepFailure:
            raise
        except (ConfigError, RunnerError) as e:
            raise StepFailure(step.id, stage, e.message) from e

    async def _run_stage_script(self, step: Step, stage: str, script: Script) -> None:
        code = await self._run_script(step, stage, script)
        if code != 0:
            shell = script.resolve_shell(self._context.platform, step.defaults)
            raise StepFailure(
                step.id,
                stage,
                f"Failed to run {stage} in file {step.source_file}",
                command=shell.executable,
                returncode=code,
            )

    def _source_for(self, step: Step) -> PackageSource:
        if step.package_source is not None:
            return step.package_source
        if self._context.platform == "windows" and step.defaults.windows_package_manager:
            return step.defaults.windows_package_manager
        return self._packages.default_source()

    def _resolve_packages(self, step: Step) -> tuple[PackageManager, list[tuple[str, str]]]:
        source = self._source_for(step)
        manager = self._packages.manager_for(source)
        names = [(package, self._aliases.resolve(package, source)) for package in step.packages]
        return manager, names

    def _package_names(self, step: Step) -> list[str]:
        """Names the step would install, after alias resolution."""
        if not step.packages:
            return []
        source = self._source_for(step)
        return [self._aliases.resolve(package, source) for package in step.packages]

    async def _install_packages(self, step: Step) -> None:
        manager, names = self._resolve_packages(step)
        if not self._packages.is_available(manager):
            raise PackageManagerNotFoundError(
                f"Package manager {manager.executable} not found",
                executable=manager.executable,
            )
        packages = [name for _, name in names]
        self._reporter.progress(f"📦 Installing packages: {', '.join(packages)}")
        for command in manager.install_commands(packages):
            result = await self._runner.execute(
                command, env=self._env, on_output=self._reporter.output
            )
            if not result.success:
                raise StepFailure(
                    step.id,
                    "packages",
                    f"Failed to install {', '.join(packages)}",
                    command=" ".join(command),
                    returncode=result.returncode,
                )
        logger.info("packages_installed", manager=manager.value, packages=packages)

    async def _plan(self, step: Step) -> StepPlan:
        """Describe what running ``step`` would do without running it."""
        missing_shells = tuple(
            shell.executable for shell in self._shells.missing(step.shells(self._context.platform))
        )
        if not step.packages:
            return StepPlan(step.id, missing_shells=missing_shells)

        try:
            manager, names = self._resolve_packages(step)
        except ConfigError as e:
            logger.warning("package_manager_unresolved", error=e.message)
            plans = tuple(PackagePlan(package) for package in step.packages)
            return StepPlan(
                step.id,
                manager_installed=False,
                packages=plans,
                missing_shells=missing_shells,
            )

        installed = self._packages.is_available(manager)
        plans = []
        for declared, name in names:
            is_installed = False
            if installed:
                probe = await self._runner.run(manager.query_command(name), env=self._env)
                is_installed = manager.is_installed(name, probe)
            plans.append(PackagePlan(name, alias_used=name != declared, installed=is_installed))
        return StepPlan(
            step.id,
            manager=manager.executable,
            manager_installed=installed,
            packages=tuple(plans),
            missing_shells=missing_shells,
        )
