"""Hindcast scheduling over sub-catchments, realizations and years."""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from pywasa.core.catchments import SubCatchment
from pywasa.core.exceptions import ConfigurationError, PyWASAError
from pywasa.io.config import FailurePolicy, HindcastConfig
from pywasa.io.markers import clear_marker, mark_complete
from pywasa.io.reservoir import prepare_reservoir_input
from pywasa.io.river_flow import inject_dependency_flow
from pywasa.io.run_config import (
    disable_intake,
    relative_output_path,
    rewrite_run_config,
    write_output_selection,
)
from pywasa.runner.results import (
    HindcastResult,
    RealizationResult,
    RealizationStatus,
    YearResult,
)
from pywasa.runner.runner import WASARunner, find_wasa_executable, invoke_model
from pywasa.runner.staging import RunContext, WorkingDirectoryStager

logger = logging.getLogger(__name__)

STATE_FILE_PATTERN = "*.stat"


def propagate_prior_state(source_dir: Path, target_dir: Path) -> list[Path]:
    """Copy storage state files of the previous year into a run output directory.

    WASA-SED loads ``*.stat`` files from its output directory at start.

    Returns
    -------
    list[Path]
        Copied files.
    """
    if not source_dir.is_dir():
        logger.warning("No prior state available in %s", source_dir)
        return []

    copied: list[Path] = []
    target_dir.mkdir(parents=True, exist_ok=True)
    for state_file in sorted(source_dir.glob(STATE_FILE_PATTERN)):
        dst = target_dir / state_file.name
        shutil.copy2(state_file, dst)
        copied.append(dst)
    logger.debug("Copied %d state files from %s", len(copied), source_dir)
    return copied


class HindcastScheduler:
    """Run WASA-SED hindcasts for all sub-catchments, realizations and years.

    Sub-catchments are processed one after another in dependency order. The
    realizations of a sub-catchment run in parallel on a bounded pool and all
    of them finish before the next sub-catchment starts. Within a realization
    the years run sequentially, each starting from the previous year's state.

    Parameters
    ----------
    config : HindcastConfig
        Hindcast configuration.
    runner : WASARunner | None
        Runner to use. If None, one is created for ``config.executable``.
    stager : WorkingDirectoryStager | None
        Stager to use. If None, one is created from the configured paths.

    Examples
    --------
    >>> config = load_config("hindcast.json")
    >>> result = HindcastScheduler(config).run()
    >>> result.summary()
    {'success': 500, 'failed': 0, 'skipped': 0, 'cancelled': 0}
    """

    def __init__(
        self,
        config: HindcastConfig,
        runner: WASARunner | None = None,
        stager: WorkingDirectoryStager | None = None,
    ) -> None:
        self.config = config
        self.network = config.network
        self.period = config.period
        self.runner = runner
        self.stager = stager or WorkingDirectoryStager(
            config.setup_dir, config.meteo_dir, config.temp_dir
        )
        self.log_dir = config.log_dir or Path.cwd()

    def preflight(self) -> tuple[list[SubCatchment], list[str]]:
        """Validate the setup before anything is run.

        Returns
        -------
        tuple[list[SubCatchment], list[str]]
            (processing order, realization ids)

        Raises
        ------
        DependencyGraphError
            If the declared order is not a valid dependency order.
        ConfigurationError
            If a setup, weather file or the executable is missing.
        """
        self.network.validate_order()
        order = self.network.topological_order()

        for sub in order:
            self.stager.check_setup(sub.name)

        realizations = self.config.list_realizations()
        if not realizations:
            raise ConfigurationError(f"No realizations found in {self.config.meteo_dir}")
        for realization in realizations:
            self.stager.check_weather(realization)

        if self.runner is None:
            self.runner = WASARunner(
                find_wasa_executable(self.config.executable),
                timeout=self.config.timeout,
                error_detection=self.config.error_detection,
            )
        return order, realizations

    def _run_year(self, context: RunContext, year: int, first_year: bool) -> YearResult:
        """Prepare and run one year of a realization."""
        assert self.runner is not None
        out_dir = context.output_dir(year)
        out_dir.mkdir(parents=True, exist_ok=True)
        clear_marker(out_dir)

        prepare_reservoir_input(
            context.reservoir_dir,
            year,
            first_year=first_year,
            prior_year_dir=None if first_year else context.init_dir(year - 1),
        )
        rewrite_run_config(
            context.config_file,
            relative_output_path(context.working_dir, out_dir),
            year,
            self.period.start_month,
        )
        write_output_selection(context.working_dir)
        disable_intake(context.time_series_dir)
        propagate_prior_state(context.init_dir(year - 1), out_dir)

        result = invoke_model(self.runner, context, year)
        mark_complete(out_dir)
        return YearResult(year=year, output_dir=out_dir, result=result)

    def run_realization(self, subcatchment: SubCatchment, realization: str) -> RealizationResult:
        """Run all years of one realization of a sub-catchment.

        Any error ends the task and is recorded on the returned result.
        """
        result = RealizationResult(subcatchment=subcatchment.name, realization=realization)
        work_dir: Path | None = None

        try:
            work_dir = self.stager.stage(subcatchment.name, realization)
            context = RunContext(
                subcatchment=subcatchment,
                realization=realization,
                working_dir=work_dir,
                output_root=self.config.output_dir,
                init_root=self.config.init_dir,
                log_dir=self.log_dir,
            )
            inject_dependency_flow(
                self.config.output_dir,
                subcatchment,
                realization,
                self.period.years,
                context.time_series_dir,
                wait=self.config.dependency_wait,
            )
            for i, year in enumerate(self.period.years):
                result.years.append(self._run_year(context, year, first_year=i == 0))

        except PyWASAError as exc:
            result.status = RealizationStatus.FAILED
            result.error = exc
            logger.error("%s/%s failed: %s", subcatchment.name, realization, exc)

        except Exception as exc:
            result.status = RealizationStatus.FAILED
            result.error = exc
            logger.exception("%s/%s crashed", subcatchment.name, realization)

        finally:
            if work_dir is not None:
                if result.success and not self.config.keep_working_dirs:
                    self.stager.discard(work_dir)
                else:
                    result.working_dir = work_dir
                    if not result.success:
                        logger.info("Working directory kept for inspection: %s", work_dir)

        return result

    def _skip_reason(
        self,
        subcatchment: SubCatchment,
        realization: str,
        results: HindcastResult,
    ) -> str | None:
        """Reason to skip a realization whose upstream realization did not succeed."""
        for upstream in subcatchment.dependencies:
            upstream_result = results.get(upstream, realization)
            if upstream_result is not None and not upstream_result.success:
                return (
                    f"upstream sub-catchment {upstream} realisation {realization} "
                    f"{upstream_result.status.value}"
                )
        return None

    def _run_subcatchment(
        self,
        subcatchment: SubCatchment,
        realizations: list[str],
        results: HindcastResult,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> bool:
        """Run all realizations of a sub-catchment and wait for them.

        Returns
        -------
        bool
            True if any realization failed.
        """
        (self.config.output_dir / subcatchment.name).mkdir(parents=True, exist_ok=True)
        abort = self.config.on_failure is FailurePolicy.ABORT

        pending: list[str] = []
        for realization in realizations:
            reason = self._skip_reason(subcatchment, realization, results)
            if reason is not None:
                results.add(
                    RealizationResult(
                        subcatchment=subcatchment.name,
                        realization=realization,
                        status=RealizationStatus.SKIPPED,
                        error=PyWASAError(f"Skipped {subcatchment.name}/{realization}: {reason}"),
                    )
                )
            else:
                pending.append(realization)

        total = len(pending)
        completed = 0
        failed = False

        if self.config.max_workers <= 1:
            for realization in pending:
                if failed and abort:
                    results.add(self._cancelled(subcatchment, realization))
                    continue
                result = self.run_realization(subcatchment, realization)
                results.add(result)
                failed = failed or not result.success
                completed += 1
                if progress_callback:
                    progress_callback(subcatchment.name, completed, total)
            return failed

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_realization: dict[Future[RealizationResult], str] = {
                executor.submit(self.run_realization, subcatchment, realization): realization
                for realization in pending
            }

            for future in as_completed(future_to_realization):
                realization = future_to_realization[future]
                if future.cancelled():
                    results.add(self._cancelled(subcatchment, realization))
                    continue
                try:
                    result = future.result()
                except Exception as e:
                    logger.exception("%s/%s crashed", subcatchment.name, realization)
                    result = RealizationResult(
                        subcatchment=subcatchment.name,
                        realization=realization,
                        status=RealizationStatus.FAILED,
                        error=e,
                    )
                results.add(result)

                if not result.success and not failed:
                    failed = True
                    if abort:
                        for other in future_to_realization:
                            other.cancel()

                completed += 1
                if progress_callback:
                    progress_callback(subcatchment.name, completed, total)

        return failed

    def _cancelled(self, subcatchment: SubCatchment, realization: str) -> RealizationResult:
        return RealizationResult(
            subcatchment=subcatchment.name,
            realization=realization,
            status=RealizationStatus.CANCELLED,
        )

    def run(
        self,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> HindcastResult:
        """Run the complete hindcast.

        Parameters
        ----------
        progress_callback : Callable | None
            Optional callback for progress updates.
            Signature: (subcatchment, completed, total) -> None

        Returns
        -------
        HindcastResult
            Results of every (sub-catchment, realization) task.
        """
        order, realizations = self.preflight()
        results = HindcastResult(order=[s.name for s in order])
        logger.info(
            "Hindcast of %d sub-catchments x %d realizations x %d years (%d-%d)",
            len(order),
            len(realizations),
            len(self.period),
            self.period.years[0],
            self.period.years[-1],
        )

        for i, subcatchment in enumerate(order):
            logger.info("Processing sub-catchment %s (%d/%d)", subcatchment.name, i + 1, len(order))
            failed = self._run_subcatchment(subcatchment, realizations, results, progress_callback)

            if failed and self.config.on_failure is FailurePolicy.ABORT:
                results.aborted = True
                logger.error("Aborting hindcast after failure in %s", subcatchment.name)
                for remaining in order[i + 1 :]:
                    for realization in realizations:
                        results.add(self._cancelled(remaining, realization))
                break

        logger.info("Hindcast finished: %s", results.summary())
        return results

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"HindcastScheduler(subcatchments={self.network.names}, "
            f"max_workers={self.config.max_workers})"
        )
