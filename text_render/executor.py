"""
Batch Executor
==============
Runs render jobs with an adaptive threading strategy:

    - Small batches (below the sequential threshold) run one after another
      on the calling thread, avoiding pool start-up cost.
    - Larger batches run on a thread pool bounded to ``max_parallelism``.

A failing job never stops the batch. Failures are logged and collected in
the returned :class:`BatchResult`.

The parallel batch has one overall timeout. Jobs not yet started when it
expires are cancelled. Jobs already running cannot be interrupted: they are
abandoned, recorded as failed, and may still finish (writing their output
and advancing the tracker) after the result is returned. Worker threads are
joined at interpreter exit, so a job that never returns delays exit.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait

from .models import BatchResult, FailedJob, RenderJob
from .progress import ProgressTracker
from .renderer import Renderer

logger = logging.getLogger(__name__)

DEFAULT_SEQUENTIAL_THRESHOLD = 10
DEFAULT_TIMEOUT_SECONDS = 60 * 60


class BatchExecutor:
    """Executes render jobs sequentially or on a worker pool."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def mode_for(job_count: int, sequential_threshold: int) -> str:
        """Execution mode used for a batch of ``job_count`` jobs."""
        return "sequential" if job_count < sequential_threshold else "parallel"

    def execute_all(
        self,
        jobs: list[RenderJob],
        renderer: Renderer,
        max_parallelism: int,
        progress: ProgressTracker,
        sequential_threshold: int = DEFAULT_SEQUENTIAL_THRESHOLD,
    ) -> BatchResult:
        """
        Render every job.

        Args:
            jobs: Jobs to render.
            renderer: Renderer used for every job.
            max_parallelism: Maximum concurrent jobs in parallel mode.
            progress: Tracker advanced after each successful job.
            sequential_threshold: Batches smaller than this run sequentially.

        Returns:
            BatchResult with success count and failed jobs.
        """
        if not jobs:
            logger.debug("No jobs to execute, returning")
            return BatchResult()

        start_time = time.time()

        if self.mode_for(len(jobs), sequential_threshold) == "sequential":
            logger.info(
                f"Processing {len(jobs)} jobs sequentially "
                f"(below threshold of {sequential_threshold})"
            )
            result = self._execute_sequentially(jobs, renderer, progress)
        else:
            workers = max(1, max_parallelism)
            logger.info(f"Processing {len(jobs)} jobs in parallel with {workers} threads")
            result = self._execute_in_parallel(jobs, renderer, workers, progress)

        result.elapsed_seconds = round(time.time() - start_time, 3)
        self._report_failures(result)
        logger.info(f"All jobs completed in {result.elapsed_seconds:.2f}s")
        return result

    def _execute_sequentially(
        self,
        jobs: list[RenderJob],
        renderer: Renderer,
        progress: ProgressTracker,
    ) -> BatchResult:
        result = BatchResult(total=len(jobs), mode="sequential")
        for job in jobs:
            failure = self._run_job(job, renderer, progress)
            if failure:
                result.failed.append(failure)
            else:
                result.succeeded += 1
        return result

    def _execute_in_parallel(
        self,
        jobs: list[RenderJob],
        renderer: Renderer,
        workers: int,
        progress: ProgressTracker,
    ) -> BatchResult:
        result = BatchResult(total=len(jobs), mode="parallel")

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="render-worker")
        try:
            futures = {
                pool.submit(self._run_job, job, renderer, progress): job
                for job in jobs
            }
            done, not_done = wait(futures, timeout=self.timeout_seconds)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if not_done:
            logger.warning(
                f"{len(not_done)} job(s) did not complete within "
                f"{self.timeout_seconds}s, abandoning them"
            )

        # Keep failures in input order
        for future, job in futures.items():
            if future in not_done:
                result.failed.append(FailedJob(
                    text=job.text,
                    output_path=str(job.output_path),
                    error="TimeoutError: job did not finish in time and was abandoned",
                ))
                continue
            failure = future.result()
            if failure:
                result.failed.append(failure)
            else:
                result.succeeded += 1

        return result

    def _run_job(
        self,
        job: RenderJob,
        renderer: Renderer,
        progress: ProgressTracker,
    ) -> FailedJob | None:
        try:
            logger.debug(f"Rendering job for text: {job.text}")
            renderer.render(job)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            logger.error(f"Failed to render '{job.text}': {message}", exc_info=True)
            return FailedJob(text=job.text, output_path=str(job.output_path), error=message)

        progress.increment()
        logger.debug(f"Successfully rendered job for text: {job.text}")
        return None

    def _report_failures(self, result: BatchResult):
        if result.failed:
            names = ", ".join(f.text for f in result.failed)
            logger.warning(f"{len(result.failed)} job(s) failed during rendering: {names}")
