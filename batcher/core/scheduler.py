"""
Scheduler: run N identical jobs with at most C executing at once.

Behavior:
- One JobWorker thread per job, all started at run start
- Each worker waits for one of C slots (BoundedSemaphore), runs its job,
  releases the slot, then posts the job on the result queue
- A supervisor thread joins every worker and then posts an end marker
- The calling thread drains the queue, updates RunStats and fires the
  progress callback at evenly spaced completion counts
"""

from __future__ import annotations

import logging
import math
import queue
import threading
import time
from typing import Callable, List, Optional

from .job import Job, JobOutcome
from .models import BatchConfig
from .report import default_progress
from .stats import RunStats

logger = logging.getLogger(__name__)

ProgressCallback = Callable[["BatchScheduler", Job], None]
CompletionCallback = Callable[[Job], None]
JobRunner = Callable[[Job], JobOutcome]

# end-of-stream marker posted by the supervisor
_END = object()


def run_job(job: Job) -> JobOutcome:
    return job.run()


class JobWorker(threading.Thread):
    def __init__(self, scheduler: "BatchScheduler", job: Job):
        super().__init__(name=f"worker-{job.name}", daemon=True)
        self.sched = scheduler
        self.job = job

    def post(self) -> None:
        self.sched._results.put(self.job)

    def run(self) -> None:
        job = self.job
        job.mark_ready()
        with self.sched._slots:
            job.mark_started()
            self.sched._enter()
            try:
                self.sched._runner(job)
            except Exception as ex:
                logger.error(f"Unexpected error running {job.name}: {ex}")
                if not job.done:
                    job.fail_launch(ex)
            finally:
                self.sched._leave()
        if not job.done:
            job.fail_launch(RuntimeError(f"runner returned without an outcome for {job.name}"))
        if job.outcome is not JobOutcome.SUCCEEDED:
            logger.warning(
                f"Job failed id={job.id} name={job.name} command={job.command} "
                f"exit_status={job.exit_status} outcome={job.outcome.value} "
                f"launch_error={job.launch_error!r}"
            )
        self.post()


class BatchScheduler:
    """Bounded-concurrency runner for one batch of jobs.

    Public API:
      - BatchScheduler(config: BatchConfig, progress=default_progress, runner=None, on_complete=None)
      - run() -> RunStats
      - jobs, stats, config, run_start, peak_active (attributes/properties)
    """

    def __init__(
        self,
        config: BatchConfig,
        progress: Optional[ProgressCallback] = default_progress,
        runner: Optional[JobRunner] = None,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.config = config
        self.progress = progress
        self.on_complete = on_complete
        self._runner: JobRunner = runner or run_job
        self.stats = RunStats(config.total)
        self.jobs: List[Job] = [
            Job.create(i + 1, config.prefix, config.command) for i in range(config.total)
        ]
        self.run_start: Optional[float] = None
        # admission slots and result stream
        self._slots = threading.BoundedSemaphore(config.batch)
        self._results: "queue.Queue[object]" = queue.Queue()
        self._workers: List[JobWorker] = []
        # started-but-unfinished bookkeeping
        self._active_lock = threading.Lock()
        self._active = 0
        self._peak_active = 0
        # progress ticks
        self.tick_step = int(math.ceil(config.total / config.ticks))
        self.next_tick = 0
        self._advance_tick()
        self._ran = False

    @property
    def peak_active(self) -> int:
        with self._active_lock:
            return self._peak_active

    @property
    def active(self) -> int:
        with self._active_lock:
            return self._active

    def _enter(self) -> None:
        with self._active_lock:
            self._active += 1
            if self._active > self._peak_active:
                self._peak_active = self._active

    def _leave(self) -> None:
        with self._active_lock:
            self._active -= 1

    def _advance_tick(self) -> None:
        self.next_tick = min(self.next_tick + self.tick_step, self.config.total)

    def _supervise(self) -> None:
        for w in self._workers:
            w.join()
        self._results.put(_END)

    def run(self) -> RunStats:
        if self._ran:
            raise RuntimeError("scheduler already ran; create a new one per batch")
        self._ran = True
        cfg = self.config
        logger.info(f"Starting background jobs batch={cfg.batch} total={cfg.total} command={cfg.command}")
        self.stats.start()
        self.run_start = time.time()

        for job in self.jobs:
            worker = JobWorker(self, job)
            self._workers.append(worker)
            worker.start()

        supervisor = threading.Thread(target=self._supervise, name="batch-supervisor", daemon=True)
        supervisor.start()

        while True:
            item = self._results.get()
            if item is _END:
                break
            self._consume(item)

        supervisor.join()
        self.stats.finish()
        logger.info(
            f"Finished background jobs completed={self.stats.completed} succeeded={self.stats.succeeded} "
            f"failed={self.stats.failed} invalid={self.stats.invalid} active_time={self.stats.active_time:.3f}s"
        )
        return self.stats

    def _notify(self, what: str, callback: Callable[..., None], *args) -> None:
        # reporting hooks must not stop the drain loop
        try:
            callback(*args)
        except Exception as ex:
            logger.error(f"{what} callback failed for {args[-1].name}: {ex}")

    def _consume(self, job: Job) -> None:
        self.stats.update(job)
        if self.on_complete is not None:
            self._notify("on_complete", self.on_complete, job)
        logger.debug(f"Completed {job.name} ({job.outcome.value}); remaining={self.config.total - self.stats.completed}")
        if self.stats.completed >= self.next_tick:
            self._advance_tick()
            if self.progress is not None:
                self._notify("progress", self.progress, self, job)
