"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A fixed set of worker threads draining one shared job queue. Every accepted
connection becomes one job; one worker serves one connection at a time.

=============================================================================
THREAD POOL ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   execute(job) ──►  ┌──────────────────────────────────────────┐    │
    │                     │              JOB QUEUE                    │    │
    │                     │  [job 1] [job 2] [job 3] ... [STOP]      │    │
    │                     └──────────────────────────────────────────┘    │
    │                          │           │           │                  │
    │                          ▼           ▼           ▼                  │
    │                     ┌────────┐  ┌────────┐  ┌────────┐             │
    │                     │Worker-0│  │Worker-1│  │Worker-N│             │
    │                     └────────┘  └────────┘  └────────┘             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    • queue.Queue is multi-producer / multi-consumer and FIFO
    • workers block on get() while the queue is empty
    • the pool size is FIXED: no scaling up or down
    • one STOP sentinel per worker ends the pool

=============================================================================
QUEUE CAPACITY
=============================================================================

    queue_size = 0      Unbounded. execute() never waits for space.
                        A sustained overload grows the backlog without
                        limit, so pick a bound for exposed deployments.

    queue_size = N > 0  Bounded. execute() BLOCKS until a worker takes a
                        job and frees a slot. Nothing is dropped or
                        rejected; the accept loop simply slows down.

=============================================================================
SHUTDOWN
=============================================================================

    1. Close the submitting side (execute() raises from now on)
    2. Put one STOP sentinel per worker BEHIND the pending jobs
    3. Join every worker

Because the queue is FIFO, every job enqueued before shutdown() runs to
completion before its worker meets a sentinel.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional
from enum import Enum


logger = logging.getLogger(__name__)


# A job is one zero-argument unit of work: the full lifetime of a connection.
Job = Callable[[], None]

# Queued once per worker at shutdown; a worker exits when it receives it.
_STOP = None


class WorkerState(Enum):
    IDLE = "idle"      # Waiting for a job
    BUSY = "busy"      # Running a job
    STOPPED = "stopped"  # Thread exited


class Worker(threading.Thread):
    """
    A single worker thread that consumes jobs from the shared queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Lifecycle                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ┌─────────┐   get()    ┌─────────┐   done     ┌─────────┐         │
    │   │  IDLE   │ ─────────► │  BUSY   │ ─────────► │  IDLE   │ ─► ...  │
    │   └─────────┘            └─────────┘            └─────────┘         │
    │        │                                                             │
    │        │ STOP sentinel                                               │
    │        ▼                                                             │
    │   ┌─────────┐                                                        │
    │   │ STOPPED │                                                        │
    │   └─────────┘                                                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    An exception raised by a job is logged and counted; the worker then goes
    back to the queue for the next job.
    """

    def __init__(self, job_queue: "queue.Queue[Optional[Job]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.job_queue = job_queue
        self.worker_id = worker_id

        self.state = WorkerState.IDLE

        self.jobs_completed = 0
        self.jobs_failed = 0

    def run(self):
        """Main loop: take a job, run it to completion, repeat."""
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            # ─────────────────────────────────────────────────────────────
            # WAIT FOR WORK
            # ─────────────────────────────────────────────────────────────
            # get() blocks with no timeout. The only way out of this loop
            # is the STOP sentinel queued by ThreadPool.shutdown().
            job = self.job_queue.get()

            try:
                if job is _STOP:
                    break
                self._execute_job(job)
            finally:
                self.job_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_job(self, job: Job):
        """
        Run one job, isolating its failure from the worker.

        Args:
            job: The zero-argument callable to run.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            job()

            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed job in {elapsed:.3f}s")
            self.jobs_completed += 1

        except Exception as e:
            # ─────────────────────────────────────────────────────────────
            # JOB FAILURE
            # ─────────────────────────────────────────────────────────────
            # The traceback goes to the log; the worker stays alive and
            # serves the next job. A handler bug costs one response, not
            # one worker.
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} job failed after {elapsed:.3f}s: {e}"
            )
            self.jobs_failed += 1

        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool for connection jobs.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   # Create pool (workers start immediately)                          │
    │   pool = ThreadPool(8)                                               │
    │                                                                      │
    │   # Submit jobs (fire-and-forget)                                    │
    │   pool.execute(lambda: handle(conn))                                 │
    │                                                                      │
    │   # Shutdown (runs every pending job first)                          │
    │   pool.shutdown()                                                    │
    │                                                                      │
    │   # Or scoped                                                        │
    │   with ThreadPool(4) as pool:                                        │
    │       pool.execute(job)                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, num_workers: int = 8, queue_size: int = 0):
        """
        Create the pool and start all of its workers.

        Args:
            num_workers: Number of worker threads. Fixed for the pool's
                         lifetime. Must be at least 1.

            queue_size: Capacity of the job queue. 0 means unbounded;
                        a positive value makes execute() block while the
                        queue is full.

        Raises:
            ValueError: If num_workers < 1 or queue_size < 0.
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")
        if queue_size < 0:
            raise ValueError(f"queue_size must be >= 0, got {queue_size}")

        self.num_workers = num_workers
        self.capacity = queue_size

        self._job_queue: "queue.Queue[Optional[Job]]" = queue.Queue(maxsize=queue_size)

        self._lock = threading.Lock()  # Guards _shutdown against execute()
        self._shutdown = False

        logger.info(f"Starting thread pool with {num_workers} workers")

        self._workers: list[Worker] = []
        for worker_id in range(num_workers):
            worker = Worker(job_queue=self._job_queue, worker_id=worker_id)
            self._workers.append(worker)
            worker.start()

    def execute(self, job: Job) -> None:
        """
        Enqueue a job and return without waiting for it.

        There is no completion or success signal. With an unbounded queue the
        call only waits on the queue's internal lock; with a bounded queue it
        waits for a free slot.

        Args:
            job: Zero-argument callable, run exactly once by one worker.

        Raises:
            RuntimeError: If the pool has been shut down.
        """
        with self._lock:
            if self._shutdown:
                raise RuntimeError("Thread pool is shut down")
            self._job_queue.put(job)

    def shutdown(self) -> None:
        """
        Stop the pool after every already-enqueued job has finished.

        Safe to call more than once; later calls return immediately.
        """
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        # Sentinels land behind every pending job (FIFO), so each worker
        # drains real work before it sees its STOP.
        for _ in self._workers:
            self._job_queue.put(_STOP)

        for worker in self._workers:
            worker.join()

        logger.info("Thread pool shutdown complete")

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    # =========================================================================
    # MONITORING: Check pool status
    # =========================================================================

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def workers(self) -> list[Worker]:
        """The pool's worker threads, in creation order."""
        return list(self._workers)

    @property
    def active_workers(self) -> int:
        """Get count of active (non-stopped) workers."""
        return sum(1 for w in self._workers if w.state != WorkerState.STOPPED)

    @property
    def busy_workers(self) -> int:
        """Get count of busy workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        """Get count of idle workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def queue_size(self) -> int:
        """Get current number of queued jobs."""
        return self._job_queue.qsize()

    @property
    def stats(self) -> dict:
        """
        Get thread pool statistics.

        Returns a dict with worker and job counts.
        """
        return {
            "workers": {
                "total": len(self._workers),
                "active": self.active_workers,
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "jobs": {
                "queued": self._job_queue.qsize(),
                "completed": sum(w.jobs_completed for w in self._workers),
                "failed": sum(w.jobs_failed for w in self._workers),
            },
        }
