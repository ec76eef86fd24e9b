"""
=============================================================================
THREAD POOL
=============================================================================

Optional concurrency for the server. By default every connection is served
on the accept loop, one after another, so one slow client holds up the
rest. With `workers > 0` each accepted connection becomes a task on a
fixed pool of threads instead:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   accept loop ──submit(conn)──► [ task queue (bounded) ]            │
    │                                      │      │      │                 │
    │                                      ▼      ▼      ▼                 │
    │                                 Worker-0 Worker-1 Worker-N           │
    │                                 handle_connection(conn)              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Tasks share nothing: the framer buffer, the request and the response plan
all belong to the one connection a task is serving. The only shared
object is the queue, which is thread-safe.

A full queue makes submit() return False; the server closes that
connection instead of letting the backlog grow without bound.

Shutdown waits for queued tasks up to a timeout. Past it, tasks still in
the queue are handed back unrun so the server can close their sockets,
and a worker stuck on a silent client is left behind (workers are daemon
threads).

=============================================================================
"""

import threading
import queue
import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states."""

    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """A deferred call: func(*args)."""

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """Pulls tasks off the shared queue until it receives None."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break  # Poison pill
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args)
            self.tasks_completed += 1
        except Exception as e:
            # A failing task must not take the worker down with it
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size pool of worker threads.

    Usage:
        pool = ThreadPool(workers=4)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown()
    """

    def __init__(self, workers: int = 4, queue_size: int = 100):
        """
        Args:
            workers: Number of worker threads.
            queue_size: Tasks that may wait for a free worker.
        """
        self.workers = workers
        self.queue_size = queue_size
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._started = False
        self._shutdown = False

    @property
    def pending(self) -> int:
        """Tasks waiting in the queue."""
        return self._task_queue.qsize()

    def start(self):
        """Start the worker threads. Calling it twice is a no-op."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.workers} workers")

        for worker_id in range(self.workers):
            worker = Worker(self._task_queue, worker_id)
            self._workers.append(worker)
            worker.start()

        self._started = True
        self._shutdown = False

    def submit(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Queue a task without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        try:
            self._task_queue.put(Task(func=func, args=args), block=False)
        except queue.Full:
            return False
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> List[Task]:
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish before stopping workers.
            timeout: Give up waiting for the queue after this many seconds.

        Returns:
            Tasks that were still queued and will never run. Empty unless
            wait is False or the timeout expired; the caller owns whatever
            resources their args hold.
        """
        if not self._started:
            return []

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        forced = not wait
        if wait:
            deadline = time.time() + timeout if timeout else None
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    forced = True
                    break
                time.sleep(0.05)

        discarded = self._drain() if forced else []

        # Non-blocking: a worker stuck in a task must not stall shutdown
        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass

        for worker in self._workers:
            worker.join(timeout=2.0)
            if worker.is_alive():
                logger.warning(f"Worker {worker.worker_id} still busy, abandoning it")

        self._workers.clear()
        self._started = False
        return discarded

    def _drain(self) -> List[Task]:
        """Remove every queued task without running it."""
        discarded: List[Task] = []
        while True:
            try:
                task = self._task_queue.get(block=False)
            except queue.Empty:
                break
            self._task_queue.task_done()
            if task is not None:
                discarded.append(task)

        if discarded:
            logger.warning(f"Dropped {len(discarded)} queued tasks")
        return discarded
