"""Keyed dispatcher — ordered, non-blocking delivery of index mutations.

Index writes are queued per record id and applied by a single worker task for
that id, so for any one id they reach the index in the order they were
submitted. Different ids have independent workers and proceed in parallel.
A worker exits as soon as its id has nothing queued; the next submission for
that id starts a new one.

Each mutation is retried with exponential backoff up to ``max_attempts``
times. A mutation that still fails becomes an :class:`IndexSyncFailure`: it is
logged, kept in a bounded history for inspection and handed to the optional
``on_failure`` hook. It is never raised to whoever submitted it.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from indexsync.errors import IndexSyncFailure

logger = logging.getLogger(__name__)

Mutation = Callable[[], Awaitable[None]]


@dataclass
class _Job:
    operation: str
    mutation: Mutation
    done: asyncio.Future[IndexSyncFailure | None]


@dataclass
class _KeyState:
    queue: asyncio.Queue[_Job]
    # Jobs submitted for this key and not yet finished, including ones whose
    # submitter is still waiting for queue space.
    pending: int = 0
    worker: asyncio.Task[None] | None = None


@dataclass
class DispatcherStats:
    submitted: int = 0
    completed: int = 0
    retried: int = 0
    failed: int = 0
    active_keys: int = field(default=0)


class KeyedDispatcher:
    """Per-key FIFO executor for index mutations.

    Args:
        max_attempts: Attempts per mutation, including the first.
        initial_backoff: Delay before the first retry, in seconds. Doubles on
            each further retry.
        max_backoff: Upper bound on the delay between attempts.
        queue_size: Maximum queued mutations per key. Submitting to a full
            queue waits for space rather than dropping the mutation.
        failure_history: How many recent failures to keep in :attr:`failures`.
        on_failure: Called with each :class:`IndexSyncFailure`.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_backoff: float = 0.2,
        max_backoff: float = 5.0,
        queue_size: int = 100,
        failure_history: int = 100,
        on_failure: Callable[[IndexSyncFailure], None] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._queue_size = queue_size
        self._on_failure = on_failure
        self._keys: dict[str, _KeyState] = {}
        self._failures: deque[IndexSyncFailure] = deque(maxlen=failure_history)
        self._outstanding = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
        self.stats = DispatcherStats()

    @property
    def failures(self) -> list[IndexSyncFailure]:
        """Most recent sync failures, oldest first."""
        return list(self._failures)

    @property
    def outstanding(self) -> int:
        """Number of mutations submitted and not yet finished."""
        return self._outstanding

    async def submit(self, key: str, operation: str, mutation: Mutation) -> asyncio.Future[IndexSyncFailure | None]:
        """Queue a mutation for ``key`` and return without running it.

        Args:
            key: Record id the mutation applies to.
            operation: Short name used in logs and failures (``"index"``, ``"delete"``).
            mutation: Zero-argument coroutine function performing the write.

        Returns:
            A future resolving to None on success or to the
            :class:`IndexSyncFailure` once retries are exhausted. Awaiting it
            is optional. After :meth:`shutdown` the mutation is not run and
            the future is already resolved to a zero-attempt failure.
        """
        loop = asyncio.get_running_loop()
        job = _Job(operation=operation, mutation=mutation, done=loop.create_future())
        if self._closed:
            self.stats.submitted += 1
            failure = IndexSyncFailure(operation, key, 0, RuntimeError("dispatcher is shut down"))
            job.done.set_result(self._record(failure))
            return job.done

        state = self._keys.get(key)
        if state is None:
            state = _KeyState(queue=asyncio.Queue(maxsize=self._queue_size))
            self._keys[key] = state
        state.pending += 1
        self._outstanding += 1
        self._idle.clear()
        self.stats.submitted += 1
        if state.worker is None:
            state.worker = asyncio.create_task(self._drain(key, state), name=f"index-sync:{key}")
            self.stats.active_keys = len(self._keys)

        try:
            await state.queue.put(job)
        except BaseException:
            # Cancelled while waiting for queue space: the job never entered the queue.
            state.pending -= 1
            self._finish_one()
            raise
        return job.done

    async def _drain(self, key: str, state: _KeyState) -> None:
        while True:
            # No await between this check and removing the key, so a concurrent
            # submit either sees pending > 0 here or finds no state and starts
            # a fresh worker.
            if state.pending == 0:
                if self._keys.get(key) is state:
                    del self._keys[key]
                self.stats.active_keys = len(self._keys)
                return

            job = await state.queue.get()
            try:
                failure = await self._run(key, job)
                if not job.done.done():
                    job.done.set_result(failure)
            finally:
                if not job.done.done():
                    job.done.cancel()
                state.pending -= 1
                state.queue.task_done()
                self._finish_one()

    async def _run(self, key: str, job: _Job) -> IndexSyncFailure | None:
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                await job.mutation()
                self.stats.completed += 1
                if attempt > 1:
                    logger.info("Index %s for %s succeeded on attempt %d", job.operation, key, attempt)
                return None
            except Exception as e:
                last_error = e
                if attempt < self._max_attempts:
                    delay = min(self._initial_backoff * 2 ** (attempt - 1), self._max_backoff)
                    self.stats.retried += 1
                    logger.debug(
                        "Index %s for %s failed (attempt %d/%d), retrying in %.2fs: %s",
                        job.operation,
                        key,
                        attempt,
                        self._max_attempts,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)

        return self._record(IndexSyncFailure(job.operation, key, self._max_attempts, last_error))

    def _record(self, failure: IndexSyncFailure) -> IndexSyncFailure:
        self.stats.failed += 1
        self._failures.append(failure)
        logger.warning("Index sync failure: %s", failure, exc_info=failure.cause)
        if self._on_failure is not None:
            try:
                self._on_failure(failure)
            except Exception:
                logger.exception("on_failure hook raised for %s", failure.record_id)
        return failure

    def _finish_one(self) -> None:
        self._outstanding -= 1
        if self._outstanding == 0:
            self._idle.set()

    async def flush(self) -> None:
        """Wait until every submitted mutation has finished."""
        await self._idle.wait()

    async def shutdown(self, timeout: float | None = 10.0) -> None:
        """Stop accepting work, wait for queued mutations, then stop workers.

        Args:
            timeout: Seconds to wait for queued work. Workers still running
                afterwards are cancelled, and mutations still queued behind
                them resolve to zero-attempt failures without running.
                None waits indefinitely.
        """
        self._closed = True
        try:
            await asyncio.wait_for(self.flush(), timeout)
        except TimeoutError:
            logger.warning("Dispatcher shutdown timed out with %d mutation(s) outstanding", self._outstanding)

        workers = [s.worker for s in self._keys.values() if s.worker is not None and not s.worker.done()]
        for worker in workers:
            worker.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)

        for key, state in list(self._keys.items()):
            await self._abandon(key, state)
        self._keys.clear()
        self.stats.active_keys = 0

    async def _abandon(self, key: str, state: _KeyState) -> None:
        # pending also counts submitters blocked on a full queue; each one
        # lands its job once space frees up, so keep draining until none remain.
        while state.pending > 0:
            try:
                job = state.queue.get_nowait()
            except asyncio.QueueEmpty:
                await asyncio.sleep(0)
                continue
            failure = IndexSyncFailure(job.operation, key, 0, RuntimeError("dispatcher shut down before it ran"))
            job.done.set_result(self._record(failure))
            state.pending -= 1
            state.queue.task_done()
            self._finish_one()
