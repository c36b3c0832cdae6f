# bookstock/services/batch.py
"""Pausable, cancellable refresh of many books in rate-limited batches.

Each run owns a ``BatchRefreshJob`` holding its state, flags and progress,
so several jobs can exist without sharing anything.

Checkpoints:
    - between batches: cancel, then pause (polled until cleared), then the delay
    - before each item starts and before each item commits: cancel
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Set

from ..exceptions import BookstockError, RefreshCancelledError
from ..models import CanonicalBook
from .notifications import Notifier
from .store import LibraryStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY = 1.0
DEFAULT_PAUSE_POLL = 0.5


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SelectionKind(str, Enum):
    RECENT = "recent"
    OLDEST = "oldest"
    RANGE = "range"
    ALL = "all"
    ERRORED = "errored"


@dataclass(frozen=True)
class RefreshSelection:
    """Which books a run covers. Ranges index the newest-first library, end exclusive."""
    kind: SelectionKind
    count: Optional[int] = None
    start: int = 0
    end: Optional[int] = None

    @classmethod
    def recent(cls, count: int) -> "RefreshSelection":
        return cls(SelectionKind.RECENT, count=count)

    @classmethod
    def oldest(cls, count: int) -> "RefreshSelection":
        return cls(SelectionKind.OLDEST, count=count)

    @classmethod
    def index_range(cls, start: int, end: int) -> "RefreshSelection":
        if start < 0 or end < start:
            raise ValueError(f"Invalid range {start}:{end}")
        return cls(SelectionKind.RANGE, start=start, end=end)

    @classmethod
    def all(cls) -> "RefreshSelection":
        return cls(SelectionKind.ALL)

    @classmethod
    def errored(cls) -> "RefreshSelection":
        return cls(SelectionKind.ERRORED)

    def resolve(self, store: LibraryStore) -> List[CanonicalBook]:
        newest_first = store.by_added(newest_first=True)
        if self.kind == SelectionKind.RECENT:
            return newest_first[:self.count]
        if self.kind == SelectionKind.OLDEST:
            return store.by_added(newest_first=False)[:self.count]
        if self.kind == SelectionKind.RANGE:
            return newest_first[self.start:self.end]
        if self.kind == SelectionKind.ERRORED:
            return [book for book in newest_first if book.has_source_errors]
        return newest_first


@dataclass
class BatchProgress:
    current: int = 0
    total: int = 0
    succeeded: int = 0
    failed_ids: List[int] = field(default_factory=list)
    batch_index: int = 0
    batch_count: int = 0


@dataclass
class BatchRefreshSummary:
    succeeded: int
    failed_ids: List[int]
    total: int
    cancelled: bool = False

    @property
    def is_hard_failure(self) -> bool:
        """Nothing succeeded although there was work: the sources are most likely unreachable"""
        return not self.cancelled and self.total > 0 and self.succeeded == 0

    @property
    def message(self) -> str:
        failed = len(self.failed_ids)
        if self.cancelled:
            return f"Refresh cancelled: {self.succeeded} succeeded, {failed} failed"
        if self.total == 0:
            return "Nothing to refresh"
        if self.is_hard_failure:
            return f"Refresh failed for all {self.total} books: library service unavailable"
        if failed:
            return f"{self.succeeded} succeeded, {failed} failed"
        return f"Refreshed {self.succeeded} books"


@dataclass
class BatchCallbacks:
    on_progress: Optional[Callable[[BatchProgress], None]] = None
    on_complete: Optional[Callable[[BatchRefreshSummary], None]] = None
    should_pause: Optional[Callable[[], bool]] = None
    should_cancel: Optional[Callable[[], bool]] = None


class BatchRefreshJob:
    """State of one batch run; pause, resume and cancel are observed by the controller"""

    def __init__(self, callbacks: Optional[BatchCallbacks] = None):
        self.callbacks = callbacks or BatchCallbacks()
        self.state = JobState.IDLE
        self.progress = BatchProgress()
        self.pending_ids: Set[int] = set()
        self.removed_ids: Set[int] = set()
        self.started_ids: List[int] = []
        self.completed_ids: Set[int] = set()
        self._pause_requested = False
        self._cancel_requested = False

    def pause(self) -> None:
        self._pause_requested = True

    def resume(self) -> None:
        self._pause_requested = False

    def cancel(self) -> None:
        self._cancel_requested = True

    @property
    def pause_requested(self) -> bool:
        should_pause = self.callbacks.should_pause
        return self._pause_requested or bool(should_pause and should_pause())

    @property
    def cancel_requested(self) -> bool:
        should_cancel = self.callbacks.should_cancel
        return self._cancel_requested or bool(should_cancel and should_cancel())

    def discard(self, book_id: int) -> None:
        """Forget a book removed from the library while the run is active"""
        if book_id in self.removed_ids or book_id in self.completed_ids:
            return
        if book_id in self.pending_ids or book_id in self.started_ids:
            self.pending_ids.discard(book_id)
            self.removed_ids.add(book_id)
            self.progress.total -= 1


class BatchRefreshController:
    def __init__(
        self,
        store: LibraryStore,
        refresher,
        loader: Optional[Callable[[], Awaitable[object]]] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        pause_poll: float = DEFAULT_PAUSE_POLL,
        notifier: Optional[Notifier] = None
    ):
        """
        Args:
            store: Library state the working list is selected from
            refresher: Object with an async ``refresh_book`` like ``StockRefresher``
            loader: Coroutine function loading the whole library when it is not resident
            batch_size: Books refreshed concurrently per batch
            batch_delay: Seconds to wait between batches
            pause_poll: Seconds between pause flag checks
            notifier: Receives the completion summary
        """
        self.store = store
        self.refresher = refresher
        self.loader = loader
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.pause_poll = pause_poll
        self.notifier = notifier

    async def run(
        self,
        selection: RefreshSelection,
        callbacks: Optional[BatchCallbacks] = None,
        job: Optional[BatchRefreshJob] = None
    ) -> BatchRefreshSummary:
        """
        Refresh the selected books batch by batch.

        Args:
            selection: Which books to refresh, resolved once at start
            callbacks: Progress, completion, pause and cancel hooks
            job: Job to drive, so the caller can pause or cancel it

        Returns:
            Summary of the run, also passed to ``on_complete``
        """
        job = job or BatchRefreshJob()
        if callbacks is not None:
            job.callbacks = callbacks
        if job.state != JobState.IDLE:
            raise ValueError(f"Job already {job.state.value}")

        job.state = JobState.RUNNING
        if not self.store.is_loaded and self.loader is not None:
            await self.loader()

        working = [book.id for book in selection.resolve(self.store)]
        batches = [working[i:i + self.batch_size] for i in range(0, len(working), self.batch_size)]
        job.pending_ids = set(working)
        job.progress.total = len(working)
        job.progress.batch_count = len(batches)
        logger.info(f"Batch refresh of {len(working)} books in {len(batches)} batches ({selection.kind.value})")

        self.store.add_removal_listener(job.discard)
        try:
            for index, batch in enumerate(batches):
                if index > 0 and not await self._between_batches(job):
                    break
                if job.cancel_requested:
                    break
                job.progress.batch_index = index + 1
                await asyncio.gather(*(self._run_item(job, book_id) for book_id in batch))
        finally:
            self.store.remove_removal_listener(job.discard)

        cancelled = job.cancel_requested
        job.state = JobState.CANCELLED if cancelled else JobState.COMPLETED
        summary = BatchRefreshSummary(
            succeeded=job.progress.succeeded,
            failed_ids=list(job.progress.failed_ids),
            total=job.progress.total,
            cancelled=cancelled,
        )
        logger.info(f"Batch refresh {job.state.value}: {summary.message}")
        self._report(summary)
        if job.callbacks.on_complete:
            job.callbacks.on_complete(summary)
        return summary

    async def _between_batches(self, job: BatchRefreshJob) -> bool:
        """Wait out a pause or the inter-batch delay; False means stop"""
        if job.cancel_requested:
            return False
        if job.pause_requested:
            job.state = JobState.PAUSED
            logger.info(f"Batch refresh paused at {job.progress.current}/{job.progress.total}")
            while job.pause_requested and not job.cancel_requested:
                await asyncio.sleep(self.pause_poll)
            if job.cancel_requested:
                return False
            job.state = JobState.RUNNING
            logger.info("Batch refresh resumed")
        else:
            await asyncio.sleep(self.batch_delay)
        return not job.cancel_requested

    async def _run_item(self, job: BatchRefreshJob, book_id: int) -> None:
        if job.cancel_requested or book_id not in job.pending_ids:
            return
        book = self.store.get(book_id)
        if book is None:
            job.discard(book_id)
            return

        job.pending_ids.discard(book_id)
        job.started_ids.append(book_id)
        try:
            succeeded = await self.refresher.refresh_book(
                book.id, book.isbn13, book.title, book.author,
                cancel_check=lambda: job.cancel_requested,
                notify=False,
            )
        except RefreshCancelledError:
            return
        except BookstockError as e:
            logger.error(f"Refresh of book {book_id} failed: {e}")
            succeeded = False

        if job.cancel_requested or book_id in job.removed_ids:
            return

        job.completed_ids.add(book_id)
        job.progress.current += 1
        if succeeded:
            job.progress.succeeded += 1
        else:
            job.progress.failed_ids.append(book_id)
        if job.callbacks.on_progress:
            job.callbacks.on_progress(job.progress)

    def _report(self, summary: BatchRefreshSummary) -> None:
        if self.notifier is None:
            return
        if summary.is_hard_failure:
            self.notifier.error(summary.message)
        elif summary.failed_ids or summary.cancelled:
            self.notifier.warning(summary.message)
        elif summary.total:
            self.notifier.success(summary.message)
