"""
Synth Backend: Publish Scheduler
=================================

What:  Publishes snippets and, after a fixed delay, makes them downloadable.
How:   Publishing stores a ScheduledTask record ("snippet.downloadable", due
       at publish time + delay) in the EntityStore. A recurring sweep,
       started by the application lifespan, completes every task that has
       come due.
Who:   The lifespan owns the background loop; route handlers (or tests)
       call publish() and sweep() directly.

Lifecycle of one snippet:
    create (draft) ──publish()──▶ published, task pending
                                   │
                          sweep() at/after due_at
                                   ▼
                         downloadable=True, task done

Tasks are ordinary store records, so they are captured by snapshots and a
restart does not lose them: the first sweep after startup completes any
task that came due while the process was down.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from synth.exceptions import NotFoundError
from synth.models.entities import ScheduledTask
from synth.models.views import SnippetView
from synth.schemas.inserts import InsertScheduledTask
from synth.storage.store import EntityStore

logger = logging.getLogger(__name__)

MAKE_DOWNLOADABLE = "snippet.downloadable"


class PublishScheduler:
    """
    Args:
        store:          The store holding snippets and scheduled tasks
        delay_seconds:  Time between publishing and becoming downloadable
    """

    def __init__(self, store: EntityStore, delay_seconds: int):
        self.store = store
        self.delay = timedelta(seconds=delay_seconds)
        # publish() is check-then-act across store calls
        self._publish_lock = threading.Lock()

    def publish(self, snippet_id: int) -> SnippetView:
        """
        Publish a draft snippet and schedule its downloadable transition.

        Publishing an already published snippet changes nothing and
        schedules nothing. Either way the snippet is returned enriched, as
        get_snippet returns it.

        Raises:
            NotFoundError: If the snippet does not exist.
        """
        with self._publish_lock:
            snippet = self.store.get_snippet(snippet_id)
            if snippet is None:
                raise NotFoundError(resource="snippet", resource_id=snippet_id)

            if snippet.is_published:
                logger.debug("Snippet %d already published at %s", snippet_id, snippet.published_at)
                return snippet

            published_at = self.store.now()
            self.store.update_snippet(snippet_id, published_at=published_at)
            self.schedule_downloadable(snippet_id, published_at)
            published = self.store.get_snippet(snippet_id)
        logger.info("Published snippet %d", snippet_id)
        return published

    def schedule_downloadable(self, snippet_id: int, published_at: datetime) -> ScheduledTask:
        """Create the task that flips `downloadable` once the delay has elapsed."""
        return self.store.create_scheduled_task(
            InsertScheduledTask(
                kind=MAKE_DOWNLOADABLE,
                target_id=snippet_id,
                due_at=published_at + self.delay,
            )
        )

    def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Complete every pending task due at or before `now`.

        A task whose snippet no longer exists is completed anyway (with a
        warning) so it is not retried forever. Unknown task kinds are left
        pending.

        Returns:
            Number of tasks completed.
        """
        now = now or self.store.now()
        completed = 0
        for task in self.store.get_due_tasks(now):
            if task.kind != MAKE_DOWNLOADABLE:
                logger.warning("Skipping task %d with unknown kind %r", task.id, task.kind)
                continue

            if self.store.update_snippet(task.target_id, downloadable=True) is None:
                logger.warning(
                    "Task %d targets missing snippet %d; marking done",
                    task.id,
                    task.target_id,
                )
            else:
                logger.info("Snippet %d is now downloadable", task.target_id)

            self.store.complete_scheduled_task(task.id, now)
            completed += 1

        if completed:
            logger.info("Sweep completed %d scheduled task(s)", completed)
        return completed

    async def run_forever(
        self,
        interval_seconds: float,
        on_change: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        """
        Sweep every `interval_seconds` until cancelled.

        A failing sweep is logged and the loop carries on. `on_change` is an
        optional coroutine function awaited after a sweep that completed at
        least one task (the lifespan uses it to save a snapshot).
        """
        logger.info("Publish sweep running every %ss", interval_seconds)
        while True:
            try:
                if self.sweep() and on_change is not None:
                    await on_change()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Publish sweep failed")
            await asyncio.sleep(interval_seconds)
