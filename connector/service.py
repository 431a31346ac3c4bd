"""ConnectorService: runs the poll loop and both queue workers.

Follows the same start/stop lifecycle as the other long-lived services:
    service = ConnectorService(gerrit, trigger)
    service.start()   # spawns the poller and the two workers
    ...
    service.stop()    # signals all threads and joins them
"""

import logging
import threading
from typing import Optional

from config.settings import ConnectorConfig
from connector.dispatch.checks import CheckDispatcher
from connector.dispatch.poller import PollLoop
from connector.dispatch.queue import BoundedWorkQueue
from connector.dispatch.submissions import SubmissionDispatcher
from connector.domain import PendingCheckItem, PendingSubmitItem
from connector.gerrit.client import GerritClient
from connector.pipeline import PipelineTriggerClient

logger = logging.getLogger(__name__)


class ConnectorService:
    """Wires the dispatch engine together and owns its threads.

    Three threads of control for the whole process: one poller and one
    worker per queue. Each worker handles its queue strictly one item at
    a time.
    """

    def __init__(
        self,
        gerrit: GerritClient,
        trigger: PipelineTriggerClient,
        config: Optional[ConnectorConfig] = None,
    ) -> None:
        config = config or ConnectorConfig()
        self.config = config

        self.check_queue: BoundedWorkQueue[PendingCheckItem] = BoundedWorkQueue(
            "pending check", capacity=config.check_queue_size,
        )
        self.submit_queue: BoundedWorkQueue[PendingSubmitItem] = BoundedWorkQueue(
            "pending submission", capacity=config.submit_queue_size,
        )
        self.checks = CheckDispatcher(
            gerrit,
            trigger,
            scheme=config.scheme,
            running_message=config.running_message,
        )
        self.submissions = SubmissionDispatcher(
            gerrit,
            trigger,
            lock_mode=config.lock_mode,
            lock_label=config.lock_label,
            merge_hashtag=config.merge_hashtag,
        )
        self.poller = PollLoop(
            gerrit,
            self.check_queue,
            self.submit_queue,
            self.submissions,
            scheme=config.scheme,
            interval=config.poll_interval,
        )

        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._started = False

    @property
    def is_running(self) -> bool:
        """Check if the service threads have been started and not stopped."""
        return self._started

    def start(self) -> None:
        """Start the poller and both workers in daemon threads."""
        if self._started:
            logger.warning("ConnectorService already started")
            return

        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self.check_queue.drain,
                args=(self.checks.execute, self._stop_event),
                name="check-worker",
                daemon=True,
            ),
            threading.Thread(
                target=self.submit_queue.drain,
                args=(self.submissions.execute, self._stop_event),
                name="submit-worker",
                daemon=True,
            ),
            threading.Thread(
                target=self.poller.run,
                args=(self._stop_event,),
                name="poller",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()

        self._started = True
        logger.info(
            "ConnectorService started (scheme=%s, poll_interval=%.1fs)",
            self.config.scheme, self.config.poll_interval,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Signal all threads to stop and wait up to *timeout* seconds for each.

        A worker blocked in an HTTP call finishes that call first.
        """
        if not self._started:
            return

        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Thread %s did not stop within %.1fs", thread.name, timeout)

        self._threads = []
        self._started = False
        logger.info("ConnectorService stopped")
