"""Periodic poll of Gerrit for pending checks and submissions."""

import logging
import threading
from typing import Optional

from connector.dispatch.queue import BoundedWorkQueue
from connector.dispatch.submissions import SubmissionDispatcher
from connector.domain import PendingCheckItem, PendingSubmitItem
from connector.gerrit.client import GerritClient
from connector.identity import DEFAULT_SCHEME

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class PollLoop:
    """Feeds both work queues from Gerrit on a fixed interval.

    Each tick sleeps first, then queries pending checks and open changes.
    The two halves fail independently, so one endpoint being down does
    not starve the other. There is no backoff and no jitter.
    """

    def __init__(
        self,
        gerrit: GerritClient,
        check_queue: BoundedWorkQueue[PendingCheckItem],
        submit_queue: BoundedWorkQueue[PendingSubmitItem],
        submissions: SubmissionDispatcher,
        scheme: str = DEFAULT_SCHEME,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize the poll loop.

        Args:
            gerrit: Review client
            check_queue: Queue drained by the check worker
            submit_queue: Queue drained by the submission worker
            submissions: Supplies the submission eligibility predicate
            scheme: Checker scheme to query pending checks for
            interval: Seconds between ticks
        """
        self._gerrit = gerrit
        self._check_queue = check_queue
        self._submit_queue = submit_queue
        self._submissions = submissions
        self._scheme = scheme
        self.interval = interval

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Poll until *stop_event* is set (forever when not given)."""
        stop_event = stop_event or threading.Event()
        logger.info("Poll loop started (interval=%.1fs, scheme=%s)", self.interval, self._scheme)
        while not stop_event.wait(self.interval):
            self.poll_once()
        logger.info("Poll loop stopped")

    def poll_once(self) -> None:
        """Run one tick: offer pending checks, then eligible submissions."""
        self._poll_checks()
        self._poll_submissions()

    def _poll_checks(self) -> None:
        try:
            pending = self._gerrit.get_pending_checks(self._scheme)
        except Exception as exc:
            logger.error("Pending checks query failed for scheme=%s: %s", self._scheme, exc)
            return

        if not pending:
            logger.debug("no pending checks")
        else:
            logger.info("Received %d pending checks", len(pending))

        for item in pending:
            self._check_queue.offer(item)

    def _poll_submissions(self) -> None:
        try:
            changes = self._gerrit.get_pending_submissions(self._submissions.lock_label)
        except Exception as exc:
            logger.error("Pending submissions query failed: %s", exc)
            return

        eligible = self._submissions.eligible(changes)
        logger.info("Received %d pending submissions (%d open changes)", len(eligible), len(changes))

        for item in eligible:
            self._submit_queue.offer(item)
