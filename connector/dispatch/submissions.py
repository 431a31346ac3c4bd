"""Submission execution: lock a submittable change and trigger its merge.

Submission triggering is fire-and-forget. Lock and trigger failures are
logged and do not abort the sequence, and nothing is posted back to
Gerrit beyond the lock marker.
"""

import logging
from typing import Literal

import httpx

from connector.domain import PendingSubmitItem, TriggerPayload
from connector.errors import ConnectorError
from connector.gerrit.client import DEFAULT_LOCK_LABEL, GerritClient
from connector.pipeline import PipelineTriggerClient

logger = logging.getLogger(__name__)

DEFAULT_MERGE_HASHTAG = "jarvis-merge"

LockMode = Literal["label", "hashtag"]


class SubmissionDispatcher:
    """Decides which open changes to merge and triggers the merge pipeline."""

    def __init__(
        self,
        gerrit: GerritClient,
        trigger: PipelineTriggerClient,
        lock_mode: LockMode = "label",
        lock_label: str = DEFAULT_LOCK_LABEL,
        merge_hashtag: str = DEFAULT_MERGE_HASHTAG,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            gerrit: Review client
            trigger: Pipeline trigger client
            lock_mode: Mark claimed changes with a label vote or a hashtag
            lock_label: Label voted +1 in "label" mode
            merge_hashtag: Hashtag added in "hashtag" mode
        """
        if lock_mode not in ("label", "hashtag"):
            raise ValueError(f"unknown lock mode {lock_mode!r}")
        self._gerrit = gerrit
        self._trigger = trigger
        self.lock_mode = lock_mode
        self.lock_label = lock_label
        self.merge_hashtag = merge_hashtag

    def is_locked(self, item: PendingSubmitItem) -> bool:
        """Whether the change already carries this connector's lock marker."""
        return item.lock_label_approved or self.merge_hashtag in item.hashtags

    def is_eligible(self, item: PendingSubmitItem) -> bool:
        """Mergeable, submittable and not already claimed."""
        return item.mergeable and item.submittable and not self.is_locked(item)

    def eligible(self, items: list[PendingSubmitItem]) -> list[PendingSubmitItem]:
        """Filter a poll result down to the changes to queue."""
        return [item for item in items if self.is_eligible(item)]

    def execute(self, item: PendingSubmitItem) -> None:
        """Lock *item*, resolve its checker and trigger the merge pipeline.

        Never raises for lock or trigger failures.
        """
        logger.info("Submitting %s", item)
        self.post_lock(item)
        checker_uuid = self.resolve_checker(item.project)
        self.trigger_merge(item, checker_uuid)

    def post_lock(self, item: PendingSubmitItem) -> None:
        """Mark *item* as claimed. Best effort: failures are only logged."""
        # TODO: a failed lock lets the next poll queue the change again and
        # trigger a second merge; report it as a retryable failure instead.
        try:
            if self.lock_mode == "hashtag":
                self._gerrit.add_hashtag(item.change_id, self.merge_hashtag)
            else:
                self._gerrit.post_lock(item.change_id, item.revision_number, self.lock_label)
        except (httpx.HTTPError, ConnectorError) as exc:
            logger.warning(
                "Failed to lock change=%s revision=%d (%s): %s",
                item.change_id, item.revision_number, self.lock_mode, exc,
            )

    def resolve_checker(self, project: str) -> str:
        """Return the UUID of the checker registered for *project*.

        Assumes one checker per repository; the first match wins. Returns
        an empty string when none is found or the listing fails.
        """
        try:
            checkers = self._gerrit.list_checkers()
        except (httpx.HTTPError, ConnectorError) as exc:
            logger.warning("error finding relevant checker UUID for %s: %s", project, exc)
            return ""

        for checker in checkers:
            if checker.repository == project:
                return checker.uuid

        logger.debug("No checker registered for %s", project)
        return ""

    def trigger_merge(self, item: PendingSubmitItem, checker_uuid: str) -> None:
        """Post the merge trigger. Failures are only logged."""
        payload = TriggerPayload(
            repo_root=self._gerrit.repo_root,
            project=item.project,
            change_number=str(item.change_number),
            patch_set_number=str(item.revision_number),
            checker_uuid=checker_uuid,
        )
        try:
            self._trigger.trigger_merge(payload)
        except (httpx.HTTPError, ConnectorError) as exc:
            logger.warning(
                "Failed to trigger merge pipeline for %s: %s", item, exc,
            )
