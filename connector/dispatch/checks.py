"""Check execution state machine.

For every checker UUID on a pending patch set the dispatcher posts
RUNNING, triggers the check pipeline, and posts exactly one terminal
state. Posting failures and undecodable UUIDs abort the whole item; the
next poll rediscovers it because Gerrit still lists it as pending.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from connector import identity
from connector.domain import CheckInput, CheckStatus, PendingCheckItem, TriggerPayload, TriggerResult
from connector.errors import ConnectorError, IrrelevantCheckError, MalformedCheckerUUIDError
from connector.gerrit.client import GerritClient
from connector.pipeline import PipelineTriggerClient

logger = logging.getLogger(__name__)

RUNNING_MESSAGE = "Jarvis about to submit job to tekton"
MAX_MESSAGE_LENGTH = 1000
TRUNCATED_LENGTH = 995
ELLIPSIS = "..."


def format_message(messages: list[str]) -> str:
    """Join acknowledgement messages for the terminal check post.

    Messages longer than 1000 characters are cut to 995 characters
    followed by ``...``.
    """
    msg = ", ".join(messages)
    if len(msg) > MAX_MESSAGE_LENGTH:
        msg = msg[:TRUNCATED_LENGTH] + ELLIPSIS
    return msg


class CheckDispatcher:
    """Executes pending checks against the pipeline trigger.

    Clients are injected so the dispatcher can be driven with fakes.
    """

    def __init__(
        self,
        gerrit: GerritClient,
        trigger: PipelineTriggerClient,
        scheme: str = identity.DEFAULT_SCHEME,
        running_message: str = RUNNING_MESSAGE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            gerrit: Review client used to post check states
            trigger: Pipeline trigger client
            scheme: Checker scheme owned by this connector
            running_message: Message posted with the RUNNING state
            clock: Returns the RUNNING start time (defaults to now, UTC)
        """
        self._gerrit = gerrit
        self._trigger = trigger
        self._scheme = scheme
        self._running_message = running_message
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def execute(self, item: PendingCheckItem) -> None:
        """Run every pending checker on *item*, in order.

        Raises:
            httpx.HTTPError: A status post failed; remaining checkers are skipped
            GerritProtocolError: A status post returned an unexpected body
            MalformedCheckerUUIDError: A checker UUID has no decodable prefix
        """
        logger.info("Checking %s (%d checker(s))", item, len(item.checker_uuids))
        change_id = str(item.change_number)

        for uuid in item.checker_uuids:
            self._gerrit.post_check(change_id, item.patch_set_id, CheckInput(
                checker_uuid=uuid,
                state=CheckStatus.RUNNING,
                message=self._running_message,
                started=self._clock(),
            ))

            prefix, ok = identity.decode(uuid, self._scheme)
            if not ok:
                raise MalformedCheckerUUIDError(uuid)

            status, result = self._run_trigger(item, uuid, prefix)
            logger.info("status %s for prefix %s on %s", status.value, prefix, item)

            self._gerrit.post_check(change_id, item.patch_set_id, CheckInput(
                checker_uuid=uuid,
                state=status,
                message=format_message(result.messages),
                url=result.details_url,
            ))

    def _run_trigger(
        self, item: PendingCheckItem, uuid: str, prefix: str,
    ) -> tuple[CheckStatus, TriggerResult]:
        """Trigger the check pipeline and map the outcome to a terminal state."""
        payload = TriggerPayload(
            repo_root=self._gerrit.repo_root,
            project=item.repository,
            change_number=str(item.change_number),
            patch_set_number=item.patch_set_id,
            checker_uuid=uuid,
        )
        try:
            result = self._trigger.trigger_check(payload)
        except IrrelevantCheckError:
            return CheckStatus.IRRELEVANT, TriggerResult()
        except (httpx.HTTPError, ConnectorError) as exc:
            logger.error(
                "failed in attempt to schedule check (%s, %d, %d, %r): %s",
                uuid, item.change_number, item.patch_set_id, prefix, exc,
            )
            return CheckStatus.FAILED, TriggerResult()

        if not result.messages:
            # An empty acknowledgement cannot be told apart from a silent failure.
            logger.error(
                "message empty for check (%s, %d, %d, %r)",
                uuid, item.change_number, item.patch_set_id, prefix,
            )
            return CheckStatus.FAILED, result

        return CheckStatus.SUCCESSFUL, result
