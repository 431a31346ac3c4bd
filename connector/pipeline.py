"""HTTP client for the pipeline trigger (Tekton EventListener).

The same endpoint receives both check and merge triggers; the
``X-Jarvis`` header tells the listener which pipeline to start.
"""

import json
import logging
from typing import Optional

import httpx

from connector.domain import TriggerIntent, TriggerPayload, TriggerResult
from connector.errors import IrrelevantCheckError, PipelineProtocolError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30.0

SUBMITTED_MESSAGE = "Job has been submitted to tekton"


class PipelineTriggerClient:
    """Posts job-trigger payloads to the event listener URL."""

    def __init__(
        self,
        url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the trigger client.

        Args:
            url: Event listener URL
            timeout: HTTP request timeout in seconds
            transport: Optional transport override (tests)
        """
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)
        logger.info("PipelineTriggerClient initialized: url=%s", self.url)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def trigger_check(self, payload: TriggerPayload) -> TriggerResult:
        """Start the check pipeline for a patch set.

        Raises:
            IrrelevantCheckError: The listener reports the check does not apply
            PipelineProtocolError: The acknowledgement has malformed fields
            httpx.HTTPError: On transport failures and non-2xx responses
        """
        return self._trigger(payload, TriggerIntent.CREATE)

    def trigger_merge(self, payload: TriggerPayload) -> TriggerResult:
        """Start the merge pipeline for a submittable change."""
        return self._trigger(payload, TriggerIntent.MERGE)

    def _trigger(self, payload: TriggerPayload, intent: TriggerIntent) -> TriggerResult:
        body = payload.to_dict()
        logger.debug("POST %s intent=%s body=%s", self.url, intent.value, body)
        response = self._client.post(
            self.url,
            content=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json", "X-Jarvis": intent.value},
        )
        response.raise_for_status()
        result = _parse_acknowledgement(response, payload.checker_uuid)
        logger.info(
            "Triggered %s pipeline for %s change=%s ps=%s (%d message(s))",
            intent.value, payload.project, payload.change_number,
            payload.patch_set_number, len(result.messages),
        )
        return result


def _parse_acknowledgement(response: httpx.Response, checker_uuid: str) -> TriggerResult:
    """Turn a 2xx listener response into a TriggerResult.

    A JSON object may carry ``irrelevant``, ``messages`` and ``detailsURL``.
    Any other body (the stock EventListener reply included) counts as a
    plain submission acknowledgement.

    Raises:
        IrrelevantCheckError: The listener reports the check does not apply
        PipelineProtocolError: ``messages`` is not a list or ``detailsURL`` is not a string
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        return TriggerResult(messages=[SUBMITTED_MESSAGE])

    if data.get("irrelevant"):
        raise IrrelevantCheckError(checker_uuid)

    details_url = data.get("detailsURL", "")
    if not isinstance(details_url, str):
        raise PipelineProtocolError(f"detailsURL must be a string, got {details_url!r}")

    if "messages" not in data:
        return TriggerResult(messages=[SUBMITTED_MESSAGE], details_url=details_url)

    messages = data["messages"]
    if not isinstance(messages, list):
        raise PipelineProtocolError(f"messages must be a list, got {messages!r}")

    return TriggerResult(messages=[str(m) for m in messages], details_url=details_url)
