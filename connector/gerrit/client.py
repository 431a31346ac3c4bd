"""HTTP client for the Gerrit REST API and its checks plugin.

All paths are relative to the configured Gerrit URL and use the
authenticated ``a/`` prefix. Every method raises ``httpx.HTTPError`` on
transport failures and non-2xx responses, and ``GerritProtocolError``
when a body is not prefixed JSON; callers decide whether that aborts
their current item.
"""

import json
import logging
from typing import Any, Optional

import httpx

from connector.domain import (
    CheckInput,
    CheckerInfo,
    CheckerInput,
    PendingCheckItem,
    PendingSubmitItem,
)
from connector.gerrit.serialization import (
    check_input_to_dict,
    checker_from_dict,
    pending_checks_from_json,
    pending_submission_from_dict,
    unmarshal,
)

logger = logging.getLogger(__name__)

# Default timeout for HTTP calls (seconds)
_DEFAULT_TIMEOUT = 30.0

DEFAULT_USER_AGENT = "JarvisConnector"
DEFAULT_LOCK_LABEL = "Jarvis-Lock"
CHECKERS_PATH = "a/plugins/checks/checkers/"


class GerritClient:
    """Authenticated client for the endpoints the connector needs.

    Used by the poller to discover pending work, by the dispatchers to
    report check states and lock changes, and by the CLI to manage
    checkers.
    """

    def __init__(
        self,
        base_url: str,
        auth: Optional[httpx.Auth] = None,
        timeout: float = _DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        debug: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the Gerrit client.

        Args:
            base_url: Gerrit base URL (e.g. "https://review.example.com/")
            auth: Authentication applied to every request
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header value
            debug: Ask Gerrit to trace every request (``trace=0x1``)
            transport: Optional transport override (tests)
        """
        self._repo_root = base_url
        self.base_url = base_url.rstrip("/") + "/"
        self.debug = debug
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
            follow_redirects=True,
        )
        logger.info("GerritClient initialized: base_url=%s", self.base_url)

    @property
    def repo_root(self) -> str:
        """Gerrit URL exactly as configured, sent to pipelines as ``repoRoot``."""
        return self._repo_root

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "GerritClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _params(self, params: Any) -> list[tuple[str, str]]:
        pairs = list(params.items()) if isinstance(params, dict) else list(params or [])
        if self.debug:
            pairs.append(("trace", "0x1"))
        return pairs

    def _get(self, path: str, params: Any = None) -> bytes:
        """Make a GET request and return the raw body.

        Raises:
            httpx.HTTPStatusError: On 4xx/5xx responses
        """
        logger.debug("GET %s params=%s", path, params)
        response = self._client.get(path, params=self._params(params))
        response.raise_for_status()
        return response.content

    def _post(self, path: str, json_body: dict) -> bytes:
        """Make a JSON POST request and return the raw body.

        Raises:
            httpx.HTTPStatusError: On 4xx/5xx responses
        """
        logger.debug("POST %s", path)
        response = self._client.post(
            path,
            content=json.dumps(json_body).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            params=self._params(None),
        )
        response.raise_for_status()
        return response.content

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def check_access(self) -> dict:
        """Fetch the authenticated account.

        Done once at start-up: it completes any cookie handshake before
        the first POST and fails fast on bad credentials.
        """
        account = unmarshal(self._get("a/accounts/self"))
        logger.info("Authenticated to Gerrit as %s", account.get("username") or account.get("_account_id"))
        return account

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def get_pending_checks(self, scheme: str) -> list[PendingCheckItem]:
        """List patch sets with checks pending for checkers of *scheme*.

        Args:
            scheme: Checker scheme (e.g. "jarvis")

        Returns:
            List of PendingCheckItem
        """
        data = unmarshal(self._get(
            "a/plugins/checks/checks.pending/",
            params={"query": f"scheme:{scheme}"},
        ))
        items = pending_checks_from_json(data)
        logger.debug("Fetched %d pending check items for scheme=%s", len(items), scheme)
        return items

    def post_check(self, change_id: str, patch_set_id: int, check: CheckInput) -> dict:
        """Create or update a check on a patch set.

        Args:
            change_id: Change number or id
            patch_set_id: Patch set number
            check: Check state to post

        Returns:
            CheckInfo JSON returned by Gerrit
        """
        body = check_input_to_dict(check)
        result = unmarshal(self._post(
            f"a/changes/{change_id}/revisions/{patch_set_id}/checks/", body,
        ))
        logger.info(
            "Posted check %s state=%s on change=%s ps=%d",
            check.checker_uuid, check.state.value, change_id, patch_set_id,
        )
        return result

    def list_checkers(self) -> list[CheckerInfo]:
        """List every checker registered on the server, of any scheme."""
        data = unmarshal(self._get(CHECKERS_PATH))
        return [checker_from_dict(d) for d in data or []]

    def post_checker(self, checker: CheckerInput, update: bool = False) -> CheckerInfo:
        """Create a checker, or update an existing one.

        Args:
            checker: Checker definition
            update: Update the checker with this UUID instead of creating it

        Returns:
            CheckerInfo as stored by Gerrit
        """
        path = CHECKERS_PATH + (checker.uuid if update else "")
        data = unmarshal(self._post(path, checker.to_dict()))
        logger.info("%s checker %s", "Updated" if update else "Created", checker.uuid)
        return checker_from_dict(data)

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    def get_pending_submissions(self, lock_label: str = DEFAULT_LOCK_LABEL) -> list[PendingSubmitItem]:
        """List open changes with their submit state and lock label.

        No eligibility filtering happens here; see
        :meth:`SubmissionDispatcher.is_eligible`.
        """
        data = unmarshal(self._get(
            "a/changes/",
            params=[
                ("o", "CURRENT_REVISION"),
                ("o", "SUBMITTABLE"),
                ("o", "LABELS"),
                ("q", "status:open"),
            ],
        ))
        items = [pending_submission_from_dict(d, lock_label) for d in data or []]
        logger.debug("Fetched %d open changes", len(items))
        return items

    def post_lock(self, change_id: str, revision_number: int, label: str = DEFAULT_LOCK_LABEL) -> None:
        """Claim a change by voting +1 on the lock label of its current revision."""
        self._post(
            f"a/changes/{change_id}/revisions/{revision_number}/review",
            {"labels": {label: "+1"}},
        )
        logger.info("Locked change=%s revision=%d with label %s", change_id, revision_number, label)

    def add_hashtag(self, change_id: str, hashtag: str) -> None:
        """Claim a change by adding a marker hashtag."""
        self._post(f"a/changes/{change_id}/hashtags", {"add": [hashtag], "remove": []})
        logger.info("Added hashtag %s to change=%s", hashtag, change_id)
