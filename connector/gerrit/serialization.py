"""JSON mapping between Gerrit REST responses and connector domain objects.

Gerrit prefixes every JSON response with ``)]}'`` to defeat cross-site
script inclusion; :func:`unmarshal` strips it before parsing.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from connector.domain import (
    CheckInput,
    CheckerInfo,
    PendingCheckItem,
    PendingSubmitItem,
)
from connector.errors import GerritProtocolError

logger = logging.getLogger(__name__)

JSON_PREFIX = b")]}'"

# Gerrit timestamps use a space separator and nanosecond precision.
_TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S.%f"


def unmarshal(content: bytes | str) -> Any:
    """Parse a Gerrit JSON body, stripping the security prefix.

    Args:
        content: Raw response body

    Returns:
        Parsed JSON value

    Raises:
        GerritProtocolError: If the prefix is missing or the JSON is invalid
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    if not content.startswith(JSON_PREFIX):
        snippet = content[:100]
        raise GerritProtocolError(
            f"prefix {JSON_PREFIX.decode()!r} not found, got {snippet.decode('utf-8', 'replace')}",
            body=snippet,
        )

    try:
        return json.loads(content[len(JSON_PREFIX):])
    except ValueError as exc:
        raise GerritProtocolError(f"invalid JSON after prefix: {exc}", body=content[:100]) from exc


def format_timestamp(value: datetime) -> str:
    """Format a datetime in Gerrit's ``YYYY-MM-DD HH:MM:SS.nnnnnnnnn`` layout (UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(_TIMESTAMP_FMT) + "000"


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse a Gerrit timestamp into an aware UTC datetime.

    Nanoseconds are truncated to microseconds. Returns ``None`` for
    missing or unparseable values.
    """
    if not raw:
        return None
    head, _, frac = raw.partition(".")
    try:
        dt = datetime.strptime(f"{head}.{(frac or '0')[:6]}", _TIMESTAMP_FMT)
    except ValueError:
        logger.warning("Unparseable Gerrit timestamp %r", raw)
        return None
    return dt.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Checks plugin
# ---------------------------------------------------------------------------


def check_input_to_dict(check: CheckInput) -> dict:
    """Convert a CheckInput to the checks plugin JSON body."""
    body = {
        "checker_uuid": check.checker_uuid,
        "state": check.state.value,
        "message": check.message,
        "url": check.url,
    }
    if check.started is not None:
        body["started"] = format_timestamp(check.started)
    return body


def pending_checks_from_json(data: list[dict]) -> list[PendingCheckItem]:
    """Map a ``checks.pending`` response to PendingCheckItems."""
    items = []
    for entry in data or []:
        patch_set = entry.get("patch_set") or {}
        pending = entry.get("pending_checks") or {}
        items.append(PendingCheckItem(
            repository=patch_set.get("repository", ""),
            change_number=int(patch_set.get("change_number", 0)),
            patch_set_id=int(patch_set.get("patch_set_id", 0)),
            checker_uuids=tuple(dict.fromkeys(pending)),
        ))
    return items


def checker_from_dict(data: dict) -> CheckerInfo:
    """Map a checks plugin CheckerInfo JSON object."""
    return CheckerInfo(
        uuid=data.get("uuid", ""),
        name=data.get("name", ""),
        description=data.get("description", ""),
        url=data.get("url", ""),
        repository=data.get("repository", ""),
        status=data.get("status", ""),
        blocking=list(data.get("blocking") or []),
        query=data.get("query", ""),
        created=parse_timestamp(data.get("created")),
        updated=parse_timestamp(data.get("updated")),
    )


def checker_to_dict(checker: CheckerInfo) -> dict:
    """Convert a CheckerInfo back to JSON, e.g. for ``--list`` output."""
    return {
        "uuid": checker.uuid,
        "name": checker.name,
        "description": checker.description,
        "url": checker.url,
        "repository": checker.repository,
        "status": checker.status,
        "blocking": checker.blocking,
        "query": checker.query,
        "created": format_timestamp(checker.created) if checker.created else None,
        "updated": format_timestamp(checker.updated) if checker.updated else None,
    }


# ---------------------------------------------------------------------------
# Changes
# ---------------------------------------------------------------------------


def pending_submission_from_dict(data: dict, lock_label: str) -> PendingSubmitItem:
    """Map a ChangeInfo (queried with CURRENT_REVISION, SUBMITTABLE, LABELS).

    Args:
        data: ChangeInfo JSON object
        lock_label: Name of the label used as the lock marker

    Returns:
        PendingSubmitItem
    """
    current = data.get("current_revision", "")
    revision = (data.get("revisions") or {}).get(current) or {}
    label = (data.get("labels") or {}).get(lock_label) or {}
    approved = label.get("approved") or {}

    return PendingSubmitItem(
        change_id=data.get("change_id") or data.get("id", ""),
        project=data.get("project", ""),
        change_number=int(data.get("_number", 0)),
        current_revision_ref=revision.get("ref", ""),
        revision_number=int(revision.get("_number", 0)),
        mergeable=bool(data.get("mergeable", False)),
        submittable=bool(data.get("submittable", False)),
        lock_label_approved=bool(approved.get("_account_id", 0)),
        hashtags=tuple(data.get("hashtags") or ()),
    )
