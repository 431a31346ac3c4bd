"""Domain objects for the Jarvis connector.

Defines the value types passed between the poller, the work queues and
the dispatchers:
- CheckStatus: Check states reported back to the checks plugin
- PendingCheckItem: A patch set with outstanding checker obligations
- PendingSubmitItem: An open change that is a merge candidate
- CheckInput / CheckerInput / CheckerInfo: Checks plugin request/response records
- TriggerPayload / TriggerResult: Pipeline trigger request and acknowledgement
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class CheckStatus(str, Enum):
    """Status of a single checker on a patch set.

    Values are the state names understood by the checks plugin. Only
    RUNNING is posted as an intermediate state; every execution ends
    with exactly one of SUCCESSFUL, FAILED or IRRELEVANT.
    """

    UNSET = "UNSET"
    RUNNING = "RUNNING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    IRRELEVANT = "NOT_RELEVANT"

    @property
    def is_terminal(self) -> bool:
        """Whether this status ends a check execution."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    CheckStatus.SUCCESSFUL,
    CheckStatus.FAILED,
    CheckStatus.IRRELEVANT,
})


class TriggerIntent(str, Enum):
    """Value of the ``X-Jarvis`` header sent to the pipeline trigger."""

    CREATE = "create"
    MERGE = "merge"


@dataclass(frozen=True)
class PendingCheckItem:
    """One review patch set with one or more outstanding checkers.

    Attributes:
        repository: Gerrit project name
        change_number: Numeric change id
        patch_set_id: Patch set number the checks apply to
        checker_uuids: Distinct checker UUIDs, in the order Gerrit listed them
    """

    repository: str
    change_number: int
    patch_set_id: int
    checker_uuids: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.repository}~{self.change_number}/{self.patch_set_id}"


@dataclass(frozen=True)
class PendingSubmitItem:
    """An open change that may be ready to merge.

    Attributes:
        change_id: Gerrit change identifier used in REST paths
        project: Gerrit project name
        change_number: Numeric change id
        current_revision_ref: Git ref of the current patch set
        revision_number: Patch set number of the current revision
        mergeable: Gerrit reports no merge conflicts
        submittable: All submit requirements are satisfied
        lock_label_approved: The lock label already carries an approval
        hashtags: Hashtags currently set on the change
    """

    change_id: str
    project: str
    change_number: int
    current_revision_ref: str
    revision_number: int
    mergeable: bool = False
    submittable: bool = False
    lock_label_approved: bool = False
    hashtags: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.project}~{self.change_number}/{self.revision_number}"


@dataclass
class CheckInput:
    """Body posted to ``a/changes/{change}/revisions/{patchset}/checks/``."""

    checker_uuid: str
    state: CheckStatus
    message: str = ""
    url: str = ""
    started: Optional[datetime] = None


@dataclass
class CheckerInput:
    """Body posted to create or update a checker.

    Attributes:
        uuid: Checker UUID (``scheme:prefix-digest``)
        name: Display name, the handler prefix
        description: Free text shown in the Gerrit UI
        url: Link shown next to the checker
        repository: Project the checker applies to
        status: ``ENABLED`` or ``DISABLED``
        blocking: Submit-blocking conditions
        query: Change query selecting relevant changes
    """

    uuid: str
    name: str
    repository: str
    description: str = ""
    url: str = ""
    status: str = "ENABLED"
    blocking: list[str] = field(default_factory=list)
    query: str = "status:open"

    def to_dict(self) -> dict:
        """Convert to the checks plugin JSON representation."""
        return {
            "uuid": self.uuid,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "repository": self.repository,
            "status": self.status,
            "blocking": list(self.blocking),
            "query": self.query,
        }


@dataclass
class CheckerInfo:
    """A checker as returned by the checks plugin."""

    uuid: str
    name: str = ""
    description: str = ""
    url: str = ""
    repository: str = ""
    status: str = ""
    blocking: list[str] = field(default_factory=list)
    query: str = ""
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass(frozen=True)
class TriggerPayload:
    """Job-trigger request body sent to the pipeline endpoint.

    Attributes:
        repo_root: Base URL of the Gerrit server the pipeline clones from
        project: Gerrit project name
        change_number: Change number, always sent as a string
        patch_set_number: Patch set number; an int for checks, a string for merges
        checker_uuid: Checker the job reports against (may be empty for merges)
    """

    repo_root: str
    project: str
    change_number: str
    patch_set_number: int | str
    checker_uuid: str = ""

    def to_dict(self) -> dict:
        """Convert to the JSON body expected by the event listener."""
        return {
            "repoRoot": self.repo_root,
            "project": self.project,
            "changeNumber": self.change_number,
            "patchSetNumber": self.patch_set_number,
            "checkerUUID": self.checker_uuid,
        }


@dataclass
class TriggerResult:
    """Acknowledgement returned by the pipeline trigger."""

    messages: list[str] = field(default_factory=list)
    details_url: str = ""
