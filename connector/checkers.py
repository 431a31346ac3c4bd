"""Checker registration and listing for the connector's scheme."""

import logging

from connector import identity
from connector.domain import CheckerInfo, CheckerInput
from connector.gerrit.client import GerritClient

logger = logging.getLogger(__name__)

CHECKER_DESCRIPTION = "check source code formatting."
BLOCKING_CONDITION = "STATE_NOT_PASSING"


class CheckerRegistry:
    """Manages the checkers this connector owns on a Gerrit server."""

    def __init__(self, gerrit: GerritClient, scheme: str = identity.DEFAULT_SCHEME) -> None:
        self._gerrit = gerrit
        self.scheme = scheme

    def list_checkers(self) -> list[CheckerInfo]:
        """Return the checkers of our scheme whose UUID decodes to a prefix."""
        owned = [c for c in self._gerrit.list_checkers() if identity.is_owned(c.uuid, self.scheme)]
        logger.debug("Found %d checker(s) for scheme=%s", len(owned), self.scheme)
        return owned

    def post_checker(
        self,
        repository: str,
        prefix: str,
        update: bool = False,
        blocking: bool = True,
    ) -> CheckerInfo:
        """Create (or update) the checker for *prefix* on *repository*.

        Args:
            repository: Gerrit project the checker applies to
            prefix: Handler prefix, also the checker name
            update: Update the existing checker instead of creating one
            blocking: Block submission while the check is not passing

        Returns:
            CheckerInfo as stored by Gerrit
        """
        checker_id = identity.encode(repository, prefix, self.scheme)
        checker = CheckerInput(
            uuid=checker_id.uuid,
            name=prefix,
            repository=repository,
            description=CHECKER_DESCRIPTION,
            blocking=[BLOCKING_CONDITION] if blocking else [],
        )
        return self._gerrit.post_checker(checker, update=update)
