"""Checker identity encoding and decoding.

A checker UUID has the form ``scheme:prefix-digest`` where ``digest`` is
the hex SHA-1 of the repository name. The scheme marks which external
system owns the checker; the prefix selects the pipeline handler.
"""

import hashlib
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "jarvis"
SEPARATOR = "-"


@dataclass(frozen=True)
class CheckerIdentity:
    """Immutable checker identity.

    Attributes:
        scheme: Namespace owning the checker (e.g. "jarvis")
        prefix: Handler prefix, also used as the checker name
        repo_digest: SHA-1 digest of the repository name
    """

    scheme: str
    prefix: str
    repo_digest: bytes

    def __str__(self) -> str:
        return f"{self.scheme}:{self.prefix}{SEPARATOR}{self.repo_digest.hex()}"

    @property
    def uuid(self) -> str:
        """Serialized identity, as registered with the checks plugin."""
        return str(self)


def encode(repository: str, prefix: str, scheme: str = DEFAULT_SCHEME) -> CheckerIdentity:
    """Build the identity of the checker for *prefix* on *repository*.

    Deterministic: the same repository and prefix always yield the same
    UUID, so re-registering a checker is idempotent.

    Args:
        repository: Gerrit project name
        prefix: Handler prefix
        scheme: Owning scheme

    Returns:
        CheckerIdentity
    """
    digest = hashlib.sha1(repository.encode("utf-8")).digest()
    return CheckerIdentity(scheme=scheme, prefix=prefix, repo_digest=digest)


def decode(uuid: str, scheme: str = DEFAULT_SCHEME) -> tuple[str, bool]:
    """Extract the handler prefix from a checker UUID.

    The ``scheme:`` prefix is stripped when present; a UUID without it is
    still split so callers can inspect foreign identities. The remainder
    must consist of exactly two non-empty fields around a single
    separator.

    Args:
        uuid: Checker UUID
        scheme: Expected scheme

    Returns:
        ``(prefix, True)`` on success, ``("", False)`` otherwise
    """
    remainder = uuid.removeprefix(f"{scheme}:")
    prefix, sep, digest = remainder.rpartition(SEPARATOR)
    if not sep or not prefix or not digest or SEPARATOR in prefix:
        logger.debug("Cannot decode checker uuid %r", uuid)
        return "", False
    return prefix, True


def is_owned(uuid: str, scheme: str = DEFAULT_SCHEME) -> bool:
    """Whether *uuid* belongs to *scheme* and decodes to a prefix."""
    if not uuid.startswith(f"{scheme}:"):
        return False
    _, ok = decode(uuid, scheme)
    return ok
