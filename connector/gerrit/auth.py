"""Credential loading for the Gerrit REST API."""

import logging
from pathlib import Path

import httpx

from connector.errors import ConfigurationError

logger = logging.getLogger(__name__)


def basic_auth_from_credentials(credentials: str) -> httpx.BasicAuth:
    """Build HTTP basic auth from a ``user:secret`` string.

    Surrounding whitespace (including a trailing newline from a file) is
    ignored. The secret may itself contain colons.

    Raises:
        ConfigurationError: If no ``user:`` part is present
    """
    user, sep, secret = credentials.strip().partition(":")
    if not sep or not user:
        raise ConfigurationError("credentials must have the form user:password")
    return httpx.BasicAuth(user, secret)


def load_basic_auth(path: str | Path) -> httpx.BasicAuth:
    """Read a credentials file containing ``user:password``.

    Args:
        path: Path to the credentials file

    Returns:
        httpx.BasicAuth for the Gerrit client

    Raises:
        ConfigurationError: If the file cannot be read or is malformed
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read auth file {path}: {exc}") from exc

    auth = basic_auth_from_credentials(content)
    logger.info("Loaded Gerrit credentials from %s", path)
    return auth
