"""Gerrit REST client, credentials and JSON mapping."""

from connector.gerrit.auth import basic_auth_from_credentials, load_basic_auth
from connector.gerrit.client import GerritClient
from connector.gerrit.serialization import JSON_PREFIX, unmarshal

__all__ = [
    "GerritClient",
    "JSON_PREFIX",
    "basic_auth_from_credentials",
    "load_basic_auth",
    "unmarshal",
]
