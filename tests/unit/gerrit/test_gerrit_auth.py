"""Tests for Gerrit credential loading."""

import httpx
import pytest

from connector.errors import ConfigurationError
from connector.gerrit.auth import basic_auth_from_credentials, load_basic_auth


def _auth_header(auth: httpx.BasicAuth) -> str:
    request = httpx.Request("GET", "https://review.example.com/")
    return next(auth.auth_flow(request)).headers["Authorization"]


class TestBasicAuthFromCredentials:

    def test_user_and_password(self):
        auth = basic_auth_from_credentials("user:secret")
        assert _auth_header(auth) == "Basic dXNlcjpzZWNyZXQ="

    def test_trailing_newline_ignored(self):
        auth = basic_auth_from_credentials("user:secret\n")
        assert _auth_header(auth) == "Basic dXNlcjpzZWNyZXQ="

    def test_password_may_contain_colon(self):
        auth = basic_auth_from_credentials("bot:pa:ss")
        assert _auth_header(auth) == "Basic Ym90OnBhOnNz"

    @pytest.mark.parametrize("credentials", ["", "nocolon", ":secret"])
    def test_malformed(self, credentials):
        with pytest.raises(ConfigurationError):
            basic_auth_from_credentials(credentials)


class TestLoadBasicAuth:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "auth.txt"
        path.write_text("user:secret\n")
        assert _auth_header(load_basic_auth(path)) == "Basic dXNlcjpzZWNyZXQ="

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="cannot read auth file"):
            load_basic_auth(tmp_path / "missing.txt")
