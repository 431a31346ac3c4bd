"""Shared fixtures for dispatch tests."""

from unittest.mock import MagicMock

import pytest

from connector.domain import TriggerResult
from connector.gerrit.client import GerritClient
from connector.pipeline import PipelineTriggerClient

REPO_ROOT = "https://review.example.com/"


@pytest.fixture
def gerrit():
    """GerritClient double that accepts every post."""
    client = MagicMock(spec=GerritClient)
    client.repo_root = REPO_ROOT
    client.post_check.return_value = {}
    client.list_checkers.return_value = []
    client.get_pending_checks.return_value = []
    client.get_pending_submissions.return_value = []
    return client


@pytest.fixture
def trigger():
    """PipelineTriggerClient double that acknowledges with "ok"."""
    client = MagicMock(spec=PipelineTriggerClient)
    client.trigger_check.return_value = TriggerResult(messages=["ok"])
    client.trigger_merge.return_value = TriggerResult(messages=["ok"])
    return client
