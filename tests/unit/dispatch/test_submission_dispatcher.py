"""Tests for submission eligibility and execution."""

import httpx
import pytest

from connector.dispatch.submissions import SubmissionDispatcher
from connector.domain import CheckerInfo, PendingSubmitItem
from connector.errors import GerritProtocolError


def _make_item(**overrides) -> PendingSubmitItem:
    defaults = dict(
        change_id="I123",
        project="infra/app",
        change_number=42,
        current_revision_ref="refs/changes/42/42/3",
        revision_number=3,
        mergeable=True,
        submittable=True,
    )
    defaults.update(overrides)
    return PendingSubmitItem(**defaults)


class TestEligibility:
    """Which open changes get queued."""

    def test_mergeable_and_submittable(self, gerrit, trigger):
        assert SubmissionDispatcher(gerrit, trigger).is_eligible(_make_item())

    @pytest.mark.parametrize("overrides", [
        {"mergeable": False},
        {"submittable": False},
        {"lock_label_approved": True},
        {"hashtags": ("jarvis-merge",)},
    ])
    def test_not_eligible(self, gerrit, trigger, overrides):
        assert not SubmissionDispatcher(gerrit, trigger).is_eligible(_make_item(**overrides))

    def test_unrelated_hashtag(self, gerrit, trigger):
        item = _make_item(hashtags=("release",))
        assert SubmissionDispatcher(gerrit, trigger).is_eligible(item)

    def test_eligible_filters(self, gerrit, trigger):
        items = [_make_item(change_number=1), _make_item(change_number=2, mergeable=False)]
        eligible = SubmissionDispatcher(gerrit, trigger).eligible(items)
        assert [i.change_number for i in eligible] == [1]

    def test_unknown_lock_mode(self, gerrit, trigger):
        with pytest.raises(ValueError):
            SubmissionDispatcher(gerrit, trigger, lock_mode="vote")


class TestExecute:
    """Lock, resolve checker, trigger merge."""

    def test_label_lock_then_trigger(self, gerrit, trigger):
        gerrit.list_checkers.return_value = [
            CheckerInfo(uuid="jarvis:lint-abc", repository="infra/app"),
        ]
        SubmissionDispatcher(gerrit, trigger).execute(_make_item())

        gerrit.post_lock.assert_called_once_with("I123", 3, "Jarvis-Lock")
        gerrit.add_hashtag.assert_not_called()

        payload = trigger.trigger_merge.call_args.args[0]
        assert payload.project == "infra/app"
        assert payload.change_number == "42"
        assert payload.patch_set_number == "3"
        assert payload.checker_uuid == "jarvis:lint-abc"
        assert payload.to_dict()["patchSetNumber"] == "3"

    def test_hashtag_lock(self, gerrit, trigger):
        SubmissionDispatcher(gerrit, trigger, lock_mode="hashtag").execute(_make_item())

        gerrit.add_hashtag.assert_called_once_with("I123", "jarvis-merge")
        gerrit.post_lock.assert_not_called()
        trigger.trigger_merge.assert_called_once()

    def test_lock_failure_still_triggers(self, gerrit, trigger, caplog):
        gerrit.post_lock.side_effect = httpx.ConnectError("refused")
        with caplog.at_level("WARNING", logger="connector.dispatch.submissions"):
            SubmissionDispatcher(gerrit, trigger).execute(_make_item())

        trigger.trigger_merge.assert_called_once()
        assert "Failed to lock" in caplog.text

    def test_trigger_failure_does_not_raise(self, gerrit, trigger, caplog):
        trigger.trigger_merge.side_effect = httpx.ConnectError("refused")
        with caplog.at_level("WARNING", logger="connector.dispatch.submissions"):
            SubmissionDispatcher(gerrit, trigger).execute(_make_item())

        assert "Failed to trigger merge" in caplog.text

    def test_no_checker_sends_empty_uuid(self, gerrit, trigger):
        SubmissionDispatcher(gerrit, trigger).execute(_make_item())
        assert trigger.trigger_merge.call_args.args[0].checker_uuid == ""


class TestResolveChecker:
    """Linear scan by repository."""

    def test_first_match_wins(self, gerrit, trigger):
        gerrit.list_checkers.return_value = [
            CheckerInfo(uuid="jarvis:lint-other", repository="other/repo"),
            CheckerInfo(uuid="jarvis:lint-abc", repository="infra/app"),
            CheckerInfo(uuid="jarvis:unit-abc", repository="infra/app"),
        ]
        assert SubmissionDispatcher(gerrit, trigger).resolve_checker("infra/app") == "jarvis:lint-abc"

    def test_no_match(self, gerrit, trigger):
        gerrit.list_checkers.return_value = [CheckerInfo(uuid="u", repository="other/repo")]
        assert SubmissionDispatcher(gerrit, trigger).resolve_checker("infra/app") == ""

    def test_listing_failure(self, gerrit, trigger):
        gerrit.list_checkers.side_effect = GerritProtocolError("bad body")
        assert SubmissionDispatcher(gerrit, trigger).resolve_checker("infra/app") == ""
