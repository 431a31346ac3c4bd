"""Tests for PipelineTriggerClient."""

import json

import httpx
import pytest

from connector.domain import TriggerPayload
from connector.errors import IrrelevantCheckError, PipelineProtocolError
from connector.pipeline import SUBMITTED_MESSAGE, PipelineTriggerClient

LISTENER_URL = "http://el-jarvis.tekton:8080"


def _make_client(handler) -> PipelineTriggerClient:
    return PipelineTriggerClient(LISTENER_URL, transport=httpx.MockTransport(handler))


def _make_payload(**overrides) -> TriggerPayload:
    defaults = dict(
        repo_root="https://review.example.com/",
        project="infra/app",
        change_number="42",
        patch_set_number=3,
        checker_uuid="jarvis:lint-abc",
    )
    defaults.update(overrides)
    return TriggerPayload(**defaults)


class TestRequest:
    """What is sent to the event listener."""

    def test_check_trigger(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202, json={"messages": ["ok"]})

        _make_client(handler).trigger_check(_make_payload())

        request = seen[0]
        assert request.url.host == "el-jarvis.tekton"
        assert request.url.port == 8080
        assert request.headers["X-Jarvis"] == "create"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "repoRoot": "https://review.example.com/",
            "project": "infra/app",
            "changeNumber": "42",
            "patchSetNumber": 3,
            "checkerUUID": "jarvis:lint-abc",
        }

    def test_merge_trigger(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202)

        _make_client(handler).trigger_merge(_make_payload(patch_set_number="3", checker_uuid=""))

        assert seen[0].headers["X-Jarvis"] == "merge"
        body = json.loads(seen[0].content)
        assert body["patchSetNumber"] == "3"
        assert body["checkerUUID"] == ""


class TestAcknowledgement:
    """How listener replies map to TriggerResult."""

    def test_explicit_messages_and_url(self):
        client = _make_client(lambda r: httpx.Response(
            200, json={"messages": ["ok", "queued"], "detailsURL": "http://dash/run/1"},
        ))
        result = client.trigger_check(_make_payload())
        assert result.messages == ["ok", "queued"]
        assert result.details_url == "http://dash/run/1"

    def test_empty_messages(self):
        client = _make_client(lambda r: httpx.Response(200, json={"messages": []}))
        assert client.trigger_check(_make_payload()).messages == []

    def test_stock_listener_reply(self):
        client = _make_client(lambda r: httpx.Response(
            202, json={"eventListener": "jarvis", "eventID": "abc"},
        ))
        assert client.trigger_check(_make_payload()).messages == [SUBMITTED_MESSAGE]

    def test_non_json_reply(self):
        client = _make_client(lambda r: httpx.Response(200, content=b"accepted"))
        assert client.trigger_check(_make_payload()).messages == [SUBMITTED_MESSAGE]

    def test_irrelevant(self):
        client = _make_client(lambda r: httpx.Response(200, json={"irrelevant": True}))
        with pytest.raises(IrrelevantCheckError) as exc_info:
            client.trigger_check(_make_payload())
        assert exc_info.value.checker_uuid == "jarvis:lint-abc"

    def test_non_2xx_raises(self):
        client = _make_client(lambda r: httpx.Response(500, content=b"boom"))
        with pytest.raises(httpx.HTTPStatusError):
            client.trigger_check(_make_payload())

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(httpx.HTTPError):
            _make_client(handler).trigger_merge(_make_payload())


class TestMalformedAcknowledgement:
    """Listener replies whose fields have the wrong type."""

    @pytest.mark.parametrize("body", [
        {"messages": 5},
        {"messages": "ok"},
        {"messages": None},
        {"messages": {"text": "ok"}},
    ])
    def test_messages_not_a_list(self, body):
        client = _make_client(lambda r: httpx.Response(200, json=body))
        with pytest.raises(PipelineProtocolError, match="messages must be a list"):
            client.trigger_check(_make_payload())

    @pytest.mark.parametrize("body", [
        {"messages": ["ok"], "detailsURL": None},
        {"detailsURL": 7},
    ])
    def test_details_url_not_a_string(self, body):
        client = _make_client(lambda r: httpx.Response(200, json=body))
        with pytest.raises(PipelineProtocolError, match="detailsURL must be a string"):
            client.trigger_check(_make_payload())


class TestRedirects:

    def test_follows_redirect(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            if request.url.host == "el-jarvis.tekton":
                return httpx.Response(307, headers={"Location": "http://el-jarvis-new.tekton:8080/"})
            return httpx.Response(200, json={"messages": ["ok"]})

        result = _make_client(handler).trigger_check(_make_payload())

        assert seen == ["el-jarvis.tekton", "el-jarvis-new.tekton"]
        assert result.messages == ["ok"]
