"""Tests for the CoordinatorClient entry point."""

import json
import re
import threading
from unittest.mock import MagicMock

import pytest
import requests
import responses

from adkstream import CoordinatorClient
from adkstream._aggregator import ERROR_RESPONSE_TEXT
from adkstream._exceptions import RequestCancelled, ValidationError
from adkstream._session import Sessions
from adkstream.streaming import TextDeltaEvent
from tests.utils.factories import (
    adk_function_call,
    adk_function_response,
    adk_text,
    chart_block,
    sse_event,
    sse_line,
)

URL = "http://agents.test:8000"
SESSION_PATH = re.compile(rf"{URL}/apps/coordinator/users/\w+/sessions/\w+")
RUN_URL = f"{URL}/run_sse"


def _add_session(status: int = 200):
    responses.add(responses.POST, SESSION_PATH, json={"state": {}}, status=status)


def _add_run(body: str, status: int = 200):
    responses.add(
        responses.POST, RUN_URL, body=body.encode(), status=status, content_type="text/event-stream"
    )


def _run_calls():
    return [c for c in responses.calls if c.request.url == RUN_URL]


class TestClientInit:
    def test_defaults(self):
        client = CoordinatorClient()
        assert client.base_url == "http://localhost:8000"
        assert client.app_name == "coordinator"
        assert isinstance(client.sessions, Sessions)

    def test_env_configuration(self, monkeypatch):
        monkeypatch.setenv("ADKSTREAM_BASE_URL", "http://env.test:9000/")
        monkeypatch.setenv("ADKSTREAM_APP_NAME", "family_coordinator")
        monkeypatch.setenv("ADKSTREAM_API_KEY", "adk_env")
        monkeypatch.setenv("ADKSTREAM_TIMEOUT", "12.5")
        client = CoordinatorClient()
        assert client.base_url == "http://env.test:9000"
        assert client.app_name == "family_coordinator"
        assert client._http.timeout == 12.5
        assert client._http._session.headers["Authorization"] == "Bearer adk_env"

    def test_arguments_override_env(self, monkeypatch):
        monkeypatch.setenv("ADKSTREAM_BASE_URL", "http://env.test:9000")
        client = CoordinatorClient(base_url=URL, timeout=3)
        assert client.base_url == URL
        assert client._http.timeout == 3

    def test_bad_timeout_env(self, monkeypatch):
        monkeypatch.setenv("ADKSTREAM_TIMEOUT", "soon")
        with pytest.raises(ValidationError, match="ADKSTREAM_TIMEOUT"):
            CoordinatorClient()

    def test_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            CoordinatorClient(timeout=0)

    def test_reset_session(self, client):
        old = client.session_id
        client.reset_session()
        assert client.session_id != old


class TestSendMessage:
    @responses.activate
    def test_plain_reply(self, client):
        _add_session()
        _add_run(
            sse_event(adk_text("Your ", partial=True, author="coordinator"))
            + sse_event(adk_text("savings rate is 18%.", partial=True, author="coordinator"))
            + sse_event(adk_text("Your savings rate is 18%.", author="coordinator"))
        )
        result = client.send_message("What is my savings rate?")
        assert result.status == "success"
        assert result.text == "Your savings rate is 18%."
        assert result.agent_name == "coordinator"
        assert result.routing_info is None
        assert result.charts is None

    @responses.activate
    def test_run_request_body(self, client):
        _add_session()
        _add_run(sse_event(adk_text("ok")))
        client.send_message("Hello")

        body = json.loads(_run_calls()[0].request.body)
        assert body == {
            "appName": "coordinator",
            "userId": client.user_id,
            "sessionId": client.session_id,
            "newMessage": {"role": "user", "parts": [{"text": "Hello"}]},
            "streaming": True,
        }

    @responses.activate
    def test_session_created_once(self, client):
        _add_session()
        _add_run(sse_event(adk_text("one")))
        _add_run(sse_event(adk_text("two")))
        assert client.send_message("first").text == "one"
        assert client.send_message("second").text == "two"
        session_calls = [c for c in responses.calls if c.request.url != RUN_URL]
        assert len(session_calls) == 1

    @responses.activate
    def test_routed_reply_with_chart(self, client, bar_chart):
        _add_session()
        _add_run(
            sse_event(adk_function_call("budget_agent", {"request": "spending by month"}))
            + sse_event(adk_function_response("budget_agent", "Spending is flat."))
            + sse_event(
                adk_text(
                    f"Spending is flat.\n\n{chart_block(bar_chart)}\n\nWant a breakdown?",
                    author="budget_agent",
                )
            )
        )
        result = client.send_message("Show my spending")
        assert result.agent_name == "budget_agent"
        assert result.text == "Spending is flat.\n\n\n\nWant a breakdown?"
        assert result.routing_info is not None
        assert result.routing_info.called_agent == "budget_agent"
        assert result.to_dict()["charts"] == [bar_chart]

        follow_up = result.specialist_message()
        assert follow_up is not None
        assert follow_up.agent_id == "budget_agent"

    @responses.activate
    def test_malformed_line_does_not_abort(self, client):
        _add_session()
        _add_run("data: not-json\n\n" + sse_line(adk_text("Final")) + sse_line("[DONE]"))
        result = client.send_message("hi")
        assert result.status == "success"
        assert result.text == "Final"

    @responses.activate
    def test_http_error_before_streaming(self, client):
        _add_session()
        responses.add(responses.POST, RUN_URL, json={"detail": "agent crashed"}, status=500)
        result = client.send_message("hi")
        assert result.status == "error"
        assert result.text == ERROR_RESPONSE_TEXT
        assert result.error == "agent crashed"
        assert result.charts is None
        # Sending a message is never retried
        assert len(_run_calls()) == 1

    @responses.activate
    def test_connection_refused(self, client):
        _add_session()
        responses.add(responses.POST, RUN_URL, body=requests.ConnectionError("refused"))
        result = client.send_message("hi")
        assert result.status == "error"
        assert result.text == ERROR_RESPONSE_TEXT
        assert "refused" in result.error

    @responses.activate
    def test_session_failure(self, client):
        _add_session(status=404)
        result = client.send_message("hi")
        assert result.status == "error"
        assert "Failed to create session" in result.error
        assert _run_calls() == []

    def test_mid_stream_failure_exposes_no_partial_state(self, client, monkeypatch):
        def _iter_content(**_kwargs):
            yield sse_line(adk_text("Half an ans", partial=True, author="budget_agent")).encode()
            raise requests.ConnectionError("connection reset")

        resp = MagicMock()
        resp.iter_content = _iter_content
        monkeypatch.setattr(client.sessions, "ensure", MagicMock())
        monkeypatch.setattr(client._http, "stream", MagicMock(return_value=resp))

        result = client.send_message("hi")
        assert result.status == "error"
        assert result.text == ERROR_RESPONSE_TEXT
        assert result.agent_name is None
        assert "connection reset" in result.error

    @responses.activate
    def test_cancelled_before_send(self, client):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(RequestCancelled):
            client.send_message("hi", cancel=cancel)
        assert len(responses.calls) == 0

    def test_cancelled_mid_stream(self, client, monkeypatch):
        cancel = threading.Event()

        def _iter_content(**_kwargs):
            yield sse_line(adk_text("Hel", partial=True)).encode()
            cancel.set()
            yield sse_line(adk_text("Hello")).encode()

        resp = MagicMock()
        resp.iter_content = _iter_content
        monkeypatch.setattr(client.sessions, "ensure", MagicMock())
        monkeypatch.setattr(client._http, "stream", MagicMock(return_value=resp))

        with pytest.raises(RequestCancelled):
            client.send_message("hi", cancel=cancel)
        resp.close.assert_called()

    def test_concurrent_requests_do_not_share_state(self, client, monkeypatch):
        barrier = threading.Barrier(2)

        def _response(text: str):
            def _iter_content(**_kwargs):
                yield sse_line(adk_text(text[:3], partial=True, author=f"{text}_agent")).encode()
                barrier.wait(timeout=5)
                yield sse_line(adk_text(text[3:], partial=True)).encode()

            resp = MagicMock()
            resp.iter_content = _iter_content
            return resp

        responses_by_message = {"alpha": _response("alpha"), "omega": _response("omega")}
        monkeypatch.setattr(client.sessions, "ensure", MagicMock())
        monkeypatch.setattr(
            client._http,
            "stream",
            lambda *_a, json, **_k: responses_by_message[json["newMessage"]["parts"][0]["text"]],
        )

        results = {}

        def _send(message):
            results[message] = client.send_message(message)

        threads = [threading.Thread(target=_send, args=(m,)) for m in responses_by_message]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert results["alpha"].text == "alpha"
        assert results["alpha"].agent_name == "alpha_agent"
        assert results["omega"].text == "omega"
        assert results["omega"].agent_name == "omega_agent"


class TestStreamMessage:
    @responses.activate
    def test_progressive_events(self, client):
        _add_session()
        _add_run(
            sse_event(adk_text("Hel", partial=True))
            + sse_event(adk_text("lo", partial=True))
            + sse_event(adk_text("Hello!"))
        )
        texts = []
        with client.stream_message("hi") as stream:
            for event in stream:
                if isinstance(event, TextDeltaEvent):
                    texts.append(event.text)
        assert texts == ["Hel", "lo", "Hello!"]
        assert stream.result().text == "Hello!"
