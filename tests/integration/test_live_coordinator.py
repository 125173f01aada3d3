"""
Integration tests against a live coordinator agent.

Skipped unless an ADK API server is reachable (see ADK_BACKEND_URL).
"""

import threading

import pytest

from adkstream import RequestCancelled
from adkstream.streaming import TextDeltaEvent


class TestLiveCoordinator:
    def test_send_message(self, live_client):
        result = live_client.send_message("Hello! What can you help me with?")
        assert result.status == "success", result.error
        assert result.text
        assert result.agent_name

    def test_session_reused_across_messages(self, live_client):
        live_client.send_message("My name is Sam.")
        session_id = live_client.session_id
        result = live_client.send_message("What is my name?")
        assert result.ok
        assert live_client.session_id == session_id

    def test_stream_message_yields_text(self, live_client):
        with live_client.stream_message("Give me one budgeting tip.") as stream:
            events = list(stream)
        assert any(isinstance(e, TextDeltaEvent) for e in events)
        assert stream.result().ok

    def test_cancel_mid_stream(self, live_client):
        cancel = threading.Event()
        message = "Explain compound interest in detail."
        with live_client.stream_message(message, cancel=cancel) as stream:
            with pytest.raises(RequestCancelled):
                for _ in stream:
                    cancel.set()
