"""
Shared fixtures: httpx MockTransport backed transports and a recording logger.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from remote_model.logging_utils import trim_html
from remote_model.transport import HttpxTransport

BASE_URL = 'http://example.com:3002/foo/bar'


class RecordingLogger:
    """Outbound logger double that keeps every (message template, meta) pair."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def outbound(self, template, meta):
        self.records.append({'template': template, 'meta': dict(meta)})

    def trim_html(self, body):
        return trim_html(body)


def json_response(status_code: int = 200, body: Any = None, text: str = None) -> httpx.Response:
    if text is None:
        text = json.dumps(body) if body is not None else ''
    return httpx.Response(status_code, content=text.encode('utf-8'))


@pytest.fixture
def requests_seen() -> List[httpx.Request]:
    return []


@pytest.fixture
def make_transport(requests_seen) -> Callable[[Callable], HttpxTransport]:
    """Build an HttpxTransport whose client answers with the given handler."""
    def factory(handler):
        def recording(request):
            requests_seen.append(request)
            return handler(request)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        return HttpxTransport(client)
    return factory


@pytest.fixture
def respond(make_transport):
    """Transport that always answers with a fixed status code and body text."""
    def factory(status_code: int = 200, text: str = ''):
        return make_transport(lambda request: json_response(status_code, text=text))
    return factory


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
