import io

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict


class RecordingAdapter(BaseAdapter):
    """Answers from a URL -> (status, headers[, body]) table and records
    every request that actually went out."""

    def __init__(self, routes):
        super().__init__()
        self.routes = routes
        self.sent = []

    @property
    def sent_urls(self):
        return [request.url for request in self.sent]

    def send(self, request, **kwargs):
        self.sent.append(request)
        status, headers, *rest = self.routes[request.url]
        response = requests.Response()
        response.status_code = status
        response.headers = CaseInsensitiveDict(headers)
        response.raw = io.BytesIO(rest[0] if rest else b"")
        response.url = request.url
        response.request = request
        response.connection = self
        return response

    def close(self):
        pass


@pytest.fixture
def mount_routes():
    """Mount a RecordingAdapter for ``https://`` on a session."""

    def mount(session, routes):
        adapter = RecordingAdapter(routes)
        session.mount("https://", adapter)
        return adapter

    return mount
