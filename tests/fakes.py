"""Small stand-ins for aiohttp client objects."""

import json as _json


class FakeResponse:
    def __init__(self, status=200, json_data=None, headers=None):
        self.status = status
        self._json = json_data
        self.headers = headers or {}

    async def json(self, content_type="application/json"):
        return self._json

    async def text(self):
        return _json.dumps(self._json) if self._json is not None else ""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None


class FakeSession:
    """Records requests and replies with queued FakeResponses (or raises)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def _next(self, method, url, kwargs):
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    async def close(self):
        self.closed = True
