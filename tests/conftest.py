import datetime
import json

import httpx
import pytest

from analyst.client import Analyst

TODAY = datetime.date(2024, 1, 2)


class Recorder:
    """Collects requests sent through an `httpx.MockTransport`."""

    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def make_analyst():
    def _make(handler, **kwargs):
        recorder = Recorder(handler)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        kwargs.setdefault("api_url", "http://api.test")
        kwargs.setdefault("tile_url", "http://tiles.test")
        kwargs.setdefault("graph_id", "graph")
        kwargs.setdefault("shapefile_id", "shapefile")
        analyst = Analyst(http_client=http_client, today=lambda: TODAY, **kwargs)
        return analyst, recorder

    return _make


