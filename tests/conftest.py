"""Shared fixtures: an httpx client backed by a routing MockTransport."""

from typing import Callable, Optional, Union

import httpx
import pytest

Handler = Callable[[httpx.Request], httpx.Response]


class Routes:
    """Maps (method, url) to canned responses and records every request."""

    def __init__(self):
        self.handlers: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        body: Union[str, bytes] = "",
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=content, headers=headers or {})

        self.handlers[(method.upper(), url)] = handler

    def fail(self, method: str, url: str, exc_type: type = httpx.ConnectError, message: str = "boom") -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type(message, request=request)

        self.handlers[(method.upper(), url)] = handler

    def count(self, method: str, url: str) -> int:
        return sum(
            1 for r in self.requests
            if r.method == method.upper() and str(r.url) == url
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get((request.method, str(request.url)))
        if handler is None:
            return httpx.Response(404, content=b"not found")
        return handler(request)


@pytest.fixture
def routes() -> Routes:
    return Routes()


@pytest.fixture
def http_client(routes: Routes):
    client = httpx.Client(transport=httpx.MockTransport(routes), follow_redirects=True)
    yield client
    client.close()
