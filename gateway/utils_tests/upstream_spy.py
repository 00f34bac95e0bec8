from typing import Awaitable, Callable, Dict, List, Optional

import httpx


class UpstreamSpyTransport(httpx.AsyncBaseTransport):
    """
    In-process stand-in for the upstream origin.

    Records every request it receives (with its fully read body) and answers
    with a canned response. The request body is consumed chunk by chunk so
    tests can observe how the gateway streams it.
    """

    def __init__(
        self,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        chunks: Optional[List[bytes]] = None,
        on_chunk: Optional[Callable[[bytes], Awaitable[None]]] = None,
        error: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.headers = headers or {}
        self.chunks = chunks if chunks is not None else [b"ok"]
        self.on_chunk = on_chunk
        self.error = error
        self.requests: List[httpx.Request] = []
        self.bodies: List[bytes] = []
        self.received_chunks: List[bytes] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_body(self) -> bytes:
        return self.bodies[-1]

    async def _response_stream(self):
        for chunk in self.chunks:
            yield chunk

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error

        body = b""
        async for chunk in request.stream:
            if not chunk:
                continue
            self.received_chunks.append(chunk)
            if self.on_chunk is not None:
                await self.on_chunk(chunk)
            body += chunk
        self.bodies.append(body)

        return httpx.Response(
            self.status_code,
            headers=self.headers,
            content=self._response_stream(),
            request=request,
        )
