import logging
from urllib.parse import quote

import httpx
from fastapi import HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from .config import ProxyRule
from .routing import rewrite_path, split_upstream

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0

HOP_BY_HOP_HEADERS = {
    b'connection',
    b'keep-alive',
    b'proxy-authenticate',
    b'proxy-authorization',
    b'te',
    b'trailers',
    b'transfer-encoding',
    b'upgrade',
}


class ProxyDirector:
    """
    Forwards requests matched by one ``ProxyRule`` to its upstream.

    Every director owns its own ``httpx.AsyncClient``; ``transport`` replaces
    the network transport (tests route it to an in-process ASGI app).
    """
    def __init__(self, rule: ProxyRule, transport: httpx.AsyncBaseTransport | None = None):
        self.rule = rule
        self.scheme, self.host = split_upstream(rule.host)
        # only scheme and host of the target are used, any path on it is ignored
        self.upstream = httpx.URL(f'{self.scheme}://{self.host}')
        self.client = httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(None, connect=CONNECT_TIMEOUT),
            verify=not rule.trust_upstream_blindly,
            follow_redirects=False,
        )

    def direct(self, request: Request, body: bytes) -> httpx.Request:
        """
        Build the upstream request: upstream scheme and host, forwarding
        headers, and the override path when the rule's prefix matches.
        """
        headers = [
            (k, v) for k, v in request.headers.raw
            if k.lower() not in HOP_BY_HOP_HEADERS and k.lower() != b'host'
        ]
        headers.append((b'x-forwarded-host', request.headers.get('host', '').encode('latin-1')))
        headers.append((b'x-origin-host', self.host.encode('latin-1')))

        url = self.upstream.copy_with(raw_path=self.target(request))
        return self.client.build_request(
            request.method,
            url,
            headers=headers,
            content=body,
        )

    def target(self, request: Request) -> bytes:
        """
        Raw path and query for the upstream. The inbound raw path is kept
        byte for byte unless the override rewrites it.
        """
        path = request.url.path
        rewritten = rewrite_path(path, self.rule.override)
        if rewritten != path:
            target = quote(rewritten).encode('ascii')
        else:
            raw_path = request.scope.get('raw_path') or quote(path).encode('ascii')
            target = raw_path.split(b'?')[0]

        query_string = request.scope.get('query_string', b'')
        if query_string:
            target += b"?" + query_string
        return target

    async def forward(self, request: Request) -> StreamingResponse:
        body = await request.body()
        upstream_request = self.direct(request, body)

        try:
            resp = await self.client.send(upstream_request, stream=True)
        except httpx.HTTPError as exc:
            logger.warning('Proxy to %s failed: %s', upstream_request.url, exc)
            raise HTTPException(status_code=502, detail=str(exc))

        response = StreamingResponse(
            resp.aiter_raw(),
            status_code=resp.status_code,
            background=BackgroundTask(resp.aclose),
        )
        response.raw_headers = [
            (k, v) for k, v in resp.headers.raw if k.lower() not in HOP_BY_HOP_HEADERS
        ]
        return response

    async def aclose(self) -> None:
        await self.client.aclose()
