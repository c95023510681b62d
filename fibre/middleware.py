import logging

from fastapi import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from .handlers import json_status_response

logger = logging.getLogger(__name__)


def request_uri(scope: Scope) -> str:
    uri = scope.get('raw_path') or scope['path'].encode()
    if scope.get('query_string'):
        uri += b'?' + scope['query_string']
    return uri.decode('latin-1')


class RequestLoggerMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope['type'] == 'http':
            logger.info('Got request URI: %s', request_uri(scope))

        await self.app(scope, receive, send)


class APIKeyMiddleware:
    """
    Rejects HTTP requests whose ``api_key`` header does not equal ``api_key``.
    """
    def __init__(self, app: ASGIApp, api_key: str):
        self.app = app
        self.api_key = api_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        supplied = request.headers.get('api_key')
        if not supplied or supplied != self.api_key:
            logger.warning('Rejected %s %s: invalid api_key', request.method, request.url.path)
            response = json_status_response('Invalid api_key', 401)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
