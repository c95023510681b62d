import logging
from contextlib import asynccontextmanager
from typing import Iterable

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware

from . import handlers
from .config import ProxyRule, ServiceConfig
from .middleware import APIKeyMiddleware, RequestLoggerMiddleware
from .proxy import ProxyDirector
from .templates import TemplateResolver

logger = logging.getLogger(__name__)

SERVER_TIMEOUT = 15
PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


class WebService:
    """
    Route table and server bootstrap for one service instance.

    ``instance`` namespaces template lookup under ``web_root``; proxies from
    ``config.proxies`` are registered right away, more can be added with
    ``proxy()`` before the app starts serving.
    """
    def __init__(self,
                 config: ServiceConfig,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.resolver = TemplateResolver(config.web_root)
        self.directors: list[ProxyDirector] = []

        self.app = FastAPI(lifespan=self.lifespan)
        self.app.state.service = self
        self.app.add_exception_handler(StarletteHTTPException, self.http_error)

        self.app.add_api_route("/favicon.ico", handlers.favicon, methods=["GET"])
        self.app.add_api_route("/", self.home, methods=["GET"])
        self.app.add_api_route("/healthcheck", handlers.healthcheck, methods=["GET"])
        self.app.add_api_route("/page/{page}.html", self.page, methods=["GET"])

        self.proxy(config.proxies, transport=transport)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        """Lifespan context manager closing proxy clients on shutdown."""
        try:
            yield
        finally:
            #---- Shutdown ----
            for director in self.directors:
                await director.aclose()

    async def http_error(self, request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return handlers.not_found()
        return await http_exception_handler(request, exc)

    def render(self, page: str) -> Response:
        body, ok = self.resolver.render(self.config.instance, page)
        if not ok:
            return handlers.not_found()
        return Response(content=body, status_code=200, media_type="text/html")

    # sync endpoints: FastAPI runs them in its threadpool, keeping file reads off the loop
    def home(self) -> Response:
        return self.render("index")

    def page(self, page: str) -> Response:
        return self.render(page)

    def proxy(self,
              rules: Iterable[ProxyRule],
              transport: httpx.AsyncBaseTransport | None = None) -> None:
        for rule in rules:
            director = ProxyDirector(rule, transport=transport)
            self.directors.append(director)
            self.app.add_api_route(
                rule.path,
                self._forwarder(director),
                methods=PROXY_METHODS,
                include_in_schema=False,
            )
            logger.debug("Proxying %s to %s", rule.path, rule.host)

    @staticmethod
    def _forwarder(director: ProxyDirector):
        async def forward(request: Request) -> Response:
            return await director.forward(request)
        return forward

    def use(self, middleware_class, **options) -> None:
        """
        Install global middleware. The first installed middleware sees the
        request first.
        """
        if self.app.middleware_stack is not None:
            raise RuntimeError("Cannot add middleware after the application has started")
        self.app.user_middleware.append(Middleware(middleware_class, **options))

    def use_request_logger(self) -> None:
        self.use(RequestLoggerMiddleware)

    def use_api_key(self) -> None:
        if not self.config.api_key:
            raise ValueError(f"{self.config.instance}: no api_key configured")
        self.use(APIKeyMiddleware, api_key=self.config.api_key)

    def run(self) -> None:
        """
        Serve until stopped. uvicorn has no per-request read or write deadline,
        so the fixed server timeout only bounds idle keep-alive connections.
        """
        server = uvicorn.Server(uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            timeout_keep_alive=SERVER_TIMEOUT,
            log_config=None,
        ))
        logger.info("%s serving on: %s.", self.config.instance, self.config.address)
        server.run()
        if not server.started:
            raise SystemExit(f"{self.config.instance}: could not listen on {self.config.address}")
