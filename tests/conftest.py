# Centralized pytest configuration file (fixtures, hooks, plugins, etc.)
from pathlib import Path

import pytest
from asgi_lifespan import LifespanManager
from httpx import AsyncClient, ASGITransport

from fibre.app import WebService
from fibre.config import ProxyOverride, ProxyRule, ServiceConfig
from fibre.testing.echo_upstream import echo_upstream

WEB_ROOT = Path(__file__).parent / 'web'


@pytest.fixture
def web_root() -> Path:
    return WEB_ROOT


@pytest.fixture
def api_key() -> str:
    return 'secret-key'


@pytest.fixture
def service_config(web_root: Path) -> ServiceConfig:
    return ServiceConfig(instance='test', address='127.0.0.1:7999', web_root=web_root)


@pytest.fixture
def proxy_rules() -> list[ProxyRule]:
    return [
        ProxyRule(
            path='/api/v2/{rest:path}',
            host='https://example.com',
            override=ProxyOverride(match='/api/v2', path='/api/v3'),
        ),
        ProxyRule(path='/other', host='https://example.com',
                  override=ProxyOverride(match='/api/v2', path='/api/v3')),
        ProxyRule(path='/status/{code}', host='http://upstream:8000'),
    ]


@pytest.fixture
def service(service_config: ServiceConfig, proxy_rules: list[ProxyRule]) -> WebService:
    service = WebService(service_config)
    # Proxy traffic goes to the in-process echo upstream instead of the network
    service.proxy(proxy_rules, transport=ASGITransport(app=echo_upstream()))
    return service


async def client_for(service: WebService):
    async with LifespanManager(service.app):
        transport = ASGITransport(app=service.app)   # from test to service app
        async with AsyncClient(transport=transport, base_url='http://fibre') as client:
            yield client


@pytest.fixture
async def service_client(service: WebService):
    """Service test client; proxied requests reach the echo upstream via ASGITransport"""
    async for client in client_for(service):
        yield client


@pytest.fixture
async def secured_client(service_config: ServiceConfig, proxy_rules: list[ProxyRule], api_key: str):
    """Service with request logging and the api_key gate installed"""
    service = WebService(service_config.model_copy(update={'api_key': api_key}))
    service.proxy(proxy_rules, transport=ASGITransport(app=echo_upstream()))
    service.use_request_logger()
    service.use_api_key()

    async for client in client_for(service):
        yield client
